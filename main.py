#!/usr/bin/env python3
"""
Main entry point for the link checker.
"""

import sys

from linkscout.cli import main


if __name__ == '__main__':
    sys.exit(main())
