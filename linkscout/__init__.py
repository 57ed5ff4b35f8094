"""
linkscout

Finds broken links in websites and directories of HTML files.
"""

__version__ = "1.0.0"
__description__ = "Concurrent broken link checker for websites and documentation trees"

from .crawler.checker import LinkChecker, check
from .crawler.results import CrawlResult, LinkResult, LinkState
from .utils.config import CheckOptions

__all__ = [
    'LinkChecker', 'check',
    'CrawlResult', 'LinkResult', 'LinkState',
    'CheckOptions'
]
