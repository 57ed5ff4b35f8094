"""
Utility modules for the link checker.
"""

from .config import CheckOptions, ConfigError, ConfigManager, Settings, load_config

__all__ = ['CheckOptions', 'ConfigError', 'ConfigManager', 'Settings', 'load_config']
