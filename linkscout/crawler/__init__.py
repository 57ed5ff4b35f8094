"""
Link checker core components.
"""

from .checker import LinkChecker, check
from .fetcher import WebFetcher, FetchResult
from .frontier import CrawlTask, VisitationCache
from .parser import LinkExtractor, ParsedLink
from .results import CrawlResult, LinkResult, LinkState, ResultCollector
from .scheduler import CrawlScheduler
from .server import StaticServer, ServerError
from .skip import SkipFilter

__all__ = [
    'LinkChecker', 'check',
    'WebFetcher', 'FetchResult',
    'CrawlTask', 'VisitationCache',
    'LinkExtractor', 'ParsedLink',
    'CrawlResult', 'LinkResult', 'LinkState', 'ResultCollector',
    'CrawlScheduler',
    'StaticServer', 'ServerError',
    'SkipFilter'
]
