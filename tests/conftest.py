"""
Shared fixtures: an in-memory stand-in for the HTTP layer.
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

import pytest

from linkscout.crawler.fetcher import FetchResult


@dataclass
class Route:
    status: int = 200
    content_type: str = 'text/html; charset=utf-8'
    body: str = ''
    head_status: Optional[int] = None
    error: Optional[str] = None


def page(*links: str) -> Route:
    """An HTML page linking to each of the given targets."""
    anchors = ''.join(f'<a href="{link}">{link}</a>' for link in links)
    return Route(body=f'<html><body>{anchors}</body></html>')


class FakeFetcher:
    """Answers requests from a route table and records every call."""

    def __init__(self, routes: Dict[str, Route]):
        self.routes = routes
        self.calls: List[Tuple[str, str]] = []

    async def fetch(self, url: str, method: str = 'GET', read_body: bool = False) -> FetchResult:
        self.calls.append((method, url))
        route = self.routes.get(url)
        if route is None:
            return FetchResult(url=url, status_code=0, method=method, error='Client error: name not resolved')
        if route.error:
            return FetchResult(url=url, status_code=0, method=method, error=route.error)

        status = route.status
        if method == 'HEAD' and route.head_status is not None:
            status = route.head_status

        result = FetchResult(url=url, status_code=status, method=method, content_type=route.content_type)
        if read_body and method == 'GET' and result.is_html:
            result.content = route.body
        return result

    async def close(self):
        pass

    def calls_for(self, url: str) -> List[str]:
        return [method for method, called in self.calls if called == url]


@pytest.fixture(autouse=True)
def restore_root_logger():
    """setup_logging replaces root handlers; put pytest's back after each test."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
