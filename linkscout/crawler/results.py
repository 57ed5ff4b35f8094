"""
Link results and the collector that accumulates and broadcasts them.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional


class LinkState(Enum):
    """Terminal classification of a single link."""
    OK = 'OK'
    BROKEN = 'BROKEN'
    SKIPPED = 'SKIPPED'


@dataclass(frozen=True)
class LinkResult:
    """Outcome of visiting one distinct URL."""
    url: str
    state: LinkState
    status: int = 0
    parent: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            'url': self.url,
            'status': self.status,
            'state': self.state.value,
            'parent': self.parent
        }


@dataclass
class CrawlResult:
    """Aggregate result of a whole traversal."""
    passed: bool
    links: List[LinkResult] = field(default_factory=list)

    @property
    def broken(self) -> List[LinkResult]:
        return [link for link in self.links if link.state is LinkState.BROKEN]

    def to_dict(self) -> Dict[str, Any]:
        return {
            'passed': self.passed,
            'links': [link.to_dict() for link in self.links]
        }


LinkListener = Callable[[LinkResult], None]


class ResultCollector:
    """
    Append-only list of link results.
    Every recorded result is delivered synchronously to all subscribers.
    """

    def __init__(self, listeners: Optional[List[LinkListener]] = None):
        self.logger = logging.getLogger(__name__)
        self._results: List[LinkResult] = []
        self._listeners: List[LinkListener] = list(listeners or [])

    def subscribe(self, listener: LinkListener):
        """Register a callback invoked for every subsequent result."""
        self._listeners.append(listener)

    def record(self, result: LinkResult):
        """Append a result and notify subscribers in subscription order."""
        self._results.append(result)
        for listener in self._listeners:
            try:
                listener(result)
            except Exception:
                self.logger.exception(f"Link listener failed for {result.url}")

    @property
    def results(self) -> List[LinkResult]:
        return list(self._results)

    @property
    def passed(self) -> bool:
        return not any(r.state is LinkState.BROKEN for r in self._results)

    def to_crawl_result(self) -> CrawlResult:
        """Freeze the collected results into a CrawlResult."""
        return CrawlResult(passed=self.passed, links=self.results)

    def __len__(self) -> int:
        return len(self._results)
