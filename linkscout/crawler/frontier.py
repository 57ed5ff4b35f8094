"""
Crawl tasks and the visitation cache used to deduplicate discovered URLs.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Optional, Set


@dataclass
class CrawlTask:
    """Represents a single URL visit."""
    url: str
    crawl: bool = False
    parent: Optional[str] = None


class VisitationCache:
    """
    Set of URLs already seen during one traversal.

    URLs are stored in their exact string form. Marking happens before any
    asynchronous work for a URL is scheduled, so the same URL is never
    processed twice.
    """

    def __init__(self):
        self.logger = logging.getLogger(__name__)
        self.seen_urls: Set[str] = set()
        self.stats = {
            'total_checks': 0,
            'duplicates': 0
        }

    def mark(self, url: str) -> bool:
        """
        Mark a URL as seen.
        Returns True if the URL was newly marked, False if already present.
        """
        self.stats['total_checks'] += 1
        if url in self.seen_urls:
            self.stats['duplicates'] += 1
            return False
        self.seen_urls.add(url)
        return True

    def __contains__(self, url: str) -> bool:
        return url in self.seen_urls

    def __len__(self) -> int:
        return len(self.seen_urls)

    def get_stats(self) -> Dict[str, int]:
        """Get cache statistics."""
        return {**self.stats, 'total_seen': len(self.seen_urls)}
