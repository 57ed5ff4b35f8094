"""
HTML parser for extracting link targets from a page.
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple
from urllib.parse import urljoin, urlsplit, urlunsplit

from bs4 import BeautifulSoup

# tag -> attributes holding a single URL
LINK_ATTRIBUTES: Dict[str, Tuple[str, ...]] = {
    'a': ('href',),
    'area': ('href',),
    'link': ('href',),
    'img': ('src',),
    'script': ('src',),
    'iframe': ('src',),
    'frame': ('src',),
    'embed': ('src',),
    'source': ('src',),
    'track': ('src',),
    'audio': ('src',),
    'video': ('src', 'poster'),
    'input': ('src',),
    'object': ('data',),
    'form': ('action',),
    'blockquote': ('cite',),
    'q': ('cite',),
    'ins': ('cite',),
    'del': ('cite',),
    'body': ('background',),
}

SRCSET_TAGS = ('img', 'source')

DEFAULT_PORTS = {'http': 80, 'https': 443}


def canonicalize_url(url: str) -> str:
    """
    Put a URL in the form used for deduplication.

    Scheme and host are lowercased, the default port and the fragment are
    dropped, and an http(s) URL with an empty path gets "/". Raises
    ValueError for an invalid port.
    """
    parsed = urlsplit(url)
    scheme = parsed.scheme.lower()
    if scheme not in DEFAULT_PORTS:
        return urlunsplit((scheme, parsed.netloc, parsed.path, parsed.query, ''))

    host = parsed.hostname or ''
    if ':' in host:
        host = f"[{host}]"
    port = parsed.port
    netloc = host if port in (None, DEFAULT_PORTS[scheme]) else f"{host}:{port}"
    userinfo, at, _ = parsed.netloc.rpartition('@')
    if at:
        netloc = f"{userinfo}@{netloc}"

    return urlunsplit((scheme, netloc, parsed.path or '/', parsed.query, ''))


@dataclass
class ParsedLink:
    """A link target found in a page.

    ``url`` is the absolute URL, or None when ``link`` could not be resolved.
    """
    link: str
    url: Optional[str] = None


class LinkExtractor:
    """
    Extracts link targets from HTML content and resolves them against the page URL.
    """

    def __init__(self, features: str = 'lxml'):
        self.features = features
        self.logger = logging.getLogger(__name__)

    def extract(self, content: str, base_url: str) -> List[ParsedLink]:
        """
        Extract every link target from a page.

        Args:
            content: Raw HTML content
            base_url: URL the content was fetched from

        Returns:
            ParsedLink entries in document order, duplicates removed
        """
        soup = BeautifulSoup(content, self.features)

        base_tag = soup.find('base', href=True)
        if base_tag:
            resolved_base = self._resolve(base_tag['href'].strip(), base_url)
            if resolved_base:
                base_url = resolved_base

        links: List[ParsedLink] = []
        seen = set()
        for raw in self._iter_raw_links(soup):
            if raw in seen:
                continue
            seen.add(raw)
            links.append(ParsedLink(link=raw, url=self._resolve(raw, base_url)))

        self.logger.debug(f"Extracted {len(links)} links from {base_url}")
        return links

    def _iter_raw_links(self, soup: BeautifulSoup):
        for tag in soup.find_all(list(LINK_ATTRIBUTES)):
            for attr in LINK_ATTRIBUTES[tag.name]:
                value = tag.get(attr)
                if isinstance(value, str):
                    value = value.strip()
                    if value and not value.startswith('#'):
                        yield value

            if tag.name in SRCSET_TAGS and tag.get('srcset'):
                for candidate in tag['srcset'].split(','):
                    parts = candidate.strip().split()
                    if parts:
                        yield parts[0]

    def _resolve(self, link: str, base_url: str) -> Optional[str]:
        """Resolve a link against the base URL and canonicalize it.

        Returns None when the result is not a usable URL.
        """
        try:
            absolute_url = urljoin(base_url, link)
            parsed = urlsplit(absolute_url)
            # accessing port validates it
            parsed.port
        except ValueError:
            return None

        if not parsed.scheme:
            return None
        if parsed.scheme in ('http', 'https') and not parsed.hostname:
            return None
        if any(ch.isspace() for ch in parsed.netloc):
            return None

        return canonicalize_url(absolute_url)
