"""
HTTP probe layer used to validate links and download pages for scanning.
"""

import asyncio
import logging
import re
import time
from dataclasses import dataclass
from typing import Dict, Optional

import aiohttp
from aiohttp import ClientError, ClientSession, ClientTimeout

DEFAULT_USER_AGENT = 'linkscout/1.0'

HTML_CONTENT_TYPE = re.compile(r'text/html|application/xhtml\+xml', re.IGNORECASE)


@dataclass
class FetchResult:
    """Result of a single HTTP request."""
    url: str
    status_code: int
    method: str = 'GET'
    content: Optional[str] = None
    content_type: Optional[str] = None
    error: Optional[str] = None
    fetch_time: float = 0.0

    @property
    def is_html(self) -> bool:
        return bool(self.content_type and HTML_CONTENT_TYPE.search(self.content_type))


class WebFetcher:
    """
    Issues HEAD and GET requests on behalf of the crawler.

    Request failures never raise; they come back as a FetchResult with
    status code 0 and the error message set.
    """

    def __init__(self, user_agent: str = DEFAULT_USER_AGENT, request_timeout: float = 0,
                 max_concurrent_requests: int = 100, max_content_size: int = 10 * 1024 * 1024):
        self.user_agent = user_agent
        self.request_timeout = request_timeout
        self.max_concurrent_requests = max_concurrent_requests
        self.max_content_size = max_content_size

        self.logger = logging.getLogger(__name__)
        self.session: Optional[ClientSession] = None

        self.stats = {
            'total_requests': 0,
            'successful_requests': 0,
            'failed_requests': 0,
            'total_bytes_downloaded': 0
        }

    async def __aenter__(self):
        """Async context manager entry."""
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()

    async def start(self):
        """Initialize the fetcher session."""
        if self.session is None:
            timeout = ClientTimeout(total=self.request_timeout or None)
            headers = {'User-Agent': self.user_agent}

            self.session = aiohttp.ClientSession(
                timeout=timeout,
                headers=headers,
                connector=aiohttp.TCPConnector(
                    limit=self.max_concurrent_requests,
                    ttl_dns_cache=300,
                    use_dns_cache=True
                )
            )
            self.logger.debug("WebFetcher session started")

    async def close(self):
        """Close the fetcher session."""
        if self.session:
            await self.session.close()
            self.session = None
            self.logger.debug("WebFetcher session closed")

    async def fetch(self, url: str, method: str = 'GET', read_body: bool = False) -> FetchResult:
        """
        Request a single URL.

        Args:
            url: The URL to request
            method: HTTP method, HEAD or GET
            read_body: Download and decode the body when the response is HTML

        Returns:
            FetchResult with the final status code, or status 0 on failure
        """
        if self.session is None:
            await self.start()

        start_time = time.time()
        self.stats['total_requests'] += 1

        try:
            async with self.session.request(method, url, allow_redirects=True) as response:
                content_type = response.headers.get('content-type', '').lower()
                result = FetchResult(
                    url=url,
                    status_code=response.status,
                    method=method,
                    content_type=content_type
                )

                if read_body and method != 'HEAD' and result.is_html:
                    result.content = await self._read_content_safely(response)
                    if result.content:
                        self.stats['total_bytes_downloaded'] += len(result.content)

                result.fetch_time = time.time() - start_time
                self.stats['successful_requests'] += 1
                self.logger.debug(f"{method} {url}: {response.status} ({result.fetch_time:.2f}s)")
                return result

        except asyncio.TimeoutError:
            error_msg = "Request timeout"

        except (ClientError, OSError) as e:
            error_msg = f"Client error: {str(e)}"

        except ValueError as e:
            error_msg = f"Invalid URL: {str(e)}"

        self.stats['failed_requests'] += 1
        self.logger.debug(f"{method} {url} failed: {error_msg}")
        return FetchResult(
            url=url,
            status_code=0,
            method=method,
            error=error_msg,
            fetch_time=time.time() - start_time
        )

    async def _read_content_safely(self, response) -> Optional[str]:
        """
        Read response content with a size limit.

        Returns:
            Content string or None if too large or unreadable
        """
        content_length = response.headers.get('content-length')
        if content_length and content_length.isdigit() and int(content_length) > self.max_content_size:
            self.logger.warning(f"Content too large ({content_length} bytes): {response.url}")
            return None

        content_bytes = b''
        async for chunk in response.content.iter_chunked(8192):
            content_bytes += chunk
            if len(content_bytes) > self.max_content_size:
                self.logger.warning(f"Content exceeded size limit during reading: {response.url}")
                return None

        encoding = response.charset or 'utf-8'
        try:
            return content_bytes.decode(encoding)
        except (UnicodeDecodeError, LookupError):
            return content_bytes.decode('utf-8', errors='ignore')

    def get_stats(self) -> Dict[str, int]:
        """Get fetcher statistics."""
        return self.stats.copy()
