"""
Link checker that crawls a site or a directory on disk and classifies every link.
"""

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional
from urllib.parse import quote, urlsplit

from ..utils.config import CheckOptions, validate_options
from .fetcher import DEFAULT_USER_AGENT, FetchResult, WebFetcher
from .frontier import CrawlTask, VisitationCache
from .parser import LinkExtractor, canonicalize_url
from .results import CrawlResult, LinkListener, LinkResult, LinkState, ResultCollector
from .scheduler import CrawlScheduler
from .server import StaticServer
from .skip import SkipFilter

HTTP_URL = re.compile(r'^https?://', re.IGNORECASE)

PageListener = Callable[[str], None]
ProbeListener = Callable[[FetchResult], None]


def is_http_url(target: str) -> bool:
    return bool(HTTP_URL.match(target))


def host_of(url: str) -> str:
    """Hostname plus explicit port, the part compared for host scoping."""
    parsed = urlsplit(url)
    host = (parsed.hostname or '').lower()
    try:
        port = parsed.port
    except ValueError:
        port = None
    return f"{host}:{port}" if port else host


def normalize_root(url: str) -> str:
    """Canonicalize the root URL the same way extracted links are."""
    try:
        return canonicalize_url(url)
    except ValueError:
        # left as given; the probe reports it as broken
        return url


@dataclass
class CrawlContext:
    """State shared by every task of one run."""
    options: CheckOptions
    root_url: str
    cache: VisitationCache
    results: ResultCollector
    scheduler: CrawlScheduler
    skip_filter: SkipFilter
    fetcher: WebFetcher


class LinkChecker:
    """
    Performs a crawl job.

    Subscribe to ``subscribe`` for every link result as it is produced, and to
    ``subscribe_page_start`` for every page whose links are about to be scanned.
    ``subscribe_probe`` receives the raw response of every HTTP probe.
    """

    def __init__(self, fetcher: Optional[WebFetcher] = None,
                 extractor: Optional[LinkExtractor] = None):
        self.fetcher = fetcher
        self.extractor = extractor or LinkExtractor()
        self.logger = logging.getLogger(__name__)

        self._link_listeners: List[LinkListener] = []
        self._page_listeners: List[PageListener] = []
        self._probe_listeners: List[ProbeListener] = []
        self._scheduler: Optional[CrawlScheduler] = None

    def subscribe(self, listener: LinkListener):
        self._link_listeners.append(listener)

    def subscribe_page_start(self, listener: PageListener):
        self._page_listeners.append(listener)

    def subscribe_probe(self, listener: ProbeListener):
        """Called with the FetchResult of every HTTP probe."""
        self._probe_listeners.append(listener)

    @property
    def in_flight(self) -> int:
        """Crawl jobs currently running, 0 between runs."""
        return self._scheduler.in_flight if self._scheduler is not None else 0

    def _notify(self, listeners, value):
        for listener in listeners:
            try:
                listener(value)
            except Exception:
                self.logger.exception(f"Listener failed for {getattr(value, 'url', value)}")

    async def check(self, options: CheckOptions) -> CrawlResult:
        """
        Crawl a URL or a path on disk and return every visited link.

        A filesystem path is served by a local static server for the
        duration of the crawl.
        """
        validate_options(options)
        skip_filter = SkipFilter(options.links_to_skip)

        server = None
        if not is_http_url(options.path):
            server, root_url = await self._start_server(options)
            options = options.with_path(root_url)

        try:
            return await self._run(options, skip_filter)
        finally:
            if server is not None:
                await server.stop()

    async def _start_server(self, options: CheckOptions):
        target = Path(options.path).resolve()
        root = Path(options.server_root).resolve() if options.server_root else target
        if root.is_file():
            root = root.parent

        server = StaticServer(str(root), port=options.port, render_markdown=options.markdown)
        base_url = await server.start()

        try:
            relative = target.relative_to(root)
        except ValueError:
            relative = Path('.')

        path = '' if str(relative) == '.' else quote(relative.as_posix())
        if path and target.is_dir():
            path += '/'
        return server, f"{base_url}/{path}"

    async def _run(self, options: CheckOptions, skip_filter: SkipFilter) -> CrawlResult:
        fetcher = self.fetcher
        owns_fetcher = fetcher is None
        if owns_fetcher:
            fetcher = WebFetcher(
                user_agent=options.user_agent or DEFAULT_USER_AGENT,
                request_timeout=options.timeout,
                max_concurrent_requests=options.concurrency
            )
            await fetcher.start()

        root_url = normalize_root(options.path)
        context = CrawlContext(
            options=options,
            root_url=root_url,
            cache=VisitationCache(),
            results=ResultCollector(self._link_listeners),
            scheduler=CrawlScheduler(options.concurrency),
            skip_filter=skip_filter,
            fetcher=fetcher
        )

        self.logger.info(f"Checking {root_url} (recurse={options.recurse}, concurrency={options.concurrency})")
        self._scheduler = context.scheduler
        try:
            self._enqueue(context, CrawlTask(url=root_url, crawl=True))
            await context.scheduler.wait_idle()
        finally:
            context.scheduler.cancel()
            self._scheduler = None
            if owns_fetcher:
                await fetcher.close()

        result = context.results.to_crawl_result()
        self.logger.info(
            f"Checked {len(result.links)} links in {context.scheduler.stats.elapsed_time:.2f}s, "
            f"{len(result.broken)} broken"
        )
        return result

    def _enqueue(self, context: CrawlContext, task: CrawlTask) -> bool:
        """Mark the URL and submit its task in one step. Returns False for duplicates."""
        if not context.cache.mark(task.url):
            return False

        async def job():
            await self.crawl(context, task)

        context.scheduler.submit(job)
        return True

    async def crawl(self, context: CrawlContext, task: CrawlTask):
        """Classify one URL and, when it is a page to scan, queue its links."""
        url = task.url

        # explicitly skip non-http[s] links before making the request
        scheme = urlsplit(url).scheme.lower()
        if scheme not in ('http', 'https'):
            context.results.record(LinkResult(url=url, state=LinkState.SKIPPED, status=0, parent=task.parent))
            return

        try:
            skipped = await context.skip_filter.should_skip(url)
        except Exception:
            self.logger.exception(f"Skip rule failed for {url}")
            context.results.record(LinkResult(url=url, state=LinkState.BROKEN, status=0, parent=task.parent))
            return
        if skipped:
            context.results.record(LinkResult(url=url, state=LinkState.SKIPPED, status=0, parent=task.parent))
            return

        response = await self._probe(context, task)
        self._notify(self._probe_listeners, response)
        state = LinkState.OK if 200 <= response.status_code < 300 else LinkState.BROKEN
        context.results.record(LinkResult(url=url, state=state, status=response.status_code, parent=task.parent))

        if task.crawl and response.is_html and response.content is not None:
            self._scan_page(context, url, response.content)

    async def _probe(self, context: CrawlContext, task: CrawlTask) -> FetchResult:
        if task.crawl:
            return await context.fetcher.fetch(task.url, method='GET', read_body=True)

        response = await context.fetcher.fetch(task.url, method='HEAD')
        # some servers reject HEAD outright
        if response.status_code == 405:
            response = await context.fetcher.fetch(task.url, method='GET')
        return response

    def _scan_page(self, context: CrawlContext, url: str, content: str):
        self._notify(self._page_listeners, url)

        try:
            links = self.extractor.extract(content, url)
        except Exception as e:
            self.logger.error(f"Error extracting links from {url}: {e}")
            return

        queued = 0
        for parsed in links:
            if parsed.url is None:
                context.results.record(LinkResult(url=parsed.link, state=LinkState.BROKEN, status=0, parent=url))
                continue

            crawl = self._should_recurse(context, parsed.url)
            if self._enqueue(context, CrawlTask(url=parsed.url, crawl=crawl, parent=url)):
                queued += 1

        self.logger.debug(f"Queued {queued} of {len(links)} links from {url}")

    def _should_recurse(self, context: CrawlContext, url: str) -> bool:
        """Only scan pages under the original target on the same host."""
        if not context.options.recurse:
            return False
        if not url.startswith(context.root_url):
            return False
        return host_of(url) == host_of(context.root_url)


async def check(options: CheckOptions) -> CrawlResult:
    """Convenience coroutine to perform a scan."""
    checker = LinkChecker()
    return await checker.check(options)

