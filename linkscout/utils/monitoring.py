"""
Monitoring and metrics collection for link checks.
"""

import logging
from typing import Optional

from prometheus_client import CollectorRegistry, Counter, Gauge, Histogram, start_http_server

from ..crawler.fetcher import FetchResult
from ..crawler.results import LinkResult


class LinkMetrics:
    """
    Prometheus metrics fed by the checker's notifications.

    Attach with ``attach(checker)``; every link result, page scan and probe is
    counted, and the in-flight gauge reads the checker's running job count.
    """

    def __init__(self, registry: Optional[CollectorRegistry] = None):
        self.logger = logging.getLogger(__name__)
        self.registry = registry or CollectorRegistry()

        self.links_total = Counter(
            'linkscout_links_total',
            'Links checked, by terminal state',
            ['state'],
            registry=self.registry
        )
        self.status_total = Counter(
            'linkscout_http_responses_total',
            'HTTP responses by status code',
            ['status_code'],
            registry=self.registry
        )
        self.pages_scanned = Counter(
            'linkscout_pages_scanned_total',
            'Pages whose links were extracted',
            registry=self.registry
        )
        self.probe_duration = Histogram(
            'linkscout_probe_duration_seconds',
            'Time spent on each HTTP probe',
            ['method'],
            registry=self.registry
        )
        self.jobs_in_flight = Gauge(
            'linkscout_jobs_in_flight',
            'Crawl jobs currently running',
            registry=self.registry
        )
        self.last_run_passed = Gauge(
            'linkscout_last_run_passed',
            'Whether the last completed run found no broken links',
            registry=self.registry
        )

    def attach(self, checker):
        """Subscribe to a LinkChecker's notifications."""
        checker.subscribe(self.record_link)
        checker.subscribe_page_start(self.record_page)
        checker.subscribe_probe(self.record_probe)
        self.jobs_in_flight.set_function(lambda: checker.in_flight)

    def record_link(self, result: LinkResult):
        self.links_total.labels(state=result.state.value).inc()
        if result.status:
            self.status_total.labels(status_code=str(result.status)).inc()

    def record_page(self, url: str):
        self.pages_scanned.inc()

    def record_probe(self, response: FetchResult):
        self.probe_duration.labels(method=response.method).observe(response.fetch_time)

    def record_run(self, passed: bool):
        self.last_run_passed.set(1 if passed else 0)

    def start_server(self, port: int):
        """Expose the metrics over HTTP."""
        start_http_server(port, registry=self.registry)
        self.logger.info(f"Prometheus metrics server started on port {port}")
