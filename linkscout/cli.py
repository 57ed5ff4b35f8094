"""
Command line interface for the link checker.
"""

import argparse
import asyncio
import csv
import io
import json
import logging
import sys
import time
from collections import OrderedDict
from typing import Dict, List, Optional

from . import __version__
from .crawler.checker import LinkChecker
from .crawler.results import CrawlResult, LinkResult
from .crawler.server import ServerError
from .utils.config import ConfigError, Settings, load_config
from .utils.logger import VERBOSITY_LEVELS, LinkLogAdapter, get_link_logger, setup_logging
from .utils.monitoring import LinkMetrics

CSV_FIELDS = ['url', 'status', 'state', 'parent']


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='linkscout',
        description="Find broken links in a website or a directory of HTML files.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  linkscout docs/
  linkscout https://www.example.com
  linkscout . --recurse
  linkscout . --skip www.googleapis.com
  linkscout . --format csv
        """
    )

    parser.add_argument('location', help='URL or path on disk to check for broken links')
    parser.add_argument('--concurrency', type=int, help='Number of simultaneous connections (default: 100)')
    parser.add_argument('--config', help='Config file to use (default: linkscout.config.yaml if present)')
    parser.add_argument('-f', '--format', choices=['text', 'json', 'csv'], type=str.lower,
                        help='Report format (default: text)')
    parser.add_argument('-r', '--recurse', action='store_true', default=None,
                        help='Recursively follow links on the same root domain')
    parser.add_argument('--markdown', action='store_true', default=None,
                        help='Render and scan markdown files when checking a path on disk')
    parser.add_argument('--server-root',
                        help='Directory to serve when checking a path on disk (default: LOCATION)')
    parser.add_argument('--port', type=int, help='Port for the local static server')
    parser.add_argument('-s', '--skip', help='Space separated list of URL patterns to skip')
    parser.add_argument('--timeout', type=float,
                        help='Request timeout in seconds, fractions allowed (default: 0, no timeout)')
    parser.add_argument('--user-agent', help='User-Agent header sent with every request')
    parser.add_argument('--verbosity', type=str.lower, choices=list(VERBOSITY_LEVELS),
                        help="Output verbosity (default: warning)")
    parser.add_argument('--silent', action='store_true', default=None,
                        help='Only show broken links, same as --verbosity error (not combinable with --verbosity)')
    parser.add_argument('--metrics-port', type=int, help='Expose Prometheus metrics on this port')
    parser.add_argument('--version', action='version', version=f'linkscout {__version__}')
    return parser


def group_by_parent(links: List[LinkResult]) -> Dict[str, List[LinkResult]]:
    """Collate results by the page that linked to them, in first-seen order."""
    parents: Dict[str, List[LinkResult]] = OrderedDict()
    for link in links:
        parents.setdefault(link.parent or '', []).append(link)
    return parents


def visible_links(links: List[LinkResult], verbosity: str) -> List[LinkResult]:
    """Links whose state is logged at the given verbosity: BROKEN at error, OK at warning, SKIPPED at info."""
    level = VERBOSITY_LEVELS[verbosity]
    return [link for link in links if LinkLogAdapter.STATE_LEVELS[link.state.value] >= level]


def to_csv(result: CrawlResult) -> str:
    buffer = io.StringIO()
    writer = csv.DictWriter(buffer, fieldnames=CSV_FIELDS, lineterminator='\n')
    writer.writeheader()
    for link in result.links:
        row = link.to_dict()
        row['parent'] = row['parent'] or ''
        writer.writerow(row)
    return buffer.getvalue()


def to_json(result: CrawlResult) -> str:
    return json.dumps(result.to_dict(), indent=2)


class CheckerApp:
    """Runs one check from the command line."""

    def __init__(self, settings: Settings):
        self.settings = settings
        self.logger = logging.getLogger(__name__)
        self.link_logger = get_link_logger('linkscout.links')

    async def run(self, location: str) -> int:
        options = self.settings.to_check_options(location)
        checker = LinkChecker()

        if self.settings.format == 'text':
            checker.subscribe(self.link_logger.log_link)

        metrics = None
        if self.settings.metrics_port is not None:
            metrics = LinkMetrics()
            metrics.attach(checker)
            metrics.start_server(self.settings.metrics_port)

        start = time.time()
        self.logger.warning(f"Crawling {location}")
        result = await checker.check(options)
        if metrics:
            metrics.record_run(result.passed)

        self.report(result)

        total = len(result.links)
        elapsed = time.time() - start
        if not result.passed:
            self.logger.error(f"ERROR: Detected {len(result.broken)} broken links. "
                              f"Scanned {total} links in {elapsed:.2f} seconds.")
            return 1
        self.logger.warning(f"Successfully scanned {total} links in {elapsed:.2f} seconds.")
        return 0

    def report(self, result: CrawlResult):
        fmt = self.settings.format
        if fmt == 'json':
            print(to_json(result))
            return
        if fmt == 'csv':
            print(to_csv(result), end='')
            return

        verbosity = self.settings.logging.verbosity
        for parent, links in group_by_parent(result.links).items():
            shown = visible_links(links, verbosity)
            if not shown:
                continue
            self.logger.error(parent or "(root)")
            for link in shown:
                self.link_logger.log_link(link, indent="  ")


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)
    flags = vars(args).copy()
    location = flags.pop('location')
    config_path = flags.pop('config')

    try:
        settings = load_config(config_path, flags)
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    setup_logging(settings.logging)
    app = CheckerApp(settings)
    try:
        return asyncio.run(app.run(location))
    except KeyboardInterrupt:
        print("\nInterrupted by user", file=sys.stderr)
        return 1
    except (ConfigError, ServerError) as e:
        logging.getLogger(__name__).error(f"Fatal error: {e}")
        return 1


if __name__ == '__main__':
    sys.exit(main())
