"""
Local static file server used to check links in a directory on disk.
"""

import logging
import random
from pathlib import Path
from typing import Optional

import markdown
from aiohttp import web

DEFAULT_HOST = '127.0.0.1'
DEFAULT_PORT_RANGE = (5000, 6000)
MARKDOWN_SUFFIXES = ('.md', '.markdown')


class ServerError(RuntimeError):
    """Raised when the static server cannot be started."""


def pick_port(rng: Optional[random.Random] = None) -> int:
    """Pick a port from DEFAULT_PORT_RANGE."""
    rng = rng or random
    low, high = DEFAULT_PORT_RANGE
    return rng.randint(low, high)


class StaticServer:
    """
    Serves a directory over HTTP for the duration of a crawl.

    Directory requests are answered with their ``index.html``. With
    ``render_markdown`` set, ``.md`` files are rendered to HTML so their
    links get scanned too. A port of 0 binds an ephemeral port; ``base_url`` reflects
    the port actually bound.
    """

    def __init__(self, root: str, port: Optional[int] = None, host: str = DEFAULT_HOST,
                 rng: Optional[random.Random] = None, render_markdown: bool = False):
        self.root = Path(root).resolve()
        self.render_markdown = render_markdown
        self.host = host
        self.port = pick_port(rng) if port is None else port
        self.logger = logging.getLogger(__name__)

        self._runner: Optional[web.AppRunner] = None
        self.base_url: Optional[str] = None

    async def __aenter__(self):
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.stop()

    async def start(self) -> str:
        """Start serving and return the base URL."""
        if self._runner is not None:
            return self.base_url
        if not self.root.is_dir():
            raise ServerError(f"Server root is not a directory: {self.root}")

        app = web.Application()
        app.router.add_get('/{path:.*}', self._handle)
        runner = web.AppRunner(app, access_log=None)
        await runner.setup()

        site = web.TCPSite(runner, self.host, self.port)
        try:
            await site.start()
        except OSError as e:
            await runner.cleanup()
            raise ServerError(f"Could not bind {self.host}:{self.port}: {e}") from e

        self._runner = runner
        if self.port == 0:
            self.port = runner.addresses[0][1]
        self.base_url = f"http://{self.host}:{self.port}"
        self.logger.info(f"Serving {self.root} at {self.base_url}")
        return self.base_url

    async def stop(self):
        """Stop the server. Safe to call more than once."""
        if self._runner is None:
            return
        runner, self._runner = self._runner, None
        await runner.cleanup()
        self.logger.info(f"Stopped static server at {self.base_url}")

    async def _handle(self, request: web.Request) -> web.StreamResponse:
        relative = request.match_info['path']
        target = (self.root / relative).resolve()

        if target != self.root and self.root not in target.parents:
            raise web.HTTPForbidden()

        if target.is_dir():
            if relative and not relative.endswith('/'):
                raise web.HTTPMovedPermanently(location=f"/{relative}/")
            target = target / 'index.html'

        if not target.is_file():
            raise web.HTTPNotFound()

        if self.render_markdown and target.suffix.lower() in MARKDOWN_SUFFIXES:
            return self._render_markdown(target)
        return web.FileResponse(target)

    def _render_markdown(self, target: Path) -> web.Response:
        source = target.read_text(encoding='utf-8', errors='replace')
        body = markdown.markdown(source, extensions=['extra'])
        html = f"<!DOCTYPE html>\n<html><head><meta charset=\"utf-8\"></head><body>\n{body}\n</body></html>\n"
        return web.Response(text=html, content_type='text/html')
