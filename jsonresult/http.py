"""Serve JSON results over HTTP with the standard library server."""

from __future__ import annotations

import socketserver
import threading
from collections.abc import Callable, Mapping
from http import server
from typing import Any
from urllib.parse import parse_qs, urlsplit

from . import __version__, logs, utils
from .context import Invocation, Request, ValueStack
from .response import Response
from .result import JSONResult

SERVER_NAME = 'jsonresult'

ActionFactory = Callable[[Request], Any]

log = logs.get(__name__)


class HTTPHandlerResponse(Response):
    """Response sink over a request handler.

    Status and headers are held back until the first write or close.
    """

    def __init__(self, handler: HTTPHandler) -> None:
        self.handler = handler
        self.status = 200
        self.headers: list[tuple[str, str]] = []
        self.started = False

    def set_status(self, code: int) -> None:
        self.status = code

    def send_error(self, code: int) -> None:
        self.status = code

    def set_header(self, name: str, value: str) -> None:
        self.headers = [(k, v) for k, v in self.headers if k.lower() != name.lower()]
        self.headers.append((name, value))

    def add_header(self, name: str, value: str) -> None:
        self.headers.append((name, value))

    def start(self) -> None:
        handler = self.handler
        handler.send_response(self.status)
        for key, value in handler.server._headers.items():  # type: ignore[attr-defined]
            handler.send_header(key, value)
        for key, value in self.headers:
            handler.send_header(key, value)
        handler.end_headers()
        self.started = True

    def write(self, data: bytes) -> None:
        if not self.started:
            self.start()
        self.handler.wfile.write(data)

    def close(self) -> None:
        if not self.started:
            self.start()
        self.handler.wfile.flush()


class HTTPHandler(server.BaseHTTPRequestHandler):
    protocol_version = 'HTTP/1.1'

    def do_GET(self) -> None:
        parts = urlsplit(self.path)
        try:
            action_factory, result = self.server._routes[parts.path]  # type: ignore[attr-defined]
        except KeyError:
            self.send_error(404)
            return

        request = Request(
            params=parse_qs(parts.query),
            headers=dict(self.headers.items()),
            uri=parts.path,
        )
        response = HTTPHandlerResponse(self)
        stack = ValueStack(action_factory(request))

        try:
            result.execute(Invocation(stack, request, response))
        except Exception:
            # already logged by the result
            if response.started:
                self.close_connection = True
            else:
                self.send_error(500)

    def version_string(self) -> str:
        version = self.server._version  # type: ignore[attr-defined]
        return version or f'{SERVER_NAME}/{__version__}'

    def log_request(self, code: str | int = '-', size: str | int = '-') -> None:
        url = utils.format_addr(self.client_address)
        log.debug('%r %s <- %s', self.requestline, code, url)


class JSONHTTPServer:
    """Maps request paths to handler factories and the results that render them."""

    Handler = HTTPHandler

    def __init__(
        self,
        url: str | utils.Url | None = None,
        routes: Mapping[str, tuple[ActionFactory, JSONResult]] | None = None,
        headers: dict[str, str] | None = None,
        version: str | None = None,
    ) -> None:
        self._url = utils.Url.parse(url)
        self.routes: dict[str, tuple[ActionFactory, JSONResult]] = dict(routes or {})
        self.headers = headers or {}
        self.version = version
        self._server: ThreadingHTTPServer | None = None
        self._serving = threading.Event()

    @property
    def url(self) -> utils.Url:
        """Return the configured URL, or the bound one once listening."""
        if self._server:
            host, port = self._server.server_address[:2]
            return utils.Url(self._url.scheme, host, port)
        return self._url

    def route(self, path: str, action_factory: ActionFactory, result: JSONResult) -> JSONHTTPServer:
        self.routes[path] = (action_factory, result)
        log.debug('route added: %s', path)
        return self

    def bind(self) -> None:
        if self._server:
            return
        self._server = ThreadingHTTPServer(
            self._url.address, self.Handler, self.routes, self.headers, self.version
        )

    def serve(self) -> None:
        self.bind()
        assert self._server
        log.info('listening: %s', self.url)
        self._serving.set()
        try:
            self._server.serve_forever()
        finally:
            self._serving.clear()

    def stop(self) -> None:
        if not self._server:
            return
        # shutdown() blocks forever unless serve_forever() is running
        if self._serving.is_set():
            self._server.shutdown()
        self._server.server_close()
        self._server = None


class ThreadingHTTPServer(socketserver.ThreadingMixIn, server.HTTPServer):
    daemon_threads = True

    def __init__(
        self,
        server_address: tuple[str, int],
        RequestHandlerClass: type[HTTPHandler],
        routes: dict[str, tuple[ActionFactory, JSONResult]],
        headers: dict[str, str],
        version: str | None,
    ) -> None:
        super().__init__(server_address, RequestHandlerClass)
        self._routes = routes
        self._headers = headers
        self._version = version

    def handle_error(self, request, client_address) -> None:
        log.exception('request error (%s)', utils.format_addr(client_address))
