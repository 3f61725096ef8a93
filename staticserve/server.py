from __future__ import annotations

import logging
import socket
import ssl
import sys
from http.server import BaseHTTPRequestHandler, HTTPServer
from socketserver import ThreadingMixIn
from typing import Optional

from .connection import PROTOCOL_VERSION, Connection
from .dispatcher import RequestDispatcher
from .exceptions import UriDecodeError
from .models import Request
from .resolver import PathResolver
from .transfer import DEFAULT_WINDOW_MB, TransferEngine

log = logging.getLogger(__name__)

# Longest request line accepted by the decoder, terminator included.
MAX_LINE_LENGTH = 8192
DEFAULT_TIMEOUT = 300


class StaticServer(ThreadingMixIn, HTTPServer):
    """Threaded listener; every accepted connection gets its own handler thread."""

    daemon_threads = True
    allow_reuse_address = True
    block_on_close = False
    request_queue_size = 128
    conn_timeout = DEFAULT_TIMEOUT

    def __init__(self, server_address, dispatcher: RequestDispatcher, **kwargs):
        self.dispatcher = dispatcher
        super().__init__(server_address, StaticHandler, **kwargs)

    def handle_error(self, request, client_address) -> None:
        e = sys.exc_info()[1]
        # peers going away mid-response are routine
        if isinstance(e, (BrokenPipeError, ConnectionResetError, TimeoutError)):
            return
        log.exception("error while handling connection from %s", client_address)


class StaticHandler(BaseHTTPRequestHandler):
    protocol_version = PROTOCOL_VERSION
    disable_nagle_algorithm = True
    server: StaticServer

    _decode_error: Optional[int] = None

    def log_message(self, format, *args):
        log.debug("%s - %s", self.address_string(), format % args)

    def setup(self) -> None:
        super().setup()
        s = self.connection
        try:
            s.settimeout(self.server.conn_timeout)
        except OSError:
            pass
        peer = "%s:%s" % tuple(self.client_address[:2])
        self.conn = Connection(s, peer=peer)

    def finish(self) -> None:
        try:
            super().finish()
        except (BrokenPipeError, ConnectionResetError, OSError):
            pass

    def send_error(self, code, message=None, explain=None) -> None:
        """Record a failure reported by the stdlib decoder.

        The answer is produced by the dispatcher from the resulting
        undecoded request, not here.
        """
        self._decode_error = int(code)
        self.close_connection = True

    def handle_one_request(self) -> None:
        try:
            self.raw_requestline = self.rfile.readline(MAX_LINE_LENGTH + 1)
        except TimeoutError as e:
            log.debug("%s read timed out: %s", self.conn.peer, e)
            self.close_connection = True
            return
        if not self.raw_requestline:
            self.close_connection = True
            return

        request = self._decode()
        try:
            self.server.dispatcher.handle(request, self.conn)
        except UriDecodeError as e:
            log.warning("%s dropping request %r: %s", self.conn.peer, self.path, e)
            self.conn.close()
        self.close_connection = self.conn.closed

    def _decode(self) -> Request:
        if len(self.raw_requestline) > MAX_LINE_LENGTH:
            log.debug("%s request line too long", self.conn.peer)
            return Request.undecoded()
        self._decode_error = None
        if not self.parse_request():
            log.debug("%s undecodable request (%s)", self.conn.peer, self._decode_error)
            return Request.undecoded()
        return Request(
            method=self.command,
            uri=self.path,
            headers=self.headers,
            keep_alive=not self.close_connection,
        )


def make_server(
    *,
    host: str = "0.0.0.0",
    port: int = 8000,
    root: Optional[str] = None,
    timeout: int = DEFAULT_TIMEOUT,
    backlog: int = 128,
    window_mb: int = DEFAULT_WINDOW_MB,
    strict_paths: bool = False,
    tls_cert: Optional[str] = None,
    tls_key: Optional[str] = None,
) -> StaticServer:
    dispatcher = RequestDispatcher(
        root=root,
        resolver=PathResolver(strict=strict_paths),
        engine=TransferEngine(window=max(1, int(window_mb)) * 1024 * 1024),
    )
    fam = socket.AF_INET6 if ":" in host else socket.AF_INET

    class _S(StaticServer):
        pass

    _S.address_family = fam
    _S.request_queue_size = max(1, int(backlog))
    httpd = _S((host, port), dispatcher)
    httpd.conn_timeout = max(1, int(timeout))
    if tls_cert and tls_key:
        ctx = ssl.SSLContext(ssl.PROTOCOL_TLS_SERVER)
        ctx.minimum_version = ssl.TLSVersion.TLSv1_2
        ctx.load_cert_chain(certfile=tls_cert, keyfile=tls_key)
        httpd.socket = ctx.wrap_socket(httpd.socket, server_side=True)
    return httpd


def run_server(**options) -> None:
    httpd = make_server(**options)
    log.info("listening on %s:%s", *httpd.server_address[:2])
    try:
        httpd.serve_forever()
    finally:
        httpd.server_close()
