from __future__ import annotations

import logging
import os
import time
from dataclasses import replace
from http import HTTPStatus
from typing import Optional

from . import listing
from .cache import is_not_modified
from .connection import Connection
from .exceptions import InvalidDateHeader, SecurityRejection
from .headers import build_file_headers, http_date
from .models import Request, ResolvedTarget, Response, ResponseHeaders
from .resolver import PathResolver, inspect, split_target
from .transfer import TransferEngine

log = logging.getLogger(__name__)


def error_response(status: HTTPStatus) -> Response:
    body = f"Failure: {status.value} {status.phrase}\r\n".encode("utf-8")
    headers = ResponseHeaders(
        [
            ("Content-Type", "text/plain; charset=UTF-8"),
            ("Content-Length", str(len(body))),
            ("Connection", "close"),
        ]
    )
    return Response(status, headers, body)


def redirect_response(location: str) -> Response:
    headers = ResponseHeaders(
        [("Location", location), ("Content-Length", "0"), ("Connection", "close")]
    )
    return Response(HTTPStatus.FOUND, headers)


def not_modified_response(now: Optional[float] = None) -> Response:
    headers = ResponseHeaders(
        [("Date", http_date(time.time() if now is None else now)), ("Connection", "close")]
    )
    return Response(HTTPStatus.NOT_MODIFIED, headers)


class RequestDispatcher:
    """Turns one decoded request into one response.

    :meth:`decide` is the whole state machine and performs no socket I/O;
    :meth:`deliver` writes its result to a connection. A dispatcher holds
    no per-request state, so one instance serves every connection.
    """

    def __init__(
        self,
        root: Optional[str] = None,
        resolver: Optional[PathResolver] = None,
        engine: Optional[TransferEngine] = None,
    ) -> None:
        self._root = root
        self.resolver = resolver or PathResolver()
        self.engine = engine or TransferEngine()

    @property
    def root(self) -> str:
        return self._root if self._root is not None else os.getcwd()

    def handle(self, request: Request, conn: Connection) -> Response:
        response = self.decide(request)
        log.info(
            '%s "%s %s" %d',
            conn.peer,
            request.method or "-",
            request.uri or "-",
            response.status.value,
        )
        self.deliver(response, conn)
        return response

    def decide(self, request: Request) -> Response:
        if not request.decoded:
            return error_response(HTTPStatus.BAD_REQUEST)
        if request.method != "GET":
            return error_response(HTTPStatus.METHOD_NOT_ALLOWED)

        # UriDecodeError propagates; the connection is dropped unanswered.
        try:
            path = self.resolver.resolve(request.uri, self.root)
        except SecurityRejection as e:
            log.info("rejected %r: %s", request.uri, e)
            return error_response(HTTPStatus.FORBIDDEN)

        target = inspect(path)
        if target.hidden or not target.exists:
            return error_response(HTTPStatus.NOT_FOUND)
        if target.is_dir:
            return self._directory(target, request)
        if not target.is_file:
            return error_response(HTTPStatus.NOT_FOUND)
        return self._file(target, request)

    def _directory(self, target: ResolvedTarget, request: Request) -> Response:
        path, query = split_target(request.uri)
        if not path.endswith("/"):
            location = path + "/"
            if query:
                location += "?" + query
            return redirect_response(location)
        try:
            page = listing.render(target.path, path).encode("utf-8")
        except OSError as e:
            log.info("cannot list %r: %s", request.uri, e)
            return error_response(HTTPStatus.NOT_FOUND)
        items = [
            ("Content-Type", listing.LISTING_CONTENT_TYPE),
            ("Content-Length", str(len(page))),
        ]
        if request.keep_alive:
            items.append(("Connection", "keep-alive"))
        return Response(
            HTTPStatus.OK, ResponseHeaders(items), page, keep_alive=request.keep_alive
        )

    def _file(self, target: ResolvedTarget, request: Request) -> Response:
        try:
            fresh = is_not_modified(request.header("If-Modified-Since"), target.mtime)
        except InvalidDateHeader as e:
            log.info("bad conditional header: %s", e)
            return error_response(HTTPStatus.BAD_REQUEST)
        if fresh:
            return not_modified_response()

        try:
            f = open(target.path, "rb", buffering=0)
        except OSError:
            # removed or made unreadable since the stat
            return error_response(HTTPStatus.NOT_FOUND)
        try:
            st = os.fstat(f.fileno())
            target = replace(target, size=st.st_size, mtime=int(st.st_mtime))
            headers = build_file_headers(target, request.keep_alive)
        except BaseException:
            f.close()
            raise
        return Response(HTTPStatus.OK, headers, file=f, keep_alive=request.keep_alive)

    def deliver(self, response: Response, conn: Connection) -> None:
        if response.file is not None:
            try:
                self.engine.send(
                    conn, response.file, response.headers, keep_alive=response.keep_alive
                )
            finally:
                response.file.close()
            return

        try:
            conn.write_head(response.status, response.headers)
            conn.write(response.body)
            conn.flush()
        except OSError as e:
            log.debug("%s write failed: %s", conn.peer, e)
            conn.close()
            return
        if not response.keep_alive:
            conn.close()
