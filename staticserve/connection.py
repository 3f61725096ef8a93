from __future__ import annotations

import contextlib
import socket
import ssl
from http import HTTPStatus
from typing import BinaryIO, Optional

from .models import ResponseHeaders

PROTOCOL_VERSION = "HTTP/1.1"


class Connection:
    """State for one accepted connection, passed explicitly to each stage.

    The response head is buffered and goes out with the first body write
    or on :meth:`flush`, so a head-only response and a zero-length file
    both leave in a single send.
    """

    def __init__(
        self,
        sock: socket.socket,
        peer: str = "-",
        encrypted: Optional[bool] = None,
    ) -> None:
        self.sock = sock
        self.peer = peer
        if encrypted is None:
            encrypted = isinstance(sock, ssl.SSLSocket)
        self.encrypted = encrypted
        self.closed = False
        self._pending = bytearray()

    def write_head(self, status: HTTPStatus, headers: ResponseHeaders) -> None:
        lines = [f"{PROTOCOL_VERSION} {status.value} {status.phrase}\r\n"]
        lines.extend(f"{name}: {value}\r\n" for name, value in headers)
        lines.append("\r\n")
        self._pending += "".join(lines).encode("latin-1", "strict")

    def write(self, data) -> None:
        if self._pending:
            self._pending += data
            data = bytes(self._pending)
            self._pending.clear()
        if data:
            self.sock.sendall(data)

    def flush(self) -> None:
        if self._pending:
            data = bytes(self._pending)
            self._pending.clear()
            self.sock.sendall(data)

    def sendfile(self, f: BinaryIO, offset: int, count: int) -> int:
        self.flush()
        return self.sock.sendfile(f, offset=offset, count=count)

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        self._pending.clear()
        with contextlib.suppress(OSError):
            self.sock.shutdown(socket.SHUT_RDWR)
