"""Body transfer for successful file responses.

Plaintext connections hand the file to the kernel with ``sendfile``.
TLS connections cannot do that, since the SSL layer has to see the
plaintext, so the file is read in fixed blocks and each block is
written through the SSL socket.
"""

from __future__ import annotations

import logging
from http import HTTPStatus
from typing import BinaryIO, Generator, Iterator, Optional

from .connection import Connection
from .exceptions import TransferError
from .models import (
    ResponseHeaders,
    TransferProgress,
    TransferResult,
    TransferState,
)
from .utils import human_size

log = logging.getLogger(__name__)

CHUNK_SIZE = 8192
DEFAULT_WINDOW_MB = 8


class TransferEngine:
    def __init__(
        self,
        window: int = DEFAULT_WINDOW_MB * 1024 * 1024,
        chunk_size: int = CHUNK_SIZE,
    ) -> None:
        self.window = max(CHUNK_SIZE, int(window))
        self.chunk_size = chunk_size

    def send(
        self,
        conn: Connection,
        f: BinaryIO,
        headers: ResponseHeaders,
        encrypted: Optional[bool] = None,
        keep_alive: bool = False,
    ) -> TransferResult:
        """Write the head and the whole body of ``f``.

        The caller owns ``f`` and closes it; the connection is closed
        here on failure, and on success unless ``keep_alive``.
        """
        it = self.stream(conn, f, headers, encrypted, keep_alive)
        while True:
            try:
                progress = next(it)
            except StopIteration as stop:
                return stop.value
            if progress.total < 0:
                log.debug("%s transfer progress: %d", conn.peer, progress.sent)
            else:
                log.debug(
                    "%s transfer progress: %d / %d",
                    conn.peer,
                    progress.sent,
                    progress.total,
                )

    def stream(
        self,
        conn: Connection,
        f: BinaryIO,
        headers: ResponseHeaders,
        encrypted: Optional[bool] = None,
        keep_alive: bool = False,
    ) -> Generator[TransferProgress, None, TransferResult]:
        if encrypted is None:
            encrypted = conn.encrypted
        total = int(headers.get("Content-Length", "-1"))
        state = TransferState.NOT_STARTED
        sent = 0
        try:
            conn.write_head(HTTPStatus.OK, headers)
            state = TransferState.IN_PROGRESS
            body = (
                self._chunked(conn, f, total)
                if encrypted
                else self._zero_copy(conn, f, total)
            )
            for n in body:
                sent += n
                yield TransferProgress(sent, total)
            if total >= 0 and sent != total:
                raise TransferError(f"file ended after {sent} of {total} bytes")
            # terminal marker: nothing may remain buffered past this point
            conn.flush()
            state = TransferState.COMPLETED
        except (OSError, TransferError) as e:
            state = TransferState.FAILED
            log.warning("%s transfer failed after %d bytes: %s", conn.peer, sent, e)
            conn.close()
            return TransferResult(state, sent, total)

        log.info("%s transfer complete: %s", conn.peer, human_size(sent))
        if not keep_alive:
            conn.close()
        return TransferResult(state, sent, total)

    def _zero_copy(self, conn: Connection, f: BinaryIO, total: int) -> Iterator[int]:
        offset = 0
        while offset < total:
            n = conn.sendfile(f, offset, min(self.window, total - offset))
            if not n:
                return
            offset += n
            yield n

    def _chunked(self, conn: Connection, f: BinaryIO, total: int) -> Iterator[int]:
        for block in self.iter_blocks(f, total):
            if not block:
                conn.flush()
                return
            conn.write(block)
            yield len(block)

    def iter_blocks(self, f: BinaryIO, total: int) -> Iterator[memoryview]:
        """Yield ``chunk_size`` blocks of ``f`` followed by one empty block.

        The buffer is reused, so each block is only valid until the next
        one is requested.
        """
        buf = bytearray(self.chunk_size)
        mv = memoryview(buf)
        f.seek(0)
        rem = total
        while rem != 0:
            size = self.chunk_size if rem < 0 else min(self.chunk_size, rem)
            n = f.readinto(mv[:size])
            if not n:
                break
            rem -= n
            yield mv[:n]
        yield mv[:0]
