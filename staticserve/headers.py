from __future__ import annotations

import email.utils
import mimetypes
import time
from typing import Optional

from .models import ResolvedTarget, ResponseHeaders

HTTP_CACHE_SECONDS = 60
DEFAULT_CONTENT_TYPE = "application/octet-stream"


def http_date(ts: float) -> str:
    return email.utils.formatdate(ts, usegmt=True)


def content_type_for(path: str) -> str:
    return mimetypes.guess_type(path)[0] or DEFAULT_CONTENT_TYPE


def build_file_headers(
    target: ResolvedTarget, keep_alive: bool, now: Optional[float] = None
) -> ResponseHeaders:
    """Headers for a 200 response carrying the whole of ``target``.

    ``Connection`` is only emitted for keep-alive; without it the caller
    closes the connection after the last body byte.
    """
    if now is None:
        now = time.time()
    items = [
        ("Content-Length", str(target.size)),
        ("Content-Type", content_type_for(target.path)),
        ("Date", http_date(now)),
        ("Expires", http_date(now + HTTP_CACHE_SECONDS)),
        ("Cache-Control", f"private, max-age={HTTP_CACHE_SECONDS}"),
        ("Last-Modified", http_date(target.mtime)),
    ]
    if keep_alive:
        items.append(("Connection", "keep-alive"))
    return ResponseHeaders(items)
