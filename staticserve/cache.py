from __future__ import annotations

import email.utils
from datetime import timezone
from typing import Optional

from .exceptions import InvalidDateHeader


def parse_http_date(value: str) -> int:
    """Parse an RFC 1123 date such as ``Sun, 06 Nov 1994 08:49:37 GMT``.

    Returns whole epoch seconds.
    """
    try:
        dt = email.utils.parsedate_to_datetime(value)
    except (TypeError, ValueError, IndexError) as e:
        raise InvalidDateHeader(value) from e
    if dt is None:
        raise InvalidDateHeader(value)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return int(dt.timestamp())


def is_not_modified(if_modified_since: Optional[str], last_modified: float) -> bool:
    # HTTP dates carry no sub-second part, so compare whole seconds only.
    if not if_modified_since:
        return False
    return parse_http_date(if_modified_since) == int(last_modified)
