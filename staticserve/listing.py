from __future__ import annotations

import html
import os
import re
from typing import List

from .models import ListingEntry
from .resolver import is_hidden

LISTING_CONTENT_TYPE = "text/html; charset=UTF-8"
ALLOWED_FILE_NAME = re.compile(r'[^-._<>&"]?[^<>&"]*')


def scan(directory: str) -> List[ListingEntry]:
    entries = []
    with os.scandir(directory) as it:
        for de in sorted(it, key=lambda d: d.name.lower()):
            try:
                st = de.stat()
            except OSError:
                st = None
            entries.append(
                ListingEntry(
                    name=de.name,
                    allowed=ALLOWED_FILE_NAME.fullmatch(de.name) is not None,
                    readable=st is not None and os.access(de.path, os.R_OK),
                    hidden=is_hidden(de.path, st),
                )
            )
    return entries


def render(directory: str, request_path: str) -> str:
    title = "Listing of: " + html.escape(request_path, quote=False)
    buf = [
        "<!DOCTYPE html>\r\n",
        "<html><head><meta charset='utf-8' /><title>",
        title,
        "</title></head><body>\r\n",
        "<h3>",
        title,
        "</h3>\r\n",
        "<ul>",
        '<li><a href="../">..</a></li>\r\n',
    ]
    for entry in scan(directory):
        if not entry.visible:
            continue
        buf.append(f'<li><a href="{entry.name}">{entry.name}</a></li>\r\n')
    buf.append("</ul></body></html>\r\n")
    return "".join(buf)
