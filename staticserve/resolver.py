from __future__ import annotations

import os
import re
import stat
from typing import Optional, Tuple
from urllib.parse import unquote, urlsplit

from .exceptions import SecurityRejection, UriDecodeError
from .models import ResolvedTarget, TargetKind

INSECURE_URI = re.compile(r'[<>&"]')
_BAD_ESCAPE = re.compile(r"%(?![0-9A-Fa-f]{2})")
_ABSOLUTE_FORM = re.compile(r"^[A-Za-z][A-Za-z0-9+.-]*://")


def split_target(uri: str) -> Tuple[str, str]:
    """Split a request target into its raw path and query.

    Origin-form targets are split by hand so that a leading ``//`` stays
    part of the path instead of being read as an authority.
    """
    if _ABSOLUTE_FORM.match(uri):
        parts = urlsplit(uri)
        return parts.path, parts.query
    path, _, query = uri.split("#", 1)[0].partition("?")
    return path, query


def decode_uri(uri: str) -> str:
    """Percent-decode the path part of ``uri`` as strict UTF-8."""
    path, _ = split_target(uri)
    if _BAD_ESCAPE.search(path):
        raise UriDecodeError("malformed percent escape in request URI")
    try:
        return unquote(path, encoding="utf-8", errors="strict")
    except UnicodeDecodeError as e:
        raise UriDecodeError("request URI is not valid UTF-8") from e


def is_hidden(path: str, st: Optional[os.stat_result] = None) -> bool:
    name = os.path.basename(path.rstrip(os.sep))
    if name.startswith("."):
        return True
    attrs = getattr(st, "st_file_attributes", 0) if st is not None else 0
    return bool(attrs & getattr(stat, "FILE_ATTRIBUTE_HIDDEN", 0))


class PathResolver:
    """Maps request URIs onto paths under a working root.

    The default check is purely lexical: dot segments and markup
    characters are refused, and the result is not canonicalized. With
    ``strict`` the joined path is also resolved through symlinks and
    must stay inside the canonical root.
    """

    def __init__(self, strict: bool = False):
        self.strict = strict

    def resolve(self, uri: str, root: str) -> str:
        path = decode_uri(uri)
        if not path or path[0] != "/":
            raise SecurityRejection("path must be absolute")

        path = path.replace("/", os.sep)

        if (
            os.sep + "." in path
            or "." + os.sep in path
            or path[0] == "."
            or path[-1] == "."
            or INSECURE_URI.search(path)
        ):
            raise SecurityRejection("dot segment or disallowed character in path")

        full = root.rstrip(os.sep) + path
        if self.strict:
            self._check_containment(full, root)
        return full

    @staticmethod
    def _check_containment(full: str, root: str) -> None:
        root_real = os.path.realpath(root)
        real = os.path.realpath(full)
        if real != root_real and not real.startswith(root_real.rstrip(os.sep) + os.sep):
            raise SecurityRejection("path escapes the working root")


def inspect(path: str) -> ResolvedTarget:
    """Stat ``path`` for the current request only."""
    try:
        st = os.stat(path)
    except (OSError, ValueError):
        # unreadable parents and embedded NULs are indistinguishable from absence
        return ResolvedTarget(path=path, exists=False, hidden=is_hidden(path))

    if stat.S_ISREG(st.st_mode):
        kind = TargetKind.FILE
    elif stat.S_ISDIR(st.st_mode):
        kind = TargetKind.DIRECTORY
    else:
        kind = TargetKind.OTHER
    return ResolvedTarget(
        path=path,
        exists=True,
        kind=kind,
        mtime=int(st.st_mtime),
        size=st.st_size if kind is TargetKind.FILE else 0,
        hidden=is_hidden(path, st),
    )
