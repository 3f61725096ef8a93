from __future__ import annotations

import enum
from dataclasses import dataclass, field
from http import HTTPStatus
from http.client import HTTPMessage
from typing import BinaryIO, Iterable, Iterator, Optional, Tuple


@dataclass(frozen=True)
class Request:
    method: str
    uri: str
    headers: HTTPMessage = field(default_factory=HTTPMessage)
    decoded: bool = True
    keep_alive: bool = False

    @classmethod
    def undecoded(cls) -> "Request":
        return cls(method="", uri="", decoded=False)

    def header(self, name: str) -> Optional[str]:
        return self.headers.get(name)


class TargetKind(enum.Enum):
    FILE = "file"
    DIRECTORY = "directory"
    OTHER = "other"


@dataclass(frozen=True)
class ResolvedTarget:
    path: str
    exists: bool
    kind: TargetKind = TargetKind.OTHER
    mtime: int = 0
    size: int = 0
    hidden: bool = False

    @property
    def is_file(self) -> bool:
        return self.exists and self.kind is TargetKind.FILE

    @property
    def is_dir(self) -> bool:
        return self.exists and self.kind is TargetKind.DIRECTORY


class ResponseHeaders:
    """Ordered, immutable header list with case-insensitive lookup."""

    __slots__ = ("_items",)

    def __init__(self, items: Iterable[Tuple[str, str]] = ()):
        object.__setattr__(self, "_items", tuple((str(k), str(v)) for k, v in items))

    def __setattr__(self, name, value):
        raise AttributeError("ResponseHeaders is immutable")

    def get(self, name: str, default: Optional[str] = None) -> Optional[str]:
        lname = name.lower()
        for k, v in self._items:
            if k.lower() == lname:
                return v
        return default

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.get(name) is not None

    def __getitem__(self, name: str) -> str:
        value = self.get(name)
        if value is None:
            raise KeyError(name)
        return value

    def __iter__(self) -> Iterator[Tuple[str, str]]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ResponseHeaders):
            return NotImplemented
        return self._items == other._items

    def __hash__(self) -> int:
        return hash(self._items)

    def __repr__(self) -> str:
        return f"ResponseHeaders({list(self._items)!r})"


@dataclass(frozen=True)
class Response:
    status: HTTPStatus
    headers: ResponseHeaders = field(default_factory=ResponseHeaders)
    body: bytes = b""
    file: Optional[BinaryIO] = None
    keep_alive: bool = False


class TransferState(enum.Enum):
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass(frozen=True)
class TransferProgress:
    sent: int
    # -1 when the total is not known up front
    total: int = -1


@dataclass(frozen=True)
class TransferResult:
    state: TransferState
    sent: int
    total: int


@dataclass(frozen=True)
class ListingEntry:
    name: str
    allowed: bool
    readable: bool
    hidden: bool = False

    @property
    def visible(self) -> bool:
        return self.allowed and self.readable and not self.hidden
