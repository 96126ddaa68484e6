"""Core protocols and value types for reqid.

- RawRequest is the transport-facing port: anything exposing method, path,
  header/query multimaps and cookie pairs can be identified.
- HashLike / HashFactory describe the hash constructor (hashlib-compatible).
- RequestID is the opaque digest handed back to callers.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from typing import Protocol, TypeAlias, runtime_checkable

# Multimap as held by NormalizedRequest: key -> values in arrival order.
Multimap: TypeAlias = dict[str, tuple[str, ...]]


@runtime_checkable
class RawRequest(Protocol):
    """An inbound request as supplied by the host transport.

    reqid never parses HTTP bytes; adapters (see reqid.http) produce this
    shape from whatever the server hands them.
    """

    @property
    def method(self) -> str: ...

    @property
    def path(self) -> str: ...

    @property
    def headers(self) -> Mapping[str, Sequence[str]]: ...

    @property
    def query(self) -> Mapping[str, Sequence[str]]: ...

    @property
    def cookies(self) -> Sequence[tuple[str, str]]: ...


class HashLike(Protocol):
    """The subset of the hashlib interface used for digesting."""

    def update(self, data: bytes, /) -> None: ...

    def digest(self) -> bytes: ...


HashFactory: TypeAlias = Callable[[], HashLike]


@dataclass(frozen=True, slots=True)
class RequestID:
    """Digest identifying the canonical content of a request.

    Identical inputs under an identical generator configuration produce
    equal IDs. The bytes carry no further structure.
    """

    digest: bytes

    def hex(self) -> str:
        return self.digest.hex()

    def __bytes__(self) -> bytes:
        return self.digest

    def __bool__(self) -> bool:
        return bool(self.digest)

    def __len__(self) -> int:
        return len(self.digest)

    def __str__(self) -> str:
        return self.digest.hex()


# Returned alongside included=False.
EMPTY_REQUEST_ID = RequestID(b"")
