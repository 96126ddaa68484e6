"""HttpRequest: raw request adapter for the RawRequest protocol.

Holds method, path (without query string), header and query multimaps and
cookie pairs. from_wire() builds one from the pieces a server typically
exposes: a method, a request target and a header list.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, TypeAlias
from urllib.parse import parse_qsl, unquote

if TYPE_CHECKING:
    from collections.abc import Iterable

HeaderItems: TypeAlias = "Mapping[str, str | list[str] | tuple[str, ...]] | Iterable[tuple[str, str]]"


@dataclass(frozen=True, slots=True)
class HttpRequest:
    """A transport-agnostic HTTP request.

    Header keys are kept as given; NormalizedRequest canonicalizes them.
    """

    method: str = "GET"
    path: str = "/"
    headers: dict[str, tuple[str, ...]] = field(default_factory=dict)
    query: dict[str, tuple[str, ...]] = field(default_factory=dict)
    cookies: tuple[tuple[str, str], ...] = ()

    @classmethod
    def from_wire(
        cls,
        method: str,
        target: str,
        headers: HeaderItems = (),
    ) -> HttpRequest:
        """Build a request from a method, a request target and headers.

        The path is percent-decoded and the query string is split off the
        target and decoded (blank values kept). Cookie headers are parsed into (name, value) pairs and stay in
        the header map as well.
        """
        path, _, query_string = target.partition("?")
        header_map = _header_multimap(headers)
        cookies = tuple(
            pair
            for key, values in header_map.items()
            if key.lower() == "cookie"
            for value in values
            for pair in parse_cookie_header(value)
        )
        return cls(
            method=method,
            path=unquote(path) or "/",
            headers=header_map,
            query=parse_query(query_string),
            cookies=cookies,
        )

    def header(self, name: str) -> tuple[str, ...]:
        """Get all values of a header (case-insensitive)."""
        lowered = name.lower()
        values: tuple[str, ...] = ()
        for key, vs in self.headers.items():
            if key.lower() == lowered:
                values += vs
        return values


def parse_query(query_string: str) -> dict[str, tuple[str, ...]]:
    """Decode a query string into a multimap, keeping blank values."""
    query: dict[str, tuple[str, ...]] = {}
    for key, value in parse_qsl(query_string, keep_blank_values=True):
        query[key] = query.get(key, ()) + (value,)
    return query


def parse_cookie_header(value: str) -> list[tuple[str, str]]:
    """Split a Cookie header value into (name, value) pairs.

    Fragments without a name are skipped. Surrounding double quotes on a
    value are removed.
    """
    pairs: list[tuple[str, str]] = []
    for part in value.split(";"):
        part = part.strip()
        if not part:
            continue
        name, _, cookie_value = part.partition("=")
        name = name.strip()
        if not name:
            continue
        cookie_value = cookie_value.strip()
        if len(cookie_value) > 1 and cookie_value[0] == cookie_value[-1] == '"':
            cookie_value = cookie_value[1:-1]
        pairs.append((name, cookie_value))
    return pairs


def _header_multimap(headers: HeaderItems) -> dict[str, tuple[str, ...]]:
    items = headers.items() if isinstance(headers, Mapping) else headers
    result: dict[str, tuple[str, ...]] = {}
    for key, value in items:
        values = (value,) if isinstance(value, str) else tuple(value)
        result[key] = result.get(key, ()) + values
    return result
