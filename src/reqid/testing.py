"""Test utilities for reqid.

make_request() builds an HttpRequest from plain dicts so tests and
examples don't have to spell out multimaps.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from reqid.http import HttpRequest

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping


def make_request(
    method: str = "GET",
    path: str = "/",
    *,
    headers: Mapping[str, str | list[str]] | None = None,
    query: Mapping[str, str | list[str]] | Iterable[tuple[str, str]] | None = None,
    cookies: Mapping[str, str] | Iterable[tuple[str, str]] | None = None,
) -> HttpRequest:
    """Build an HttpRequest.

    Single strings become one-value lists. Query and cookies also accept a
    sequence of pairs, which preserves repeated keys.

    >>> from reqid.testing import make_request
    >>> make_request(query={"id": "1"}).query
    {'id': ('1',)}
    """
    return HttpRequest(
        method=method,
        path=path,
        headers=_multimap(headers),
        query=_multimap(query),
        cookies=tuple(_pairs(cookies)),
    )


def _pairs(
    values: Mapping[str, str | list[str]] | Iterable[tuple[str, str]] | None,
) -> list[tuple[str, str]]:
    if values is None:
        return []
    if hasattr(values, "items"):
        pairs = []
        for key, value in values.items():
            if isinstance(value, str):
                pairs.append((key, value))
            else:
                pairs.extend((key, v) for v in value)
        return pairs
    return list(values)


def _multimap(
    values: Mapping[str, str | list[str]] | Iterable[tuple[str, str]] | None,
) -> dict[str, tuple[str, ...]]:
    result: dict[str, tuple[str, ...]] = {}
    for key, value in _pairs(values):
        result[key] = result.get(key, ()) + (value,)
    return result
