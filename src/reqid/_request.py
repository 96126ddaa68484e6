"""NormalizedRequest: the projection of a raw request that stages work on.

A NormalizedRequest is built once per generate_id call and owns its own
multimaps. Stages never mutate one; they return a new value via
dataclasses.replace, so nothing a stage does is visible to another call.

Canonical form hashed by hash_request():

    method:<method>\\n
    path:<path-escaped path>\\n
    header:<encoded headers>\\n
    query:<encoded query>\\n
    cookie:<encoded cookies>\\n

Components whose inclusion flag is False encode as the empty string, the
same as an included component with no keys left.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING
from urllib.parse import quote, quote_plus

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping, Sequence

    from reqid._types import HashFactory, Multimap, RawRequest

DEFAULT_METHOD = "GET"

# Bytes allowed in an HTTP header field name besides ASCII letters and digits.
_TOKEN_PUNCTUATION = frozenset("!#$%&'*+-.^_`|~")

# Reserved characters left unescaped inside a single path segment.
_PATH_SAFE = "$&+:=@"

# Lone surrogates (e.g. from surrogateescape-decoded bytes) encode losslessly.
_ENCODE_ERRORS = "surrogatepass"


def canonical_header_key(key: str) -> str:
    """Return the canonical MIME form of a header key.

    The first letter and every letter following a hyphen are upper-cased,
    the rest lower-cased: ``accept-encoding`` -> ``Accept-Encoding``.
    Keys containing a space or any byte outside the token set are returned
    unchanged.
    """
    for ch in key:
        if not (ch.isascii() and (ch.isalnum() or ch in _TOKEN_PUNCTUATION)):
            return key
    out = []
    upper = True
    for ch in key:
        out.append(ch.upper() if upper else ch.lower())
        upper = ch == "-"
    return "".join(out)


def escape_path(path: str) -> str:
    """Percent-escape a path as a single segment (``/`` is escaped too)."""
    return quote(path, safe=_PATH_SAFE, errors=_ENCODE_ERRORS)


def encode_multimap(values: Mapping[str, Sequence[str]] | None) -> str:
    """Form-encode a multimap with keys and each key's values sorted."""
    if not values:
        return ""
    parts = []
    for key in sorted(values):
        escaped_key = quote_plus(key, errors=_ENCODE_ERRORS)
        for value in sorted(values[key]):
            parts.append(f"{escaped_key}={quote_plus(value, errors=_ENCODE_ERRORS)}")
    return "&".join(parts)


def _copy_multimap(values: Mapping[str, Sequence[str]]) -> Multimap:
    return {k: tuple(v) for k, v in values.items()}


def _canonical_headers(values: Mapping[str, Sequence[str]]) -> Multimap:
    headers: dict[str, tuple[str, ...]] = {}
    for key, vs in values.items():
        canonical = canonical_header_key(key)
        headers[canonical] = headers.get(canonical, ()) + tuple(vs)
    return headers


def _cookie_multimap(pairs: Iterable[tuple[str, str]]) -> Multimap:
    cookies: dict[str, tuple[str, ...]] = {}
    for name, value in pairs:
        cookies[name] = cookies.get(name, ()) + (value,)
    return cookies


@dataclass(frozen=True, slots=True)
class NormalizedRequest:
    """Snapshot of a request's method, path and components.

    Each component (headers, query, cookies) has an independent inclusion
    flag; only included components contribute to the digest. Once
    ``excluded`` is set no further stage runs and no ID is produced.
    """

    method: str = DEFAULT_METHOD
    path: str = "/"
    headers: Multimap = field(default_factory=dict)
    query: Multimap = field(default_factory=dict)
    cookies: Multimap = field(default_factory=dict)
    headers_included: bool = False
    query_included: bool = False
    cookies_included: bool = False
    excluded: bool = False

    @classmethod
    def from_raw(cls, raw: RawRequest) -> NormalizedRequest:
        """Build a snapshot owning independent copies of the raw multimaps."""
        return cls(
            method=raw.method or DEFAULT_METHOD,
            path=raw.path,
            headers=_canonical_headers(raw.headers),
            query=_copy_multimap(raw.query),
            cookies=_cookie_multimap(raw.cookies),
        )

    def exclude(self) -> NormalizedRequest:
        return replace(self, excluded=True)

    def without_disabled_components(self) -> NormalizedRequest:
        """Empty every component whose inclusion flag is False."""
        return replace(
            self,
            headers=self.headers if self.headers_included else {},
            query=self.query if self.query_included else {},
            cookies=self.cookies if self.cookies_included else {},
        )

    def canonical_form(self) -> bytes:
        """The exact bytes fed to the hash function."""
        request = self.without_disabled_components()
        text = (
            f"method:{request.method}\n"
            f"path:{escape_path(request.path)}\n"
            f"header:{encode_multimap(request.headers)}\n"
            f"query:{encode_multimap(request.query)}\n"
            f"cookie:{encode_multimap(request.cookies)}\n"
        )
        return text.encode("utf-8", _ENCODE_ERRORS)


def hash_request(request: NormalizedRequest, hash_factory: HashFactory) -> bytes:
    """Digest the canonical form with a fresh hash context."""
    h = hash_factory()
    h.update(request.canonical_form())
    return h.digest()
