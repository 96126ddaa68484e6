"""reqid.http: HTTP request adapter.

Provides HttpRequest, an implementation of the RawRequest protocol, plus the
header-key canonicalization and wire parsing helpers it relies on.
"""

from reqid._request import canonical_header_key
from reqid.http._request import HttpRequest, parse_cookie_header, parse_query

__all__ = [
    "HttpRequest",
    "canonical_header_key",
    "parse_cookie_header",
    "parse_query",
]
