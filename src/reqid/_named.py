"""Named stages: transforms addressable by a symbolic name.

The set of names is closed: NamedStage enumerates every one, and
NAMED_TRANSFORMS maps each to its transform. Nothing is registered at
runtime.
"""

from __future__ import annotations

from dataclasses import replace
from enum import StrEnum
from types import MappingProxyType
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Callable

    from reqid._request import NormalizedRequest

ACCEPT_ENCODING = "Accept-Encoding"


class NamedStage(StrEnum):
    NORMALIZE_ACCEPT_ENCODING = "normalize-accept-encoding"


def normalize_accept_encoding(request: NormalizedRequest) -> NormalizedRequest:
    """Collapse Accept-Encoding to ``gzip`` or drop it.

    If any value mentions gzip the header becomes the single value ``gzip``,
    otherwise the header is removed. Inclusion flags are left alone.
    """
    values = request.headers.get(ACCEPT_ENCODING, ())
    headers = {k: v for k, v in request.headers.items() if k != ACCEPT_ENCODING}
    if any("gzip" in v for v in values):
        headers[ACCEPT_ENCODING] = ("gzip",)
    return replace(request, headers=headers)


NAMED_TRANSFORMS: MappingProxyType[
    NamedStage, Callable[[NormalizedRequest], NormalizedRequest]
] = MappingProxyType(
    {
        NamedStage.NORMALIZE_ACCEPT_ENCODING: normalize_accept_encoding,
    }
)
