"""Named stage registry: symbolic name -> Named stage.

The table is built once at import time from the closed NamedStage
enumeration and is read-only. Configuration paths go through require(),
so an unknown name fails before a generator is ever built.
"""

from __future__ import annotations

import logging
from types import MappingProxyType

import structlog

from reqid._errors import UnknownStageError
from reqid._named import NAMED_TRANSFORMS, NamedStage
from reqid._stages import Named

logger = structlog.wrap_logger(
    logging.getLogger(__name__), wrapper_class=structlog.stdlib.BoundLogger
)

_REGISTRY: MappingProxyType[str, Named] = MappingProxyType(
    {str(name): Named(name) for name in NamedStage if name in NAMED_TRANSFORMS}
)


def lookup(name: str) -> Named | None:
    """Return the stage registered under name, or None."""
    return _REGISTRY.get(name)


def require(name: str) -> Named:
    """Return the stage registered under name.

    Raises:
        UnknownStageError: name is not registered.
    """
    stage = _REGISTRY.get(name)
    if stage is None:
        logger.warning("config.unknown_stage", name=name)
        raise UnknownStageError(name, list(_REGISTRY))
    return stage


def contains(name: str) -> bool:
    return name in _REGISTRY


def stage_names() -> list[str]:
    """Return all registered stage names (sorted)."""
    return sorted(_REGISTRY)
