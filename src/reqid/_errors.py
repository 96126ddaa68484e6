"""Error types for reqid.

Every error is raised while configuring a generator. Computing an ID never
raises: a request that is not eligible is reported as excluded.
"""

from __future__ import annotations


class RequestIdError(Exception):
    """Base class for reqid configuration errors."""


class UnknownStageError(RequestIdError):
    """A named stage was not found in the stage registry."""

    def __init__(self, name: str, available: list[str]) -> None:
        self.name = name
        self.available = sorted(available)
        if self.available:
            registered = ", ".join(self.available)
            msg = f"unknown named stage: {name!r} (registered: {registered})"
        else:
            msg = f"unknown named stage: {name!r} (no named stages are registered)"
        super().__init__(msg)


class InvalidConfigError(RequestIdError):
    """A generator configuration was semantically invalid."""

    def __init__(self, source: str) -> None:
        self.source = source
        super().__init__(f"invalid config: {source}")


class ConfigParseError(RequestIdError):
    """Error parsing a config dict into a GeneratorConfig."""
