"""Declarative generator configuration.

Config-driven construction path:
  dict -> parse_generator_config() -> GeneratorConfig -> .build() -> Generator

The dict shape (JSON/YAML)::

    method_restrict: [GET, HEAD, OPTIONS]
    path_restrict: ["/api/*"]
    path_except: [/health, /metrics*]
    header: {enabled: true, accept: [Host, Origin]}
    query: {enabled: true, drop: ["utm_*"]}
    cookie: {enabled: false}
    named_stages: [normalize-accept-encoding]
    hash: sha256

Every key is optional. Loading the dict from a file is left to the caller.
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass, field
from functools import partial
from typing import TYPE_CHECKING, Any

from reqid import _stages
from reqid._errors import ConfigParseError, InvalidConfigError
from reqid._generator import Generator
from reqid._registry import require

if TYPE_CHECKING:
    from collections.abc import Callable

    from reqid._stages import Stage
    from reqid._types import HashFactory

DEFAULT_HASH = "sha256"


@dataclass(frozen=True, slots=True)
class ComponentConfig:
    """Inclusion settings for one component (header, query or cookie).

    A disabled component contributes nothing, whatever its lists say.
    An enabled component with neither list is included unfiltered.
    """

    enabled: bool = False
    accept: tuple[str, ...] | None = None
    drop: tuple[str, ...] | None = None


@dataclass(frozen=True, slots=True)
class GeneratorConfig:
    """Configuration for a Generator.

    Stages are produced in a fixed order: method restriction, path
    restriction, path exclusion, header, query and cookie filters, then
    named stages in the order listed.
    """

    method_restrict: tuple[str, ...] | None = None
    path_restrict: tuple[str, ...] | None = None
    path_except: tuple[str, ...] | None = None
    header: ComponentConfig = field(default_factory=ComponentConfig)
    query: ComponentConfig = field(default_factory=ComponentConfig)
    cookie: ComponentConfig = field(default_factory=ComponentConfig)
    named_stages: tuple[str, ...] = ()
    hash_name: str = DEFAULT_HASH

    def to_stages(self) -> tuple[Stage, ...]:
        """Translate this config into pipeline stages.

        Raises:
            UnknownStageError: a named stage is not registered.
        """
        stages: list[Stage] = []
        if self.method_restrict is not None:
            stages.append(_stages.method_restrict(*self.method_restrict))
        if self.path_restrict is not None:
            stages.append(_stages.path_restrict(*self.path_restrict))
        if self.path_except is not None:
            stages.append(_stages.path_except(*self.path_except))
        stages.extend(
            _component_stages(
                self.header,
                _stages.header_accept,
                _stages.header_drop,
                _stages.header_accept_all,
            )
        )
        stages.extend(
            _component_stages(
                self.query,
                _stages.query_accept,
                _stages.query_drop,
                _stages.query_accept_all,
            )
        )
        stages.extend(
            _component_stages(
                self.cookie,
                _stages.cookie_accept,
                _stages.cookie_drop,
                _stages.cookie_accept_all,
            )
        )
        stages.extend(require(name) for name in self.named_stages)
        return tuple(stages)

    def hash_factory(self) -> HashFactory:
        """Resolve hash_name to a hashlib constructor.

        Raises:
            InvalidConfigError: the algorithm is not available.
        """
        if self.hash_name not in hashlib.algorithms_available:
            msg = f"unknown hash algorithm: {self.hash_name!r}"
            raise InvalidConfigError(msg)
        factory = getattr(hashlib, self.hash_name, None)
        if callable(factory):
            return factory
        return partial(hashlib.new, self.hash_name)

    def build(self) -> Generator:
        return Generator(stages=self.to_stages(), hash_factory=self.hash_factory())


def _component_stages(
    config: ComponentConfig,
    accept: Callable[..., Stage],
    drop: Callable[..., Stage],
    accept_all: Callable[[], Stage],
) -> list[Stage]:
    if not config.enabled:
        return []
    stages: list[Stage] = []
    if config.accept is not None:
        stages.append(accept(*config.accept))
    if config.drop is not None:
        stages.append(drop(*config.drop))
    if not stages:
        stages.append(accept_all())
    return stages


def default_generator_config() -> GeneratorConfig:
    """Config most callers want: idempotent methods, identity headers, no tracking params."""
    return GeneratorConfig(
        method_restrict=("GET", "HEAD", "OPTIONS"),
        header=ComponentConfig(
            enabled=True,
            accept=("Host", "Origin", "Authorization", "Accept-Encoding"),
        ),
        query=ComponentConfig(enabled=True, drop=_stages.TRACKING_QUERY_PARAMS),
        cookie=ComponentConfig(enabled=False),
        named_stages=("normalize-accept-encoding",),
    )


# ═══════════════════════════════════════════════════════════════════════════════
# Parsing (dict -> GeneratorConfig)
# ═══════════════════════════════════════════════════════════════════════════════

_TOP_LEVEL_KEYS = frozenset(
    {
        "method_restrict",
        "path_restrict",
        "path_except",
        "header",
        "query",
        "cookie",
        "named_stages",
        "hash",
    }
)
_COMPONENT_KEYS = frozenset({"enabled", "accept", "drop"})


def parse_generator_config(data: dict[str, Any]) -> GeneratorConfig:
    """Parse a dict into a GeneratorConfig.

    Named stages are checked here as well, so an unknown name fails while
    loading configuration rather than when building.

    Raises:
        ConfigParseError: If the dict is malformed.
        UnknownStageError: If a named stage is not registered.
    """
    if not isinstance(data, dict):
        msg = f"expected dict, got {type(data).__name__}"
        raise ConfigParseError(msg)

    unknown = sorted(set(data) - _TOP_LEVEL_KEYS)
    if unknown:
        msg = f"unknown config keys: {unknown}"
        raise ConfigParseError(msg)

    named_stages = _parse_string_list(data, "named_stages") or ()
    for name in named_stages:
        require(name)

    hash_name = data.get("hash", DEFAULT_HASH)
    if not isinstance(hash_name, str):
        msg = f"'hash' must be a string, got {type(hash_name).__name__}"
        raise ConfigParseError(msg)

    return GeneratorConfig(
        method_restrict=_parse_string_list(data, "method_restrict"),
        path_restrict=_parse_string_list(data, "path_restrict"),
        path_except=_parse_string_list(data, "path_except"),
        header=_parse_component(data, "header"),
        query=_parse_component(data, "query"),
        cookie=_parse_component(data, "cookie"),
        named_stages=named_stages,
        hash_name=hash_name,
    )


def _parse_string_list(
    data: dict[str, Any], key: str, label: str | None = None
) -> tuple[str, ...] | None:
    """Parse an optional list of strings. Missing or null returns None."""
    label = label or key
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, list):
        msg = f"'{label}' must be a list, got {type(value).__name__}"
        raise ConfigParseError(msg)
    for item in value:
        if not isinstance(item, str):
            msg = f"'{label}' entries must be strings, got {type(item).__name__}"
            raise ConfigParseError(msg)
    return tuple(value)


def _parse_component(data: dict[str, Any], key: str) -> ComponentConfig:
    value = data.get(key)
    if value is None:
        return ComponentConfig()
    if not isinstance(value, dict):
        msg = f"'{key}' must be a dict, got {type(value).__name__}"
        raise ConfigParseError(msg)

    unknown = sorted(set(value) - _COMPONENT_KEYS)
    if unknown:
        msg = f"unknown '{key}' keys: {unknown}"
        raise ConfigParseError(msg)

    enabled = value.get("enabled", False)
    if not isinstance(enabled, bool):
        msg = f"'{key}.enabled' must be a bool, got {type(enabled).__name__}"
        raise ConfigParseError(msg)

    return ComponentConfig(
        enabled=enabled,
        accept=_parse_string_list(value, "accept", f"{key}.accept"),
        drop=_parse_string_list(value, "drop", f"{key}.drop"),
    )
