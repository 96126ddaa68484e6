"""Pipeline stages: tagged variants plus a single interpreter.

Each stage is a frozen dataclass describing what it does; apply_stage()
is the only place that knows how. The Stage union is pattern-matchable via
match/case, and stages compare by value.

Stages run in order. The first stage that marks a request excluded stops
the pipeline.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import StrEnum
from typing import TYPE_CHECKING, TypeAlias

from reqid._errors import InvalidConfigError, UnknownStageError
from reqid._named import NAMED_TRANSFORMS, NamedStage
from reqid._request import canonical_header_key
from reqid._wildcard import WildCardSet

if TYPE_CHECKING:
    from collections.abc import Iterable

    from reqid._request import NormalizedRequest

TRACKING_QUERY_PARAMS = ("utm_*", "gclid", "fbclid")


class Component(StrEnum):
    HEADER = "header"
    QUERY = "query"
    COOKIE = "cookie"


class FilterMode(StrEnum):
    ACCEPT = "accept"
    DROP = "drop"
    ENABLE = "enable"


# Component -> (multimap attribute, inclusion flag attribute)
_COMPONENT_FIELDS = {
    Component.HEADER: ("headers", "headers_included"),
    Component.QUERY: ("query", "query_included"),
    Component.COOKIE: ("cookies", "cookies_included"),
}


@dataclass(frozen=True, slots=True)
class MethodRestrict:
    """Exclude the request unless its method is listed (exact match)."""

    methods: frozenset[str]


@dataclass(frozen=True, slots=True)
class PathRestrict:
    """Exclude the request unless its path matches one of the patterns."""

    patterns: WildCardSet


@dataclass(frozen=True, slots=True)
class PathExcept:
    """Exclude the request if its path matches any of the patterns."""

    patterns: WildCardSet


@dataclass(frozen=True, slots=True)
class ComponentFilter:
    """Include a component and filter its keys.

    ACCEPT keeps only keys matching some pattern, DROP removes keys matching
    any pattern, ENABLE keeps everything. Header patterns are canonicalized
    at construction so they compare against canonical header keys.
    """

    component: Component
    mode: FilterMode
    patterns: WildCardSet = field(default_factory=WildCardSet)

    def __post_init__(self) -> None:
        try:
            object.__setattr__(self, "component", Component(self.component))
            object.__setattr__(self, "mode", FilterMode(self.mode))
        except ValueError as exc:
            msg = f"invalid component filter: {exc}"
            raise InvalidConfigError(msg) from exc
        if self.component is Component.HEADER and self.patterns:
            canonical = WildCardSet.of(canonical_header_key(p) for p in self.patterns.patterns)
            object.__setattr__(self, "patterns", canonical)

    def keeps(self, key: str) -> bool:
        match self.mode:
            case FilterMode.ACCEPT:
                return not self.patterns.none_match(key)
            case FilterMode.DROP:
                return not self.patterns.any_match(key)
            case _:
                return True


@dataclass(frozen=True, slots=True)
class Named:
    """Apply a transform from the named stage table.

    Raises UnknownStageError at construction if name has no transform.
    """

    name: NamedStage

    def __post_init__(self) -> None:
        try:
            name = NamedStage(self.name)
        except ValueError:
            name = None
        if name not in NAMED_TRANSFORMS:
            raise UnknownStageError(str(self.name), [str(n) for n in NAMED_TRANSFORMS])
        object.__setattr__(self, "name", name)


Stage: TypeAlias = MethodRestrict | PathRestrict | PathExcept | ComponentFilter | Named

STAGE_TYPES = (MethodRestrict, PathRestrict, PathExcept, ComponentFilter, Named)


def apply_stage(stage: Stage, request: NormalizedRequest) -> NormalizedRequest:
    """Run one stage and return the resulting request."""
    match stage:
        case MethodRestrict(methods=methods):
            return request if request.method in methods else request.exclude()
        case PathRestrict(patterns=patterns):
            return request if patterns.any_match(request.path) else request.exclude()
        case PathExcept(patterns=patterns):
            return request.exclude() if patterns.any_match(request.path) else request
        case ComponentFilter():
            return _apply_filter(stage, request)
        case Named(name=name):
            return NAMED_TRANSFORMS[name](request)
        case _:
            msg = f"unknown stage type: {type(stage).__name__}"
            raise TypeError(msg)


def run_stages(
    stages: Iterable[Stage], request: NormalizedRequest
) -> tuple[NormalizedRequest, Stage | None]:
    """Run stages in order, stopping at the first exclusion.

    Returns the final request and the stage that excluded it (or None).
    """
    for stage in stages:
        request = apply_stage(stage, request)
        if request.excluded:
            return request, stage
    return request, None


def _apply_filter(stage: ComponentFilter, request: NormalizedRequest) -> NormalizedRequest:
    values_attr, flag_attr = _COMPONENT_FIELDS[stage.component]
    values = getattr(request, values_attr)
    if stage.mode is not FilterMode.ENABLE:
        values = {k: v for k, v in values.items() if stage.keeps(k)}
    return replace(request, **{values_attr: values, flag_attr: True})


# ═══════════════════════════════════════════════════════════════════════════════
# Convenience constructors
# ═══════════════════════════════════════════════════════════════════════════════


def method_restrict(*methods: str) -> MethodRestrict:
    return MethodRestrict(frozenset(methods))


def path_restrict(*patterns: str) -> PathRestrict:
    return PathRestrict(WildCardSet.of(patterns))


def path_except(*patterns: str) -> PathExcept:
    return PathExcept(WildCardSet.of(patterns))


def header_accept(*patterns: str) -> ComponentFilter:
    return ComponentFilter(Component.HEADER, FilterMode.ACCEPT, WildCardSet.of(patterns))


def header_drop(*patterns: str) -> ComponentFilter:
    return ComponentFilter(Component.HEADER, FilterMode.DROP, WildCardSet.of(patterns))


def header_accept_all() -> ComponentFilter:
    return ComponentFilter(Component.HEADER, FilterMode.ENABLE)


def query_accept(*patterns: str) -> ComponentFilter:
    return ComponentFilter(Component.QUERY, FilterMode.ACCEPT, WildCardSet.of(patterns))


def query_drop(*patterns: str) -> ComponentFilter:
    return ComponentFilter(Component.QUERY, FilterMode.DROP, WildCardSet.of(patterns))


def query_accept_all() -> ComponentFilter:
    return ComponentFilter(Component.QUERY, FilterMode.ENABLE)


def query_drop_tracking() -> ComponentFilter:
    """Drop utm_* campaign parameters and ad click identifiers."""
    return query_drop(*TRACKING_QUERY_PARAMS)


def cookie_accept(*patterns: str) -> ComponentFilter:
    return ComponentFilter(Component.COOKIE, FilterMode.ACCEPT, WildCardSet.of(patterns))


def cookie_drop(*patterns: str) -> ComponentFilter:
    return ComponentFilter(Component.COOKIE, FilterMode.DROP, WildCardSet.of(patterns))


def cookie_accept_all() -> ComponentFilter:
    return ComponentFilter(Component.COOKIE, FilterMode.ENABLE)
