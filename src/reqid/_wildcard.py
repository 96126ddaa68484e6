"""Wildcard string matching.

A wildcard pattern has three forms:

| Pattern | Meaning                         |
|---------|---------------------------------|
| ``*``   | matches every string            |
| ``S*``  | matches strings starting with S |
| ``S``   | matches exactly S               |

Patterns are case-sensitive. Callers normalize the case of their inputs
(header keys are canonicalized before matching).

The module-level functions evaluate raw pattern strings. ``WildCard`` and
``WildCardSet`` compile patterns once, which is what stages use.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable


class WildCardKind(StrEnum):
    ANY = "any"
    PREFIX = "prefix"
    EXACT = "exact"


@dataclass(frozen=True, slots=True)
class WildCard:
    """A compiled wildcard pattern.

    The kind is decided at construction time. The empty pattern is an exact
    match against the empty string.
    """

    pattern: str
    kind: WildCardKind = field(init=False)
    _operand: str = field(init=False, repr=False)

    def __post_init__(self) -> None:
        if self.pattern == "*":
            kind, operand = WildCardKind.ANY, ""
        elif self.pattern.endswith("*"):
            kind, operand = WildCardKind.PREFIX, self.pattern[:-1]
        else:
            kind, operand = WildCardKind.EXACT, self.pattern
        object.__setattr__(self, "kind", kind)
        object.__setattr__(self, "_operand", operand)

    def matches(self, value: str, /) -> bool:
        match self.kind:
            case WildCardKind.ANY:
                return True
            case WildCardKind.PREFIX:
                return value.startswith(self._operand)
            case _:
                return value == self._operand


@dataclass(frozen=True, slots=True)
class WildCardSet:
    """An ordered set of compiled wildcards.

    ``none_match`` is the negation of ``any_match``; accept-list stages
    delete a key when it holds.
    """

    wildcards: tuple[WildCard, ...] = ()

    @classmethod
    def of(cls, patterns: Iterable[str]) -> WildCardSet:
        return cls(tuple(WildCard(p) for p in patterns))

    @property
    def patterns(self) -> tuple[str, ...]:
        return tuple(w.pattern for w in self.wildcards)

    def any_match(self, value: str, /) -> bool:
        """True if at least one wildcard matches. Empty set returns False."""
        return any(w.matches(value) for w in self.wildcards)

    def all_match(self, value: str, /) -> bool:
        """True if every wildcard matches. Empty set returns True."""
        return all(w.matches(value) for w in self.wildcards)

    def none_match(self, value: str, /) -> bool:
        """True if no wildcard matches. Empty set returns True."""
        return not self.any_match(value)

    def __len__(self) -> int:
        return len(self.wildcards)


def match(pattern: str, value: str) -> bool:
    """Match a single wildcard pattern against a string."""
    return WildCard(pattern).matches(value)


def any_match(patterns: Iterable[str], value: str) -> bool:
    return any(match(p, value) for p in patterns)


def all_match(patterns: Iterable[str], value: str) -> bool:
    return all(match(p, value) for p in patterns)


def none_match(patterns: Iterable[str], value: str) -> bool:
    return not any_match(patterns, value)
