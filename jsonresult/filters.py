"""Include/exclude decisions for property paths."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from . import patterns
from .patterns import Pattern


@dataclass(frozen=True, slots=True)
class PropertyFilter:
    """Decides whether the property at a path takes part in the output.

    A path is accepted when the include set is empty or one of its patterns
    matches, and no exclude pattern matches. Include sets are expected to be
    prefix expanded (see `patterns.process_include_patterns`) so that testing
    each level of the descent on its own is sufficient.
    """

    includes: tuple[Pattern, ...] = ()
    excludes: tuple[Pattern, ...] = ()

    @classmethod
    def from_options(
        cls,
        include_properties: str | Iterable[str] | None = None,
        include_wildcards: str | Iterable[str] | None = None,
        exclude_properties: str | Iterable[str] | None = None,
        exclude_wildcards: str | Iterable[str] | None = None,
    ) -> PropertyFilter:
        """Compile comma-delimited regex and wildcard lists."""
        includes = patterns.process_include_patterns(
            patterns.as_set(include_properties), patterns.REGEX
        ) + patterns.process_include_patterns(
            patterns.as_set(include_wildcards), patterns.WILDCARD
        )
        excludes = patterns.compile_all(
            patterns.as_set(exclude_properties), patterns.REGEX
        ) + patterns.compile_all(patterns.as_set(exclude_wildcards), patterns.WILDCARD)
        return cls(includes, excludes)

    @property
    def active(self) -> bool:
        return bool(self.includes or self.excludes)

    def accept(self, path: str) -> bool:
        if self.includes and not any(p.matches(path) for p in self.includes):
            return False
        return not any(p.matches(path) for p in self.excludes)


ACCEPT_ALL = PropertyFilter()
