"""Compiled include/exclude patterns over dotted property paths."""

from __future__ import annotations

import abc
import re
from collections.abc import Iterable
from dataclasses import dataclass

from . import errors, logs
from .registry import Registry

REGEX = 'regex'
WILDCARD = 'wildcard'

log = logs.get(__name__)


@dataclass(frozen=True, slots=True)
class Pattern:
    """A compiled path pattern. Matching is always against the whole path."""

    source: str
    flavor: str
    regex: re.Pattern[str]

    def matches(self, path: str) -> bool:
        return self.regex.fullmatch(path) is not None

    def __str__(self) -> str:
        return self.regex.pattern


class PatternCompiler(abc.ABC):
    """Base class for pattern flavors."""

    NAME: str
    # separator between path segments, in the flavor's own syntax
    SEPARATOR: str
    # opening of an index segment, in the flavor's own syntax
    INDEX_OPEN: str

    def __init_subclass__(cls) -> None:
        REGISTRY[cls.NAME] = cls

    @abc.abstractmethod
    def translate(self, pattern: str) -> str:
        """Return the regular expression source for `pattern`."""
        raise NotImplementedError('abstract')

    def compile(self, pattern: str) -> Pattern:
        source = self.translate(pattern)
        try:
            regex = re.compile(source)
        except re.error as exc:
            raise errors.PatternError(pattern, str(exc)) from exc
        return Pattern(pattern, self.NAME, regex)


REGISTRY = Registry(__name__, PatternCompiler)


class RegexCompiler(PatternCompiler):
    """Patterns given directly as regular expressions."""

    NAME = REGEX
    SEPARATOR = r'\.'
    INDEX_OPEN = r'\['

    def translate(self, pattern: str) -> str:
        return pattern


class WildcardCompiler(PatternCompiler):
    """Wildcard patterns.

    `*` matches within one path segment, `**` matches anything including
    separators and indexes, and a backslash makes the next character literal.
    """

    NAME = WILDCARD
    SEPARATOR = '.'
    INDEX_OPEN = '['

    def translate(self, pattern: str) -> str:
        parts: list[str] = []
        i = 0
        while i < len(pattern):
            c = pattern[i]
            if c == '\\' and i + 1 < len(pattern):
                parts.append(re.escape(pattern[i + 1]))
                i += 2
            elif pattern.startswith('**', i):
                parts.append('.*')
                i += 2
            elif c == '*':
                parts.append(r'[^.\[\]]*')
                i += 1
            else:
                parts.append(re.escape(c))
                i += 1
        return ''.join(parts)


def compiler(flavor: str) -> PatternCompiler:
    """Return the compiler registered for `flavor`."""
    try:
        cls = REGISTRY[flavor]
    except errors.RegistryError as exc:
        raise errors.PatternError(flavor, f'unknown pattern flavor ({exc})') from exc
    return cls()


def compile(pattern: str, flavor: str = REGEX) -> Pattern:
    """Compile a single `pattern` of the given `flavor`."""
    return compiler(flavor).compile(pattern)


def matches(pattern: Pattern, path: str) -> bool:
    return pattern.matches(path)


def as_set(comma_delim: str | Iterable[str] | None) -> tuple[str, ...]:
    """Split a comma-delimited list into unique, stripped, non-empty items."""
    if comma_delim is None:
        return ()
    items = comma_delim.split(',') if isinstance(comma_delim, str) else comma_delim
    return tuple(dict.fromkeys(s.strip() for s in items if s and s.strip()))


def compile_all(patterns: Iterable[str], flavor: str = REGEX) -> tuple[Pattern, ...]:
    comp = compiler(flavor)
    return tuple(comp.compile(p) for p in patterns)


def process_include_patterns(patterns: Iterable[str], flavor: str = REGEX) -> tuple[Pattern, ...]:
    """Compile include patterns along with a pattern for each of their ancestors.

    A leaf can only be reached if every container above it is accepted, so
    `a.b.c` also yields `a` and `a.b`. An indexed segment such as `list[*]`
    additionally yields the unindexed `list`.
    """
    comp = compiler(flavor)
    sep = comp.SEPARATOR
    index_open = comp.INDEX_OPEN

    exprs: dict[str, None] = {}
    for pattern in patterns:
        expr = ''
        for piece in pattern.split(sep):
            expr = f'{expr}{sep}{piece}' if expr else piece
            if index_open in piece:
                exprs.setdefault(expr[: expr.rindex(index_open)], None)
            exprs.setdefault(expr, None)

    compiled = tuple(comp.compile(expr) for expr in exprs if expr)
    log.debug('include patterns: %s', ', '.join(str(p) for p in compiled))
    return compiled
