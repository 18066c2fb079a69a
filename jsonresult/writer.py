"""Reflective JSON writer with path filtering and cycle detection."""

from __future__ import annotations

import enum
import math
import re
from collections.abc import Iterable, Mapping
from datetime import date, time
from decimal import Decimal
from typing import Any

from . import errors, logs, utils
from .filters import ACCEPT_ALL, PropertyFilter
from .introspect import Kind, Property, classify, properties

DEFAULT_DATE_FORMAT = '%Y-%m-%dT%H:%M:%S'
DEFAULT_TIME_FORMAT = '%H:%M:%S'

# written in place of a value that is already being written further up
CYCLE_SENTINEL = '""'
ENUM_NAME_PROPERTY = '_name'

ESCAPES = {
    '"': '\\"',
    '\\': '\\\\',
    '\b': '\\b',
    '\f': '\\f',
    '\n': '\\n',
    '\r': '\\r',
    '\t': '\\t',
    '/': '\\/',
}
ESCAPE_RE = re.compile(r'[\x00-\x1f"\\/\x7f-\U0010ffff]')

log = logs.get(__name__)


def _escape_char(match: re.Match[str]) -> str:
    c = match.group(0)
    try:
        return ESCAPES[c]
    except KeyError:
        pass
    n = ord(c)
    if n < 0x10000:
        return f'\\u{n:04x}'
    n -= 0x10000
    return f'\\u{0xD800 | (n >> 10):04x}\\u{0xDC00 | (n & 0x3FF):04x}'


def escape(text: str) -> str:
    """Escape `text` for use inside a JSON string literal.

    The result is plain ASCII: everything outside the printable range is
    written as `\\uXXXX`, with surrogate pairs above the BMP.
    """
    return ESCAPE_RE.sub(_escape_char, text)


def serialize(
    value: Any,
    excludes: Iterable[Any] | None = None,
    includes: Iterable[Any] | None = None,
    ignore_hierarchy: bool = True,
    enum_as_bean: bool = False,
    exclude_null: bool = False,
    ignore_interfaces: bool = True,
) -> str:
    """Serialize `value` using compiled include and exclude patterns."""
    filter_ = PropertyFilter(tuple(includes or ()), tuple(excludes or ()))
    writer = JSONWriter(
        filter_,
        enum_as_bean=enum_as_bean,
        exclude_null=exclude_null,
        ignore_hierarchy=ignore_hierarchy,
        ignore_interfaces=ignore_interfaces,
    )
    return writer.write(value)


class JSONWriter:
    """Writes a value graph as JSON.

    Properties are addressed by dotted paths (`a.b`, `list[0].name`, `map.key`)
    that are tested against the filter before each property is read. Values
    already on the descent stack are written as an empty string.
    """

    def __init__(
        self,
        filter: PropertyFilter | None = None,
        enum_as_bean: bool = False,
        exclude_null: bool = False,
        ignore_hierarchy: bool = True,
        ignore_interfaces: bool = True,
        date_format: str | None = None,
    ) -> None:
        self.filter = filter or ACCEPT_ALL
        self.enum_as_bean = enum_as_bean
        self.exclude_null = exclude_null
        self.ignore_hierarchy = ignore_hierarchy
        self.ignore_interfaces = ignore_interfaces
        self.date_format = date_format or DEFAULT_DATE_FORMAT

        self._buf: list[str] = []
        self._path = ''
        self._stack: set[int] = set()
        self.depth = 0

    def write(self, value: Any) -> str:
        """Return the JSON text for `value`."""
        self._buf = []
        self._path = ''
        self._stack = set()
        self.depth = 0

        self._value(value)
        return ''.join(self._buf)

    @property
    def path(self) -> str:
        """The path of the value currently being written."""
        return self._path

    def _value(self, value: Any, fmt: str | None = None) -> None:
        kind = classify(value)

        if kind is Kind.NULL:
            self._buf.append('null')
        elif kind is Kind.SCALAR:
            self._scalar(value, fmt)
        elif kind is Kind.ENUM and not self.enum_as_bean:
            self._string(value.name)
        else:
            self._nested(kind, value)

    def _nested(self, kind: Kind, value: Any) -> None:
        key = id(value)
        if key in self._stack:
            log.warning('cyclic reference detected: %s', self._path or '<root>')
            self._buf.append(CYCLE_SENTINEL)
            return

        self._stack.add(key)
        self.depth += 1
        try:
            if kind is Kind.MAPPING:
                self._mapping(value)
            elif kind is Kind.SEQUENCE:
                self._sequence(value)
            elif kind is Kind.ENUM:
                self._composite(value, {ENUM_NAME_PROPERTY: value.name})
            else:
                self._composite(value)
        finally:
            self.depth -= 1
            self._stack.discard(key)

    def _scalar(self, value: Any, fmt: str | None) -> None:
        buf = self._buf
        if isinstance(value, bool):
            buf.append('true' if value else 'false')
        elif isinstance(value, int):
            buf.append(str(int(value)))
        elif isinstance(value, float):
            buf.append(repr(float(value)) if math.isfinite(value) else 'null')
        elif isinstance(value, Decimal):
            buf.append(str(value) if value.is_finite() else 'null')
        elif isinstance(value, str):
            self._string(value)
        elif isinstance(value, date):
            self._string(value.strftime(fmt or self.date_format))
        elif isinstance(value, time):
            self._string(value.strftime(fmt or DEFAULT_TIME_FORMAT))
        elif isinstance(value, type):
            self._string(f'{value.__module__}.{value.__qualname__}')
        else:
            self._string(str(value))

    def _string(self, text: str) -> None:
        self._buf.append(f'"{escape(text)}"')

    def _mapping(self, value: Mapping[Any, Any]) -> None:
        self._buf.append('{')
        first = True
        names: set[str] = set()
        for key, item in value.items():
            name = key.name if isinstance(key, enum.Enum) else str(key)
            if name in names:
                log.debug('duplicate key: %s', self._child_path(name))
                continue
            names.add(name)
            path = self._child_path(name)
            if not self._accept(path):
                continue
            if item is None and self.exclude_null:
                continue
            first = self._member(name, path, item, first)
        self._buf.append('}')

    def _sequence(self, value: Iterable[Any]) -> None:
        self._buf.append('[')
        first = True
        for index, item in enumerate(value):
            path = f'{self._path}[{index}]'
            if not self._accept(path):
                continue
            if not first:
                self._buf.append(',')
            first = False
            self._descend(path, item)
        self._buf.append(']')

    def _composite(self, obj: Any, extra: Mapping[str, Any] | None = None) -> None:
        props = properties(obj, self.ignore_hierarchy, self.ignore_interfaces)

        root = next((p for p in props if p.root), None)
        if root is not None and not extra:
            self._value(self._read(obj, root), root.format)
            return

        self._buf.append('{')
        first = True
        for name, item in (extra or {}).items():
            path = self._child_path(name)
            if self._accept(path):
                first = self._member(name, path, item, first)

        for prop in props:
            path = self._child_path(prop.name)
            if not self._accept(path):
                continue
            try:
                item = prop.read(obj)
            except errors.IntrospectionError as exc:
                log.warning('skipping %s: %s', path, utils.format_exc(exc.__cause__ or exc))
                continue
            if item is None and self.exclude_null:
                continue
            first = self._member(prop.name, path, item, first, prop.format)
        self._buf.append('}')

    def _read(self, obj: Any, prop: Property) -> Any:
        try:
            return prop.read(obj)
        except errors.IntrospectionError as exc:
            log.warning('skipping %s: %s', prop.attr, utils.format_exc(exc.__cause__ or exc))
            return None

    def _member(self, name: str, path: str, value: Any, first: bool, fmt: str | None = None) -> bool:
        """Write `"name":value`, preceded by a separator unless `first`."""
        if not first:
            self._buf.append(',')
        self._string(name)
        self._buf.append(':')
        self._descend(path, value, fmt)
        return False

    def _descend(self, path: str, value: Any, fmt: str | None = None) -> None:
        parent = self._path
        self._path = path
        try:
            self._value(value, fmt)
        finally:
            self._path = parent

    def _child_path(self, name: str) -> str:
        return f'{self._path}.{name}' if self._path else name

    def _accept(self, path: str) -> bool:
        if not self.filter.active:
            return True
        accepted = self.filter.accept(path)
        if not accepted and log.isEnabledFor(logs.DEBUG):
            log.debug('excluded: %s', path)
        return accepted
