"""Classify values and enumerate the named properties of composites."""

from __future__ import annotations

import dataclasses
import enum
import functools
import inspect
import uuid
from collections.abc import Iterable, Mapping
from datetime import date, time
from decimal import Decimal
from pathlib import PurePath
from typing import Any

import msgspec

from . import errors
from .meta import FIELD_METADATA_KEY, JSONMeta, lookup

SCALAR_TYPES = (bool, int, float, Decimal, str, date, time, uuid.UUID, PurePath)
BINARY_TYPES = (bytes, bytearray, memoryview)


class Kind(enum.Enum):
    NULL = 'null'
    SCALAR = 'scalar'
    ENUM = 'enum'
    MAPPING = 'mapping'
    SEQUENCE = 'sequence'
    COMPOSITE = 'composite'


def classify(value: Any) -> Kind:
    """Return the `Kind` that decides how `value` is written."""
    if value is None:
        return Kind.NULL
    # enums first: IntEnum and StrEnum members are also scalars
    if isinstance(value, enum.Enum):
        return Kind.ENUM
    if isinstance(value, SCALAR_TYPES) or isinstance(value, type):
        return Kind.SCALAR
    if isinstance(value, Mapping):
        return Kind.MAPPING
    if isinstance(value, BINARY_TYPES):
        return Kind.SEQUENCE
    if isinstance(value, msgspec.Struct) or dataclasses.is_dataclass(value):
        return Kind.COMPOSITE
    if isinstance(value, Iterable):
        return Kind.SEQUENCE
    return Kind.COMPOSITE


@dataclasses.dataclass(frozen=True, slots=True)
class Property:
    """A readable, named property of a composite."""

    name: str
    attr: str
    meta: JSONMeta | None = None

    @property
    def root(self) -> bool:
        return bool(self.meta and self.meta.root)

    @property
    def format(self) -> str | None:
        return self.meta.format if self.meta else None

    def read(self, obj: Any) -> Any:
        try:
            return getattr(obj, self.attr)
        except Exception as exc:
            raise errors.IntrospectionError(self.attr, exc) from exc


def properties(
    obj: Any, ignore_hierarchy: bool = True, ignore_interfaces: bool = True
) -> list[Property]:
    """Enumerate the properties of `obj` in a stable order.

    Fields of msgspec structs and dataclasses come first in declaration order,
    followed by public instance attributes for other objects, followed by
    public `property` descriptors with base classes first.
    """
    cls = type(obj)
    if isinstance(obj, msgspec.Struct) or dataclasses.is_dataclass(obj):
        return list(_class_properties(cls, ignore_hierarchy, ignore_interfaces))

    attrs = [name for name in _instance_attrs(obj) if _is_public(name)]
    props = [_make_property(cls, name, None, ignore_interfaces) for name in attrs]
    props.extend(_class_properties(cls, ignore_hierarchy, ignore_interfaces))
    return _unique([p for p in props if p is not None])


@functools.lru_cache(maxsize=None)
def _class_properties(
    cls: type, ignore_hierarchy: bool, ignore_interfaces: bool
) -> tuple[Property, ...]:
    props: list[Property | None] = []

    if issubclass(cls, msgspec.Struct):
        own = _own_struct_fields(cls)
        for field in msgspec.structs.fields(cls):
            if ignore_hierarchy and field.name not in own:
                continue
            props.append(_make_property(cls, field.name, field.encode_name, ignore_interfaces))

    elif dataclasses.is_dataclass(cls):
        own = inspect.get_annotations(cls)
        for field in dataclasses.fields(cls):
            if ignore_hierarchy and field.name not in own:
                continue
            field_meta = field.metadata.get(FIELD_METADATA_KEY)
            props.append(_make_property(cls, field.name, None, ignore_interfaces, field_meta))

    classes = [cls] if ignore_hierarchy else [c for c in reversed(cls.__mro__) if c is not object]
    for klass in classes:
        for name, attr in vars(klass).items():
            if isinstance(attr, property) and _is_public(name):
                props.append(_make_property(cls, name, None, ignore_interfaces))

    return tuple(_unique([p for p in props if p is not None]))


def _make_property(
    cls: type,
    attr: str,
    name: str | None,
    ignore_interfaces: bool,
    field_meta: JSONMeta | None = None,
) -> Property | None:
    prop_meta = lookup(cls, attr, ignore_interfaces) or field_meta
    if prop_meta is not None:
        if not prop_meta.serialize:
            return None
        name = prop_meta.name or name
    return Property(name or attr, attr, prop_meta)


def _own_struct_fields(cls: type) -> set[str]:
    inherited: set[str] = set()
    for base in cls.__mro__[1:]:
        # msgspec.Struct itself only has a descriptor here
        if issubclass(base, msgspec.Struct) and base is not msgspec.Struct:
            inherited.update(base.__struct_fields__)
    return set(cls.__struct_fields__) - inherited


def _instance_attrs(obj: Any) -> list[str]:
    try:
        names = list(vars(obj))
    except TypeError:
        names = []
    for klass in type(obj).__mro__:
        slots = klass.__dict__.get('__slots__', ())
        for name in (slots,) if isinstance(slots, str) else slots:
            if name not in names and hasattr(obj, name):
                names.append(name)
    return names


def _is_public(name: str) -> bool:
    return not name.startswith('_')


def _unique(props: list[Property]) -> list[Property]:
    """Drop repeated output names, keeping the first."""
    seen: set[str] = set()
    result = []
    for prop in props:
        if prop.name in seen:
            continue
        seen.add(prop.name)
        result.append(prop)
    return result
