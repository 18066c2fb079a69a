"""Decorators for attaching serialization metadata to properties."""

from __future__ import annotations

import abc
import inspect
from collections.abc import Callable
from typing import Any, TypeVar

import msgspec

T = TypeVar('T')

# attribute used to store metadata on getters
META_ATTR = '_json_'
# class attribute mapping attribute names to metadata
FIELDS_ATTR = '_json_fields_'
# key used in dataclass field metadata
FIELD_METADATA_KEY = 'json'


class JSONMeta(msgspec.Struct):
    name: str | None = None
    serialize: bool = True
    format: str | None = None
    root: bool = False


def json_property(
    name: str | None = None,
    serialize: bool = True,
    format: str | None = None,
    root: bool = False,
) -> Callable[[T], T]:
    """Decorator for attaching metadata to a property getter.

    May be applied above or below `@property`.
    """

    def decorator(func: T) -> T:
        target = func.fget if isinstance(func, property) else func
        target.__dict__[META_ATTR] = JSONMeta(name, serialize, format, root)  # type: ignore[union-attr]
        return func

    return decorator


def json_field(
    attr: str,
    name: str | None = None,
    serialize: bool = True,
    format: str | None = None,
    root: bool = False,
) -> Callable[[type[T]], type[T]]:
    """Class decorator for attaching metadata to a field or instance attribute."""

    def decorator(cls: type[T]) -> type[T]:
        fields = cls.__dict__.get(FIELDS_ATTR)
        if fields is None:
            fields = {}
            setattr(cls, FIELDS_ATTR, fields)
        fields[attr] = JSONMeta(name, serialize, format, root)
        return cls

    return decorator


def is_interface(cls: type) -> bool:
    """Return `True` for abstract bases and protocols."""
    return (
        inspect.isabstract(cls)
        or abc.ABC in cls.__bases__
        or bool(getattr(cls, '_is_protocol', False))
    )


def attr_meta(attr: Any) -> JSONMeta | None:
    """Return metadata stored on a class attribute (property or function)."""
    if isinstance(attr, property):
        attr = attr.fget
    return getattr(attr, META_ATTR, None)


def lookup(cls: type, attr: str, ignore_interfaces: bool = True) -> JSONMeta | None:
    """Find the metadata for `attr` along the MRO of `cls`.

    Metadata declared on interfaces is only consulted when
    `ignore_interfaces` is false.
    """
    for klass in cls.__mro__:
        if klass is object:
            break
        if ignore_interfaces and klass is not cls and is_interface(klass):
            continue

        fields = klass.__dict__.get(FIELDS_ATTR)
        if fields and attr in fields:
            return fields[attr]

        meta = attr_meta(klass.__dict__.get(attr))
        if meta is not None:
            return meta
    return None
