"""Service method description (SMD) documents for JSON-RPC discovery."""

from __future__ import annotations

import inspect
from collections.abc import Callable, Iterable
from typing import Any, ParamSpec, TypeVar

import msgspec

from . import logs
from .meta import is_interface
from .patterns import Pattern

P = ParamSpec('P')
R = TypeVar('R')
T = TypeVar('T')

SMD_ATTR = '_smd_'

DEFAULT_VERSION = '.1'
DEFAULT_SERVICE_TYPE = 'JSON-RPC'

log = logs.get(__name__)


class ParamMeta(msgspec.Struct):
    name: str | None = None
    hide: bool = False


class MethodMeta(msgspec.Struct):
    exposed: bool = False
    name: str | None = None
    params: dict[str, ParamMeta] = msgspec.field(default_factory=dict)


class ServiceMeta(msgspec.Struct, frozen=True):
    object_name: str | None = None
    service_type: str = DEFAULT_SERVICE_TYPE
    version: str = DEFAULT_VERSION


def smd(
    object_name: str | None = None,
    service_type: str = DEFAULT_SERVICE_TYPE,
    version: str = DEFAULT_VERSION,
) -> Callable[[type[T]], type[T]]:
    """Class decorator that customizes the generated SMD document."""

    def decorator(cls: type[T]) -> type[T]:
        setattr(cls, SMD_ATTR, ServiceMeta(object_name, service_type, version))
        return cls

    return decorator


def smd_method(name: str | None = None) -> Callable[[Callable[P, R]], Callable[P, R]]:
    """Decorator that exposes a method in the SMD document."""

    def decorator(func: Callable[P, R]) -> Callable[P, R]:
        """Add method metadata to `func._smd_`."""
        meta: MethodMeta = func.__dict__.setdefault(SMD_ATTR, MethodMeta())
        meta.exposed = True
        if name:
            meta.name = name
        return func

    return decorator


def smd_param(
    param: str, name: str | None = None, hide: bool = False
) -> Callable[[Callable[P, R]], Callable[P, R]]:
    """Decorator for renaming or hiding a single method parameter."""

    def decorator(func: Callable[P, R]) -> Callable[P, R]:
        """Add param metadata to `func._smd_`."""
        meta: MethodMeta = func.__dict__.setdefault(SMD_ATTR, MethodMeta())
        param_meta = meta.params.setdefault(param, ParamMeta())

        if name:
            param_meta.name = name
        if hide:
            param_meta.hide = hide

        return func

    return decorator


class SMDMethodParameter(msgspec.Struct, frozen=True):
    name: str


class SMDMethod(msgspec.Struct, frozen=True):
    name: str
    parameters: tuple[SMDMethodParameter, ...] = ()


class SMD(msgspec.Struct, rename='camel'):
    """Description of the methods callable on a root object."""

    version: str = DEFAULT_VERSION
    object_name: str | None = None
    service_type: str = DEFAULT_SERVICE_TYPE
    service_url: str | None = None
    methods: list[SMDMethod] = msgspec.field(default_factory=list)


class SMDGenerator:
    """Builds an `SMD` document from the decorated methods of a root object."""

    def __init__(
        self,
        root: Any,
        excludes: Iterable[Pattern] | None = None,
        ignore_interfaces: bool = True,
    ) -> None:
        self.root = root
        self.excludes = tuple(excludes or ())
        self.ignore_interfaces = ignore_interfaces

    def generate(self, service_url: str | None = None) -> SMD:
        doc = SMD(service_url=service_url)
        if self.root is None:
            return doc

        cls = type(self.root)
        service_meta: ServiceMeta | None = getattr(cls, SMD_ATTR, None)
        if isinstance(service_meta, ServiceMeta):
            doc.object_name = service_meta.object_name
            doc.service_type = service_meta.service_type
            doc.version = service_meta.version

        for attr in dir(cls):
            if attr.startswith('_'):
                continue
            meta = self._method_meta(cls, attr)
            if meta is None or not meta.exposed or self._excluded(attr):
                log.debug('ignoring method: %s', attr)
                continue
            doc.methods.append(encode(getattr(self.root, attr), meta))

        return doc

    def _excluded(self, name: str) -> bool:
        return any(p.matches(name) for p in self.excludes)

    def _method_meta(self, cls: type, name: str) -> MethodMeta | None:
        """Return metadata for the method resolved for `name`.

        Metadata on the same method of an interface is used only when the
        resolved method has none and interfaces are not ignored.
        """
        meta = _func_meta(inspect.getattr_static(cls, name, None))
        if meta is not None or self.ignore_interfaces:
            return meta

        for klass in cls.__mro__[1:]:
            if is_interface(klass) and name in vars(klass):
                meta = _func_meta(vars(klass)[name])
                if meta is not None:
                    return meta
        return None


def _func_meta(attr: Any) -> MethodMeta | None:
    if isinstance(attr, (staticmethod, classmethod)):
        attr = attr.__func__
    if not callable(attr):
        return None
    meta = getattr(attr, SMD_ATTR, None)
    return meta if isinstance(meta, MethodMeta) else None


def encode(func: Callable[..., Any], meta: MethodMeta | None = None) -> SMDMethod:
    """Describe the bound method `func` as an `SMDMethod`."""
    meta = meta or MethodMeta(exposed=True)

    params = []
    for param in inspect.signature(func).parameters.values():
        if param.kind in (param.VAR_POSITIONAL, param.VAR_KEYWORD):
            continue
        param_meta = meta.params.get(param.name)
        if param_meta and param_meta.hide:
            continue
        name = param_meta.name if param_meta and param_meta.name else param.name
        params.append(SMDMethodParameter(name))

    return SMDMethod(meta.name or func.__name__, tuple(params))
