"""Registry helpers that expose named lookups of pluggable classes."""

from __future__ import annotations

from typing import Generic, TypeVar

from . import errors, logs

log = logs.get(__name__)

T = TypeVar('T')


class Registry(Generic[T]):
    """Keeps a registry of subclasses by name."""

    def __init__(self, name: str, base_type: type[T]) -> None:
        self.name = name
        self._base_type = base_type
        self._registry: dict[str, type[T]] = {}

    def __getitem__(self, name: str) -> type[T]:
        try:
            return self._registry[name]
        except KeyError:
            raise errors.RegistryError(
                f'{self._base_type.__name__} not registered: {name!r}'
            ) from None

    def __setitem__(self, name: str, cls: type[T]) -> None:
        if not issubclass(cls, self._base_type):
            raise errors.RegistryError(f'not a {self._base_type.__name__}: {cls!r}')
        log.debug('registered %s: %s', self.name, name)
        self._registry[name] = cls

    def __contains__(self, name: object) -> bool:
        return name in self._registry

    def names(self) -> tuple[str, ...]:
        """Return all registered names in insertion order."""
        return tuple(self._registry.keys())
