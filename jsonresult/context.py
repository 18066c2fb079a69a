"""The per-request collaborators a result is executed against."""

from __future__ import annotations

import re
from collections.abc import Mapping, Sequence
from typing import Any

import msgspec

from . import logs
from .response import Response

# `name`, `[0]` or `['key']`/`["key"]`
EXPR_TOKEN_RE = re.compile(r"""\.?([^.\[\]]+)|\[(-?\d+)\]|\[(['"])(.*?)\3\]""")

log = logs.get(__name__)


class Request(msgspec.Struct, kw_only=True):
    """The parts of an HTTP request that a result reads."""

    params: dict[str, list[str]] = msgspec.field(default_factory=dict)
    headers: dict[str, str] = msgspec.field(default_factory=dict)
    uri: str = ''

    def get_parameter(self, name: str) -> str | None:
        """Return the first value of parameter `name`, if any."""
        values = self.params.get(name)
        return values[0] if values else None


class ValueStack:
    """A stack of objects that root expressions are evaluated against.

    The first step of an expression is looked up on each object from the top
    of the stack down; remaining steps are applied to the value found.
    """

    def __init__(self, *values: Any) -> None:
        self._values: list[Any] = list(values)

    def push(self, value: Any) -> None:
        self._values.append(value)

    def pop(self) -> Any:
        return self._values.pop()

    def peek(self) -> Any:
        return self._values[-1] if self._values else None

    def __len__(self) -> int:
        return len(self._values)

    def find_value(self, expr: str) -> Any:
        """Evaluate a dotted expression such as `user.roles[0].name`.

        Returns `None` when any step cannot be resolved.
        """
        steps = parse_expr(expr)
        if not steps:
            return self.peek()

        first, rest = steps[0], steps[1:]
        for obj in reversed(self._values):
            found, value = _step(obj, first)
            if found:
                break
        else:
            log.debug('unresolved expression: %s', expr)
            return None

        for step in rest:
            found, value = _step(value, step)
            if not found:
                log.debug('unresolved expression: %s', expr)
                return None
        return value


def parse_expr(expr: str) -> list[str | int]:
    """Split an expression into attribute/key names and integer indexes."""
    steps: list[str | int] = []
    pos = 0
    expr = expr.strip()
    while pos < len(expr):
        match = EXPR_TOKEN_RE.match(expr, pos)
        if not match:
            raise ValueError(f'invalid expression: {expr!r}')
        name, index, _, key = match.groups()
        if name is not None:
            steps.append(name)
        elif index is not None:
            steps.append(int(index))
        else:
            steps.append(key)
        pos = match.end()
    return steps


def _step(obj: Any, step: str | int) -> tuple[bool, Any]:
    if obj is None:
        return False, None
    if isinstance(step, int):
        if isinstance(obj, Sequence) and not isinstance(obj, str) and -len(obj) <= step < len(obj):
            return True, obj[step]
        if isinstance(obj, Mapping) and step in obj:
            return True, obj[step]
        return False, None
    if isinstance(obj, Mapping):
        if step in obj:
            return True, obj[step]
        return False, None
    try:
        return True, getattr(obj, step)
    except AttributeError:
        return False, None


class Invocation(msgspec.Struct):
    """One execution of a request handler."""

    stack: ValueStack
    request: Request
    response: Response
