"""Logging setup shared by the package and its command line examples."""

from __future__ import annotations

import sys
from logging import DEBUG, INFO, WARNING, Formatter, StreamHandler, getLogger
from types import TracebackType
from typing import TextIO

get = getLogger
log = get(__name__)

__all__ = ['DEBUG', 'INFO', 'VERBOSE_LOGGERS', 'WARNING', 'get', 'handle_exception', 'init']

FORMAT = '%(levelname).1s %(asctime)s . %(message)s'

# log one line per property or request at DEBUG; only enabled at debug level 2
VERBOSE_LOGGERS = ('jsonresult.writer', 'jsonresult.patterns', 'jsonresult.http')


def init(debug_level: int = 0, log_exceptions: bool = True, stream: TextIO | None = None) -> None:
    """Install a stderr handler on the root logger, once.

    Level 1 enables debug output for result execution and framing; level 2
    also enables the per-property and per-request loggers.
    """
    root_log = get()
    if root_log.handlers:
        return

    handler = StreamHandler(stream)
    handler.setFormatter(Formatter(FORMAT))
    root_log.addHandler(handler)
    root_log.setLevel(DEBUG if debug_level > 0 else INFO)

    for name in VERBOSE_LOGGERS:
        get(name).setLevel(DEBUG if debug_level > 1 else INFO)

    if log_exceptions:
        sys.excepthook = handle_exception


def handle_exception(
    etype: type[BaseException],
    evalue: BaseException,
    etb: TracebackType | None,
) -> None:
    """Log uncaught exceptions; Ctrl+C still exits quietly."""
    if issubclass(etype, KeyboardInterrupt):
        sys.__excepthook__(etype, evalue, etb)
        return
    log.error('unhandled exception', exc_info=(etype, evalue, etb))
