"""Small formatting helpers for log messages and server addresses."""

from __future__ import annotations

import traceback
from urllib.parse import urlsplit

import msgspec

DEFAULT_SCHEME = 'http'
DEFAULT_HOST = '127.0.0.1'
DEFAULT_PORT = 8080


def format_exc(exc: BaseException) -> str:
    """Return `ExcType: message` for `exc`, without a traceback."""
    return traceback.format_exception_only(exc.__class__, exc)[0].strip()


def elide(value: str, width: int = 100) -> str:
    return value if len(value) <= width else f'{value[: width - 3]}...'


def format_addr(addr: tuple[str, int]) -> str:
    return f'{addr[0]}:{addr[1]}'


class Url(msgspec.Struct, frozen=True):
    """Where a server listens. Port 0 asks the OS for a free port."""

    scheme: str = DEFAULT_SCHEME
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT

    @classmethod
    def parse(cls, url: str | Url | None) -> Url:
        if url is None:
            return cls()
        if isinstance(url, Url):
            return url

        parts = urlsplit(url if '://' in url else f'{DEFAULT_SCHEME}://{url}')
        if parts.path.strip('/') or parts.query:
            raise ValueError(f'invalid URL: {url}')

        host = (parts.hostname or DEFAULT_HOST).replace('*', '0.0.0.0')
        port = DEFAULT_PORT if parts.port is None else parts.port
        return cls(parts.scheme, host, port)

    @property
    def address(self) -> tuple[str, int]:
        return (self.host, self.port)

    @property
    def netloc(self) -> str:
        return format_addr(self.address)

    def __str__(self) -> str:
        return f'{self.scheme}://{self.netloc}'
