"""Response sinks and framing of serialized JSON."""

from __future__ import annotations

import codecs
import gzip
from collections.abc import Mapping
from types import TracebackType

import msgspec

from . import errors, logs, utils

DEFAULT_CONTENT_TYPE = 'application/json'

COMMENT_PREFIX = '/* '
COMMENT_SUFFIX = ' */'
XSSI_PREFIX = '{} && '

log = logs.get(__name__)


class SerializationParams(msgspec.Struct, frozen=True, kw_only=True):
    """How a serialized document is framed and written."""

    encoding: str = 'UTF-8'
    wrap_with_comments: bool = False
    prefix: bool = False
    gzip: bool = False
    no_cache: bool = False
    # 0 leaves the code unset
    status_code: int = 0
    error_code: int = 0
    content_type: str | None = None
    wrap_prefix: str | None = None
    wrap_suffix: str | None = None


class Response:
    """Base class for the HTTP response a document is written to.

    Status and headers must be set before the first call to `write`.
    """

    def set_status(self, code: int) -> None:
        raise NotImplementedError

    def send_error(self, code: int) -> None:
        raise NotImplementedError

    def set_header(self, name: str, value: str) -> None:
        raise NotImplementedError

    def add_header(self, name: str, value: str) -> None:
        raise NotImplementedError

    def write(self, data: bytes) -> None:
        raise NotImplementedError

    def close(self) -> None:
        pass

    def __enter__(self) -> Response:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()


class BufferResponse(Response):
    """Response that collects everything in memory."""

    def __init__(self) -> None:
        self.status = 200
        self.error: int | None = None
        self.headers: list[tuple[str, str]] = []
        self.body = bytearray()
        self.closed = False

    def set_status(self, code: int) -> None:
        self.status = code

    def send_error(self, code: int) -> None:
        self.status = code
        self.error = code

    def set_header(self, name: str, value: str) -> None:
        self.headers = [(k, v) for k, v in self.headers if k.lower() != name.lower()]
        self.headers.append((name, value))

    def add_header(self, name: str, value: str) -> None:
        self.headers.append((name, value))

    def header(self, name: str) -> str | None:
        """Return the last value set for `name`, ignoring case."""
        for key, value in reversed(self.headers):
            if key.lower() == name.lower():
                return value
        return None

    def write(self, data: bytes) -> None:
        if self.closed:
            raise errors.ResponseError('response is closed')
        self.body.extend(data)

    def close(self) -> None:
        self.closed = True


def is_gzip_in_request(headers: Mapping[str, str]) -> bool:
    """Return `True` if the request advertises gzip support."""
    for name, value in headers.items():
        if name.lower() == 'accept-encoding' and 'gzip' in value.lower():
            return True
    return False


def build_body(json: str, params: SerializationParams) -> str:
    """Wrap `json` as configured.

    Wrap prefix/suffix text replaces comment and XSSI prefix wrapping.
    """
    if params.wrap_prefix or params.wrap_suffix:
        return f'{params.wrap_prefix or ""}{json}{params.wrap_suffix or ""}'
    if params.wrap_with_comments:
        return f'{COMMENT_PREFIX}{json}{COMMENT_SUFFIX}'
    if params.prefix:
        return f'{XSSI_PREFIX}{json}'
    return json


def content_type(params: SerializationParams) -> str:
    return f'{params.content_type or DEFAULT_CONTENT_TYPE};charset={params.encoding}'


def encode_body(body: str, encoding: str) -> bytes:
    try:
        codecs.lookup(encoding)
    except LookupError as exc:
        raise errors.EncodeError(f'unknown encoding: {encoding}') from exc
    try:
        return body.encode(encoding)
    except UnicodeError as exc:
        raise errors.EncodeError(f'{exc}: body={utils.elide(body)!r}') from exc


def write_json_to_response(response: Response, json: str, params: SerializationParams) -> None:
    """Frame `json` and write it to `response`.

    The body is fully encoded before the response is touched, so an encoding
    failure leaves the response untouched.
    """
    data = encode_body(build_body(json, params), params.encoding)
    if params.gzip:
        data = gzip.compress(data, mtime=0)

    try:
        if params.status_code > 0:
            response.set_status(params.status_code)
        elif params.error_code > 0:
            response.send_error(params.error_code)

        response.set_header('Content-Type', content_type(params))

        if params.no_cache:
            response.set_header('Cache-Control', 'no-cache')
            response.set_header('Expires', '0')
            response.set_header('Pragma', 'No-cache')

        if params.gzip:
            response.add_header('Content-Encoding', 'gzip')

        response.set_header('Content-Length', str(len(data)))

        if log.isEnabledFor(logs.DEBUG):
            log.debug('response: %d bytes%s', len(data), ' (gzip)' if params.gzip else '')

        with response:
            response.write(data)
    except OSError as exc:
        raise errors.ResponseError(utils.format_exc(exc)) from exc
