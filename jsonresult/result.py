"""Serializes the state of a request handler into the HTTP response."""

from __future__ import annotations

import locale
from collections.abc import Mapping
from typing import Any

import msgspec

from . import errors, logs, utils
from .context import Invocation, Request, parse_expr
from .filters import ACCEPT_ALL, PropertyFilter
from .response import Response, SerializationParams, is_gzip_in_request, write_json_to_response
from .smd import SMD, SMDGenerator
from .writer import JSONWriter

DEFAULT_ENCODING = 'ISO-8859-1'
FALLBACK_ENCODING = 'UTF-8'

log = logs.get(__name__)


class ResultConfig(msgspec.Struct, frozen=True, kw_only=True, rename='camel', forbid_unknown_fields=True):
    """Options of a JSON result.

    Pattern options are comma-delimited lists. Regex and wildcard lists of
    the same direction are combined.
    """

    root: str | None = None
    exclude_properties: str | None = None
    include_properties: str | None = None
    exclude_wildcards: str | None = None
    include_wildcards: str | None = None
    wrap_with_comments: bool = False
    prefix: bool = False
    wrap_prefix: str | None = None
    wrap_suffix: str | None = None
    enable_smd: bool = msgspec.field(default=False, name='enableSMD')
    enable_gzip: bool = msgspec.field(default=False, name='enableGZIP')
    ignore_hierarchy: bool = True
    ignore_interfaces: bool = True
    enum_as_bean: bool = False
    no_cache: bool = False
    exclude_null_properties: bool = False
    status_code: int = 0
    error_code: int = 0
    callback_parameter: str | None = None
    content_type: str | None = None
    encoding: str | None = None

    @classmethod
    def from_options(cls, options: Mapping[str, Any]) -> ResultConfig:
        """Convert camelCase options (string values are coerced)."""
        try:
            return msgspec.convert(dict(options), cls, strict=False)
        except msgspec.ValidationError as exc:
            raise errors.ConfigError(str(exc)) from exc


class JSONResult:
    """Writes the root value of an invocation to its response as JSON.

    Patterns and the root expression are checked on construction, so bad
    options fail before any request is handled.
    """

    def __init__(
        self,
        config: ResultConfig | None = None,
        default_encoding: str | None = DEFAULT_ENCODING,
    ) -> None:
        self.config = config or ResultConfig()
        self.default_encoding = default_encoding

        cfg = self.config
        if cfg.root is not None:
            try:
                parse_expr(cfg.root)
            except ValueError as exc:
                raise errors.ConfigError(f'invalid root expression: {exc}') from exc

        self.filter = PropertyFilter.from_options(
            include_properties=cfg.include_properties,
            include_wildcards=cfg.include_wildcards,
            exclude_properties=cfg.exclude_properties,
            exclude_wildcards=cfg.exclude_wildcards,
        )

    @classmethod
    def from_options(
        cls, options: Mapping[str, Any], default_encoding: str | None = DEFAULT_ENCODING
    ) -> JSONResult:
        return cls(ResultConfig.from_options(options), default_encoding)

    def execute(self, invocation: Invocation) -> None:
        request = invocation.request
        try:
            root = self.read_root_object(invocation)
            json = self.create_json_string(request, root)
            self.write_to_response(invocation.response, json, self.enable_gzip(request))
        except Exception as exc:
            log.exception('%s (%s)', utils.format_exc(exc), request.uri or '-')
            raise

    def read_root_object(self, invocation: Invocation) -> Any:
        if self.config.enable_smd:
            return self.build_smd_object(invocation)
        return self.find_root_object(invocation)

    def find_root_object(self, invocation: Invocation) -> Any:
        """Evaluate the root expression, or take the top of the stack."""
        if self.config.root is not None:
            log.debug('root: %s', self.config.root)
            return invocation.stack.find_value(self.config.root)
        return invocation.stack.peek()

    def build_smd_object(self, invocation: Invocation) -> SMD:
        generator = SMDGenerator(
            self.find_root_object(invocation), self.filter.excludes, self.config.ignore_interfaces
        )
        return generator.generate(invocation.request.uri or None)

    def create_json_string(self, request: Request, root: Any) -> str:
        cfg = self.config
        writer = JSONWriter(
            ACCEPT_ALL if isinstance(root, SMD) else self.filter,
            enum_as_bean=cfg.enum_as_bean,
            exclude_null=cfg.exclude_null_properties,
            ignore_hierarchy=cfg.ignore_hierarchy,
            ignore_interfaces=cfg.ignore_interfaces,
        )
        json = writer.write(root)
        return self.add_callback_if_applicable(request, json)

    def add_callback_if_applicable(self, request: Request, json: str) -> str:
        """Wrap `json` in the JSONP callback named by the request, if any."""
        if self.config.callback_parameter:
            callback = request.get_parameter(self.config.callback_parameter)
            if callback:
                json = f'{callback}({json})'
        return json

    def enable_gzip(self, request: Request) -> bool:
        return self.config.enable_gzip and is_gzip_in_request(request.headers)

    def get_encoding(self) -> str:
        """Resolve the response charset.

        The configured encoding wins, then the default encoding, then the
        preferred encoding of the platform.
        """
        return (
            self.config.encoding
            or self.default_encoding
            or locale.getpreferredencoding(False)
            or FALLBACK_ENCODING
        )

    def serialization_params(self, gzip: bool) -> SerializationParams:
        cfg = self.config
        return SerializationParams(
            encoding=self.get_encoding(),
            wrap_with_comments=cfg.wrap_with_comments,
            prefix=cfg.prefix,
            gzip=gzip,
            no_cache=cfg.no_cache,
            status_code=cfg.status_code,
            error_code=cfg.error_code,
            content_type=cfg.content_type,
            wrap_prefix=cfg.wrap_prefix,
            wrap_suffix=cfg.wrap_suffix,
        )

    def write_to_response(self, response: Response, json: str, gzip: bool) -> None:
        write_json_to_response(response, json, self.serialization_params(gzip))
