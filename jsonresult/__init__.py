"""Filtered, reflective JSON serialization of request handler state."""

from __future__ import annotations

__version__ = '0.1.0'

from . import errors, logs
from .context import Invocation, Request, ValueStack
from .filters import PropertyFilter
from .meta import JSONMeta, json_field, json_property
from .patterns import Pattern, process_include_patterns
from .response import BufferResponse, Response, SerializationParams, write_json_to_response
from .result import JSONResult, ResultConfig
from .smd import SMD, SMDGenerator, smd, smd_method, smd_param
from .writer import JSONWriter, escape, serialize

__all__ = [
    'SMD',
    'BufferResponse',
    'Invocation',
    'JSONMeta',
    'JSONResult',
    'JSONWriter',
    'Pattern',
    'PropertyFilter',
    'Request',
    'Response',
    'ResultConfig',
    'SMDGenerator',
    'SerializationParams',
    'ValueStack',
    '__version__',
    'errors',
    'escape',
    'json_field',
    'json_property',
    'logs',
    'process_include_patterns',
    'serialize',
    'smd',
    'smd_method',
    'smd_param',
    'write_json_to_response',
]
