# encoding: utf-8

import abc
import dataclasses
import enum
import json
import logging
from collections import OrderedDict, deque
from datetime import date, datetime, time
from decimal import Decimal

import msgspec
import pytest

from jsonresult import (
    JSONMeta,
    JSONWriter,
    PropertyFilter,
    escape,
    json_field,
    json_property,
    serialize,
)
from jsonresult.patterns import WILDCARD, compile_all, process_include_patterns


class Color(enum.Enum):
    RED = 1
    GREEN = 2

    @property
    def hex(self):
        return {1: '#f00', 2: '#0f0'}[self.value]


class Level(enum.IntEnum):
    LOW = 1


class Node:
    def __init__(self, v):
        self.v = v
        self.self = self


class Plain:
    def __init__(self):
        self.a = 1
        self._hidden = 2
        self.b = None

    @property
    def c(self):
        return 3

    @property
    def _private(self):
        return 4


@dataclasses.dataclass
class Base:
    x: int = 1


@dataclasses.dataclass
class Child(Base):
    y: int = 2


class Point(msgspec.Struct):
    x_pos: int
    y_pos: int = msgspec.field(default=0, name='yPos')


class Point3D(Point):
    z_pos: int = 0


class Broken:
    def __init__(self):
        self.ok = True

    @property
    def bad(self):
        raise RuntimeError('boom')


class Renamed:
    @property
    @json_property(name='visible')
    def shown(self):
        return 1

    @property
    @json_property(serialize=False)
    def secret(self):
        return 'x'


@json_field('password', serialize=False)
@json_field('user_name', name='userName')
class Account:
    def __init__(self):
        self.user_name = 'bob'
        self.password = 'hunter2'


@dataclasses.dataclass
class Wrapper:
    ignored: int = 0
    payload: list = dataclasses.field(
        default_factory=lambda: [1, 2], metadata={'json': JSONMeta(root=True)}
    )


class Interface(abc.ABC):
    @property
    @abc.abstractmethod
    @json_property(serialize=False)
    def token(self): ...


class Implementation(Interface):
    @property
    def token(self):
        return 't'


def write(value, **kwargs):
    return JSONWriter(**kwargs).write(value)


def loads(text):
    return json.loads(text)


##
## scalars
##


@pytest.mark.parametrize(
    'value, expected',
    [
        (None, 'null'),
        (True, 'true'),
        (False, 'false'),
        (0, '0'),
        (-42, '-42'),
        (10**20, '100000000000000000000'),
        (1.5, '1.5'),
        (0.1, '0.1'),
        (1e16, '1e+16'),
        (float('nan'), 'null'),
        (float('inf'), 'null'),
        (float('-inf'), 'null'),
        (Decimal('1.10'), '1.10'),
        (Decimal('NaN'), 'null'),
        ('', '""'),
        ('x', '"x"'),
    ],
)
def test_scalar(value, expected):
    assert write(value) == expected


def test_dates():
    assert write(datetime(2024, 1, 2, 3, 4, 5)) == '"2024-01-02T03:04:05"'
    assert write(date(2024, 1, 2)) == '"2024-01-02T00:00:00"'
    assert write(time(3, 4, 5)) == '"03:04:05"'
    assert write(date(2024, 1, 2), date_format='%d/%m/%Y') == '"02\\/01\\/2024"'


def test_class_value():
    assert write(Color) == f'"{__name__}.Color"'


##
## strings
##


def test_escape_table():
    assert escape('"\\/\b\f\n\r\t') == '\\"\\\\\\/\\b\\f\\n\\r\\t'


def test_escape_control():
    assert escape('\x00\x1f') == '\\u0000\\u001f'
    assert escape('a\x7fb') == 'a\\u007fb'


def test_escape_non_ascii():
    assert escape('Ω') == '\\u03a9'
    assert escape('é') == '\\u00e9'
    assert escape('\u0080') == '\\u0080'


def test_escape_surrogate_pair():
    assert escape('\U0001f600') == '\\ud83d\\ude00'


def test_escape_ascii_untouched():
    text = 'Hello, world! ~ {} [] 123'
    assert escape(text) == text


def test_output_is_ascii():
    out = write({'k': 'Ω\U0001f600 é'})
    assert out.isascii()
    assert loads(out) == {'k': 'Ω\U0001f600 é'}


##
## enums
##


def test_enum_name():
    assert write(Color.RED) == '"RED"'
    assert write(Level.LOW) == '"LOW"'


def test_enum_as_bean():
    assert write(Color.RED, enum_as_bean=True) == '{"_name":"RED","hex":"#f00"}'


##
## containers
##


def test_mapping():
    assert write({'a': 1, 'b': [True, None]}) == '{"a":1,"b":[true,null]}'


def test_mapping_keys_coerced():
    assert write(OrderedDict([(1, 'a'), (Color.RED, 2), (None, 3)])) == '{"1":"a","RED":2,"None":3}'


def test_mapping_duplicate_keys():
    assert write({1: 'a', '1': 'b'}) == '{"1":"a"}'
    assert write({Color.RED: 1, 'RED': 2}) == '{"RED":1}'


@pytest.mark.parametrize(
    'value, expected',
    [
        ([], '[]'),
        ((1, 2), '[1,2]'),
        (deque([1]), '[1]'),
        ({3}, '[3]'),
        ((i for i in range(3)), '[0,1,2]'),
        (b'\x01\x02', '[1,2]'),
    ],
)
def test_sequence(value, expected):
    assert write(value) == expected


def test_scenario_s1():
    assert serialize({'name': 'Ω', 'age': 30}) == '{"name":"\\u03a9","age":30}'


##
## cycles
##


def test_self_reference():
    assert write(Node(5)) == '{"v":5,"self":""}'


def test_list_cycle():
    items = [1]
    items.append(items)
    assert write(items) == '[1,""]'


def test_cycle_logs_warning(caplog):
    with caplog.at_level(logging.WARNING, logger='jsonresult.writer'):
        write(Node(5))
    assert len(caplog.records) == 1
    assert 'self' in caplog.records[0].getMessage()


def test_shared_reference_is_not_a_cycle():
    shared = {'k': 1}
    assert write([shared, shared]) == '[{"k":1},{"k":1}]'


def test_indirect_cycle():
    a = {'name': 'a'}
    b = {'name': 'b', 'a': a}
    a['b'] = b
    assert write(a) == '{"name":"a","b":{"name":"b","a":""}}'


##
## composites
##


def test_plain_object():
    assert write(Plain()) == '{"a":1,"b":null,"c":3}'


def test_dataclass_ignore_hierarchy():
    assert write(Child()) == '{"y":2}'
    assert write(Child(), ignore_hierarchy=False) == '{"x":1,"y":2}'


def test_struct_rename():
    assert write(Point(1, 2)) == '{"x_pos":1,"yPos":2}'


def test_struct_hierarchy():
    assert write(Point3D(1, 2, 3)) == '{"z_pos":3}'
    assert write(Point3D(1, 2, 3), ignore_hierarchy=False) == '{"x_pos":1,"yPos":2,"z_pos":3}'


def test_struct_in_container():
    assert write({'p': Point(1)}) == '{"p":{"x_pos":1,"yPos":0}}'


def test_json_property_metadata():
    assert write(Renamed()) == '{"visible":1}'


def test_json_field_metadata():
    assert write(Account()) == '{"userName":"bob"}'


def test_root_property():
    assert write(Wrapper()) == '[1,2]'


def test_interface_metadata():
    assert write(Implementation()) == '{"token":"t"}'
    assert write(Implementation(), ignore_interfaces=False) == '{}'


def test_failing_getter_is_skipped(caplog):
    with caplog.at_level(logging.WARNING, logger='jsonresult.writer'):
        assert write(Broken()) == '{"ok":true}'
    assert 'boom' in caplog.text


def test_exclude_null():
    assert write({'x': None, 'y': 2}, exclude_null=True) == '{"y":2}'
    assert write(Plain(), exclude_null=True) == '{"a":1,"c":3}'
    # sequence elements keep their position
    assert write([None, 1], exclude_null=True) == '[null,1]'


##
## filtering
##


def test_exclude_regex():
    value = {'a': {'b': 1, 'c': 2}, 'd': 3}
    out = serialize(value, excludes=compile_all(['a\\.b']))
    assert out == '{"a":{"c":2},"d":3}'


def test_include_wildcards():
    value = {'a': 1, 'b': 2, 'c': 3}
    out = serialize(value, includes=process_include_patterns(['a', 'c'], WILDCARD))
    assert out == '{"a":1,"c":3}'


def test_include_nested_requires_prefixes():
    value = {'a': {'b': 1, 'c': 2}, 'd': 3}
    out = serialize(value, includes=process_include_patterns(['a\\.b']))
    assert out == '{"a":{"b":1}}'


def test_include_sequence_elements():
    value = {'items': [{'id': 1, 'name': 'x'}, {'id': 2, 'name': 'y'}], 'total': 2}
    includes = process_include_patterns(['items[*].id'], WILDCARD)
    assert serialize(value, includes=includes) == '{"items":[{"id":1},{"id":2}]}'


def test_exclude_sequence_element():
    out = serialize([1, 2, 3], excludes=compile_all(['\\[1\\]']))
    assert out == '[1,3]'


def test_exclude_wins_over_include():
    includes = process_include_patterns(['a', 'b'], WILDCARD)
    excludes = compile_all(['b'], WILDCARD)
    writer = JSONWriter(PropertyFilter(includes, excludes))
    assert writer.write({'a': 1, 'b': 2}) == '{"a":1}'


def test_excluded_getter_is_not_read():
    writer = JSONWriter(PropertyFilter(excludes=compile_all(['bad'])))
    assert writer.write(Broken()) == '{"ok":true}'


def test_writer_state_is_reset():
    writer = JSONWriter()
    node = Node(1)
    assert writer.write(node) == writer.write(node)
    assert writer.path == ''
    assert writer.depth == 0
