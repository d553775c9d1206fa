from datetime import datetime

import pytest

from jmapclient.protocol import json
from jmapclient.protocol.core import ResultReference
from jmapclient.protocol.errors import MalformedJSON, UnencodableValue
from jmapclient.protocol.json import ValueKind, kind_of, to_dynamic
from jmapclient.protocol.models import EmailAddress


@pytest.mark.parametrize('value', [
    None,
    True,
    0,
    -3,
    2 ** 53 - 1,
    1.5,
    '',
    'ü and 漢字',
    [],
    [1, 'a', None, [True]],
    {},
    {'a': {'b': [1, {'c': None}]}, '': False},
])
def test_decode_encode(value):
    assert json.decode(json.encode(value)) == value


def test_kinds():
    assert kind_of(None) is ValueKind.null
    assert kind_of(False) is ValueKind.bool
    assert kind_of(1) is ValueKind.number
    assert kind_of(1.0) is ValueKind.number
    assert kind_of('1') is ValueKind.string
    assert kind_of([]) is ValueKind.sequence
    assert kind_of({}) is ValueKind.mapping


def test_decode_keeps_the_token_kind():
    # A numeric looking string stays a string
    assert json.decode(b'"42"') == '42'
    assert json.decode(b'42') == 42
    assert isinstance(json.decode(b'42'), int)
    assert json.decode(b'true') is True


def test_encode_is_compact_utf8():
    assert json.encode({'a': [1, 'ü']}) == '{"a":[1,"ü"]}'.encode('utf-8')


@pytest.mark.parametrize('data', [
    b'',
    b'{',
    b'{"a": 1,}',
    b'NaN',
    b'[Infinity]',
    b'\xff\xfe',
])
def test_decode_malformed(data):
    with pytest.raises(MalformedJSON):
        json.decode(data)


def test_to_dynamic_projects_known_objects():
    value = to_dynamic({
        'from': [EmailAddress(email='john@example.com')],
        '#ids': ResultReference(result_of='0', name='Email/query', path='/ids'),
        'pair': ('a', 'b'),
    })
    assert value == {
        'from': [{'email': 'john@example.com'}],
        '#ids': {'resultOf': '0', 'name': 'Email/query', 'path': '/ids'},
        'pair': ['a', 'b'],
    }


@pytest.mark.parametrize('value, origin', [
    ({'create': {'x': [{1, 2}]}}, '$.create.x[0]'),
    ({'at': datetime(2024, 1, 1)}, '$.at'),
    ({'n': float('nan')}, '$.n'),
    ({'blob': b'raw'}, '$.blob'),
    ({1: 'a'}, '$ (key)'),
    ([object()], '$[0]'),
])
def test_unencodable(value, origin):
    with pytest.raises(UnencodableValue) as excinfo:
        json.encode(value)
    assert excinfo.value.origin == origin
    assert origin in str(excinfo.value)
