"""
The dynamic value used wherever the shape of the JSON is not known
statically: method arguments and method results.

We do not invent a wrapper type for it. Python's JSON values already form a
closed set - None, bool, int/float, str, list and dict with string keys - and
this module makes sure nothing outside of that set gets in or out:

- `decode()` only ever produces those kinds, and fails with `MalformedJSON`
  rather than guessing.
- `to_dynamic()` converts what a caller passes as arguments into that set,
  projecting our own records, and fails with `UnencodableValue` for anything
  that has no defined projection.
"""

import enum
import json
import math
from typing import Any, Dict, List, Union

from jmapclient.models.marshal import is_model
from jmapclient.protocol.errors import MalformedJSON, UnencodableValue


JSONValue = Union[None, bool, int, float, str, List['JSONValue'], Dict[str, 'JSONValue']]


class ValueKind(enum.Enum):
    """The kinds of JSON values, in the order we test for them."""

    null = 'null'
    bool = 'bool'
    number = 'number'
    string = 'string'
    sequence = 'sequence'
    mapping = 'mapping'


def kind_of(value: Any) -> ValueKind:
    """Classify a decoded value.

    The precedence is fixed: null, bool, number, string, sequence, mapping.
    bool is tested before number, since in Python a bool is also an int.
    """
    if value is None:
        return ValueKind.null
    if isinstance(value, bool):
        return ValueKind.bool
    if isinstance(value, (int, float)):
        return ValueKind.number
    if isinstance(value, str):
        return ValueKind.string
    if isinstance(value, list):
        return ValueKind.sequence
    if isinstance(value, dict):
        return ValueKind.mapping
    raise UnencodableValue(value, '$')


def to_dynamic(value: Any, origin: str = '$') -> JSONValue:
    """Convert `value` into plain JSON values, recursively.

    Records created with `@model` are projected with `to_server()`; protocol
    objects such as a `ResultReference` with `to_json()`. Tuples become lists.
    """
    if value is None or isinstance(value, (bool, str)):
        return value

    if isinstance(value, int):
        return int(value)

    if isinstance(value, float):
        if not math.isfinite(value):
            raise UnencodableValue(value, origin)
        return value

    if isinstance(value, (list, tuple)):
        return [to_dynamic(item, f'{origin}[{index}]') for index, item in enumerate(value)]

    if isinstance(value, dict):
        result = {}
        for key, item in value.items():
            if not isinstance(key, str):
                raise UnencodableValue(key, f'{origin} (key)')
            result[key] = to_dynamic(item, f'{origin}.{key}')
        return result

    if is_model(value):
        return to_dynamic(value.to_server(), origin)

    to_json = getattr(value, 'to_json', None)
    if callable(to_json):
        return to_dynamic(to_json(), origin)

    raise UnencodableValue(value, origin)


def encode(value: Any) -> bytes:
    return json.dumps(
        to_dynamic(value),
        separators=(',', ':'),
        ensure_ascii=False,
        allow_nan=False
    ).encode('utf-8')


def reject_constant(name):
    raise ValueError(f'{name} is not valid JSON')


def decode(data: Union[bytes, str]) -> JSONValue:
    try:
        if isinstance(data, bytes):
            data = data.decode('utf-8')
        return json.loads(data, parse_constant=reject_constant)
    except (UnicodeDecodeError, ValueError) as exc:
        raise MalformedJSON(f'Response is not valid JSON: {exc}') from exc
