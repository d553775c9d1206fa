"""
JSON Pointer (RFC 6901), with the one extension JMAP makes to it for result
references (3.7 References to previous method results,
https://jmap.io/spec-core.html#references-to-previous-method-results):

    If the currently referenced value is an array, a `*` token applies the
    rest of the pointer to every item, and the results are collected into a
    single array; any result which is itself an array is flattened into it.

The client never resolves references inside a batch; the server does that.
This is for callers who want to pick a value out of a response they already
have, and to check a reference path before it is sent.
"""

from typing import Any, List


class JsonPointerException(Exception):
    pass


def split_pointer(pointer: str) -> List[str]:
    if pointer == '':
        return []
    if not pointer.startswith('/'):
        raise JsonPointerException(f'Pointer "{pointer}" must start with "/"')
    return [unescape(token) for token in pointer[1:].split('/')]


def unescape(token: str) -> str:
    return token.replace('~1', '/').replace('~0', '~')


def escape(token: str) -> str:
    return token.replace('~', '~0').replace('/', '~1')


def validate_pointer(pointer: str) -> str:
    """Raise if `pointer` is not syntactically valid; return it otherwise."""
    if not isinstance(pointer, str):
        raise JsonPointerException(f'Pointer must be a string, not {type(pointer).__name__}')
    split_pointer(pointer)
    return pointer


def resolve_pointer(document: Any, pointer: str) -> Any:
    return _resolve(document, split_pointer(pointer), '')


def _resolve(value: Any, tokens: List[str], seen: str) -> Any:
    if not tokens:
        return value

    token, rest = tokens[0], tokens[1:]
    here = f'{seen}/{escape(token)}'

    if isinstance(value, dict):
        if token not in value:
            raise JsonPointerException(f'No member "{token}" at {seen or "/"}')
        return _resolve(value[token], rest, here)

    if isinstance(value, list):
        if token == '*':
            result = []
            for index, item in enumerate(value):
                resolved = _resolve(item, rest, f'{seen}/{index}')
                if isinstance(resolved, list):
                    result.extend(resolved)
                else:
                    result.append(resolved)
            return result

        if not (token.isascii() and token.isdigit()) or (token != '0' and token.startswith('0')):
            raise JsonPointerException(f'"{token}" is not a valid array index at {seen or "/"}')
        index = int(token)
        if index >= len(value):
            raise JsonPointerException(f'Index {index} is out of range at {seen or "/"}')
        return _resolve(value[index], rest, here)

    raise JsonPointerException(f'Cannot descend into {type(value).__name__} at {here}')
