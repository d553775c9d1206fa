"""
The request and response objects of the JMAP API (3.3 The Request object,
3.4 The Response object, https://jmap.io/spec-core.html#the-request-object),
and the codec for the invocations inside them.

An invocation is not a JSON object, but an array of three:

    ["Mailbox/get", {"accountId": "u1"}, "0"]

`encode_method_call` and `decode_method_call` are the only place that knows
this; everything else deals in `MethodCall` and `MethodResponse`.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional

from jmapclient.protocol import json
from jmapclient.protocol.errors import CallLevelError, MalformedBatchResponse, MalformedMethodCall
from jmapclient.protocol.jsonpointer import resolve_pointer


@dataclass
class MethodCall:
    name: str
    args: Dict[str, Any]
    client_id: str

    def to_json(self):
        return encode_method_call(self)

    @classmethod
    def from_json(cls, data):
        return decode_method_call(data, cls=cls)


@dataclass
class MethodResponse:
    """
    The answer to one `MethodCall`. If `response` has a `type` key, it is
    an error object rather than a result (3.6.2 Method-level errors).
    """
    name: str
    response: Dict[str, Any]
    client_id: str

    def to_json(self):
        return [self.name, self.response, self.client_id]

    @classmethod
    def from_json(cls, data):
        name, response, client_id = _split_invocation(data)
        return cls(name=name, response=response, client_id=client_id)

    @property
    def is_error(self) -> bool:
        return 'type' in self.response

    @property
    def error(self) -> Optional[CallLevelError]:
        if not self.is_error:
            return None
        return CallLevelError.from_json(self.response)

    def raise_for_error(self):
        if self.is_error:
            raise self.error

    def get(self, path: str):
        return resolve_pointer(self.response, path)


def _split_invocation(data):
    if not isinstance(data, list) or len(data) != 3:
        raise MalformedMethodCall(
            f'An invocation must be an array of [name, arguments, clientId], got: {data!r}')

    name, args, client_id = data
    if not isinstance(name, str):
        raise MalformedMethodCall(f'The method name must be a string, got: {name!r}')
    if not isinstance(args, dict):
        raise MalformedMethodCall(f'The arguments of "{name}" must be an object, got: {args!r}')
    if not isinstance(client_id, str):
        raise MalformedMethodCall(f'The client id of "{name}" must be a string, got: {client_id!r}')
    return name, args, client_id


def encode_method_call(call: MethodCall) -> list:
    return [call.name, call.args, call.client_id]


def decode_method_call(data, cls=MethodCall) -> MethodCall:
    name, args, client_id = _split_invocation(data)
    return cls(name=name, args=args, client_id=client_id)


def parse_methods(data, cls=MethodCall) -> list:
    if not isinstance(data, list):
        raise MalformedMethodCall(f'Expected an array of invocations, got: {data!r}')
    return [cls.from_json(call) for call in data]


@dataclass
class ResultReference:
    """
    A back reference (3.7 References to previous method results).

    Put into the arguments under the argument name prefixed with `#`; the
    server replaces it with the value found at `path` in the result of the
    earlier call `result_of`.
    """
    result_of: str
    name: str
    path: str

    def to_json(self):
        return {
            'resultOf': self.result_of,
            'name': self.name,
            'path': self.path
        }

    @classmethod
    def from_json(cls, data):
        if not cls.is_reference(data):
            raise ValueError(f'Not a result reference: {data!r}')
        return cls(result_of=data['resultOf'], name=data['name'], path=data['path'])

    @staticmethod
    def is_reference(data) -> bool:
        return (
            isinstance(data, dict)
            and set(data) == {'resultOf', 'name', 'path'}
            and all(isinstance(v, str) for v in data.values())
        )


@dataclass
class JMapRequest:
    using: List[str]
    method_calls: List[MethodCall]

    def to_json(self):
        return {
            'using': self.using,
            'methodCalls': [call.to_json() for call in self.method_calls]
        }

    def to_bytes(self) -> bytes:
        return json.encode(self.to_json())

    @staticmethod
    def from_json(data):
        if not isinstance(data, dict):
            raise ValueError(f'Invalid request: {data!r}')
        return JMapRequest(
            using=data.get('using', []),
            method_calls=parse_methods(data.get('methodCalls'))
        )


@dataclass
class JMapResponse:
    method_responses: List[MethodResponse]
    session_state: str
    created_ids: Optional[Dict[str, str]] = field(default=None)

    def to_json(self):
        result = {
            'methodResponses': [r.to_json() for r in self.method_responses],
            'sessionState': self.session_state
        }
        if self.created_ids is not None:
            result['createdIds'] = self.created_ids
        return result

    @classmethod
    def from_json(cls, data):
        if not isinstance(data, dict):
            raise MalformedBatchResponse(f'The response must be an object, got: {data!r}')

        if not isinstance(data.get('methodResponses'), list):
            raise MalformedBatchResponse('The response has no "methodResponses" array')

        session_state = data.get('sessionState')
        if not isinstance(session_state, str):
            raise MalformedBatchResponse('The response has no "sessionState" string')

        created_ids = data.get('createdIds')
        if created_ids is not None and not isinstance(created_ids, dict):
            raise MalformedBatchResponse(f'"createdIds" must be an object, got: {created_ids!r}')

        try:
            method_responses = parse_methods(data['methodResponses'], cls=MethodResponse)
        except MalformedMethodCall as exc:
            raise MalformedBatchResponse(f'Invalid method response: {exc}') from exc

        return cls(
            method_responses=method_responses,
            session_state=session_state,
            created_ids=created_ids
        )

    @classmethod
    def from_bytes(cls, body: bytes):
        return cls.from_json(json.decode(body))

    def __iter__(self) -> Iterator[MethodResponse]:
        return iter(self.method_responses)

    def __len__(self):
        return len(self.method_responses)

    def __getitem__(self, client_id: str) -> MethodResponse:
        response = self.get(client_id)
        if response is None:
            raise KeyError(client_id)
        return response

    def get(self, client_id: str) -> Optional[MethodResponse]:
        """The first response to the call `client_id`.

        When client ids were assigned sequentially, the position usually
        matches, and we look there first; we still check the id rather than
        trusting the position.
        """
        if client_id.isascii() and client_id.isdigit():
            index = int(client_id)
            if index < len(self.method_responses) \
                    and self.method_responses[index].client_id == client_id:
                return self.method_responses[index]

        for response in self.method_responses:
            if response.client_id == client_id:
                return response
        return None

    def responses_for(self, client_id: str) -> List[MethodResponse]:
        """A single call may produce more than one response."""
        return [r for r in self.method_responses if r.client_id == client_id]

    def extract(self, client_id: str, path: str):
        return self[client_id].get(path)
