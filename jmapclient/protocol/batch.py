"""
Knows how to build and send a JMAP request.
"""

import logging
import uuid
from typing import Any, Dict, Iterable, List, Optional

from jmapclient.protocol import json
from jmapclient.protocol.core import JMapRequest, JMapResponse, MethodCall, ResultReference
from jmapclient.protocol.errors import BatchAlreadySent, DanglingReference, MalformedBatchResponse, \
    MalformedJSON, ProtocolError, RequestTooLarge
from jmapclient.protocol.jsonpointer import JsonPointerException, validate_pointer
from jmapclient.protocol.models import CORE_URN


logger = logging.getLogger(__name__)


def problem_from_response(status_code: int, body: bytes, error_class=ProtocolError):
    """Build the error for a non-success response.

    If the body is a request-level error (RFC 7807 problem details), keep
    its `type` and `detail`; anything else in the body is ignored.
    """
    try:
        problem = json.decode(body) if body else None
    except MalformedJSON:
        problem = None
    return error_class.from_problem(status_code, problem)


class Batch:
    """Collects method calls, to be sent as one request.

    You add calls in order; each gets a client id, which you use to refer to
    its result from a later call in the same batch, and to find its response:

        batch = Batch(using=[CORE_URN, MAIL_URN])
        query = batch.add_call('Email/query', {'accountId': 'u1'})
        batch.add_call('Email/get', {
            'accountId': 'u1',
            '#ids': batch.reference(query, '/ids')
        })
        response = batch.run(transport, session.api_url)

    References are checked here, as the calls are added, and are never
    resolved locally; the server does that. A batch is sent once only.
    """

    def __init__(self, using: Iterable[str] = (CORE_URN,)):
        self.using: List[str] = []
        self.method_calls: List[MethodCall] = []
        # Creation id -> client id of the call which creates it
        self.creation_ids: Dict[str, str] = {}
        self.sent = False

        for urn in using:
            self.use(urn)

    def __len__(self):
        return len(self.method_calls)

    def use(self, urn: str) -> 'Batch':
        if urn not in self.using:
            self.using.append(urn)
        return self

    @property
    def client_ids(self) -> List[str]:
        return [call.client_id for call in self.method_calls]

    def get_call(self, client_id: str) -> Optional[MethodCall]:
        for call in self.method_calls:
            if call.client_id == client_id:
                return call
        return None

    def add_call(self, name: str, arguments: Optional[Dict[str, Any]] = None,
                 client_id: Optional[str] = None) -> str:
        """Append a call, and return its client id.

        If you do not give a client id, the next free sequential integer is
        used, as a string.
        """
        self._check_open()

        args = json.to_dynamic(arguments or {})
        if not isinstance(args, dict):
            raise ValueError(f'The arguments of "{name}" must be an object, got: {args!r}')

        if client_id is None:
            client_id = self._next_client_id()
        elif client_id in self.client_ids:
            raise ValueError(f'Client id "{client_id}" is already used in this batch')

        self._check_references(name, args)

        self.method_calls.append(MethodCall(name=name, args=args, client_id=client_id))

        # Remember the creation ids, so that later calls may refer to them
        create = args.get('create')
        if isinstance(create, dict):
            for creation_id in create:
                self.creation_ids[creation_id] = client_id

        return client_id

    def _next_client_id(self) -> str:
        taken = set(self.client_ids)
        index = len(self.method_calls)
        while str(index) in taken:
            index += 1
        return str(index)

    def _check_references(self, name, args):
        for key, value in args.items():
            if not key.startswith('#'):
                continue

            argument = key[1:]
            if argument in args:
                raise ValueError(f'"{name}" was given both "{argument}" and "{key}"')

            if not ResultReference.is_reference(value):
                raise DanglingReference(
                    key, f'"{name}" argument "{key}" must be a result reference, got: {value!r}')

            ref = ResultReference.from_json(value)
            if self.get_call(ref.result_of) is None:
                raise DanglingReference(
                    ref.result_of,
                    f'"{name}" argument "{key}" refers to call "{ref.result_of}", '
                    f'which is not an earlier call in this batch')
            self._check_path(ref.path)

    def _check_path(self, path):
        try:
            validate_pointer(path)
        except JsonPointerException as exc:
            raise ValueError(f'Invalid reference path: {exc}') from exc

    def reference(self, result_of: str, path: str, name: Optional[str] = None) -> ResultReference:
        """Refer to the value at `path` in the result of the call `result_of`.

        `name` is the name of the response to look into; the default is the
        method name of that call.
        """
        call = self.get_call(result_of)
        if call is None:
            raise DanglingReference(result_of)
        self._check_path(path)
        return ResultReference(result_of=result_of, name=name or call.name, path=path)

    def add_reference(self, arguments: Dict[str, Any], argument: str, result_of: str, path: str,
                      name: Optional[str] = None) -> Dict[str, Any]:
        """Put a reference into `arguments`, under the `#`-prefixed argument name."""
        arguments[f'#{argument}'] = self.reference(result_of, path, name=name).to_json()
        return arguments

    @staticmethod
    def creation_id(prefix: str) -> str:
        return f'{prefix}-{uuid.uuid4()}'

    def creation_ref(self, creation_id: str) -> str:
        """Refer to an object created by an earlier call, by its creation id."""
        if creation_id not in self.creation_ids:
            raise DanglingReference(
                creation_id, f'No earlier call in this batch creates "{creation_id}"')
        return f'#{creation_id}'

    def check_size(self, limit: Optional[int]):
        if limit and len(self.method_calls) > limit:
            raise RequestTooLarge(len(self.method_calls), limit)

    def _check_open(self):
        if self.sent:
            raise BatchAlreadySent()

    def build(self) -> JMapRequest:
        return JMapRequest(using=list(self.using), method_calls=list(self.method_calls))

    def run(self, transport, url: str, headers: Optional[Dict[str, str]] = None) -> JMapResponse:
        """Send the batch with `transport`, and decode the response.

        The responses are kept in the order the server sent them.
        """
        self._check_open()
        request = self.build()
        body = request.to_bytes()
        self.sent = True

        logger.debug('Sending %d method calls: %s', len(request.method_calls),
                     ', '.join(f'{c.name} ({c.client_id})' for c in request.method_calls))

        response_body, status_code = transport.send(url, body, {
            'Content-Type': 'application/json',
            'Accept': 'application/json',
            **(headers or {})
        })
        logger.debug('Received status %s, %d bytes', status_code, len(response_body))

        if not 200 <= status_code < 300:
            raise problem_from_response(status_code, response_body)

        try:
            data = json.decode(response_body)
        except MalformedJSON as exc:
            raise MalformedBatchResponse(str(exc)) from exc
        response = JMapResponse.from_json(data)

        known = set(self.client_ids)
        for method_response in response:
            if method_response.client_id not in known:
                logger.warning('Response "%s" has client id "%s", which matches no call in the batch',
                               method_response.name, method_response.client_id)

        return response
