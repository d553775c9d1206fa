from typing import Any, Dict, List, Optional


class JMapError(Exception):
    """Base class of everything this library raises."""


#### Errors raised while building a batch; these never reach the network.


class UnencodableValue(JMapError):
    """A value that has no projection into JSON was put into a request."""

    def __init__(self, value: Any, origin: str):
        self.value = value
        self.origin = origin
        super().__init__(
            f'Cannot encode value of type {type(value).__name__} at {origin}: {value!r}')


class DanglingReference(JMapError):
    """
    A back reference, or a creation id reference, names something that no
    earlier call in the same batch provides.
    """

    def __init__(self, target: str, description: str = None):
        self.target = target
        super().__init__(description or f'"{target}" does not refer to an earlier call in this batch')


class BatchAlreadySent(JMapError):

    def __init__(self):
        super().__init__('This batch has already been sent; build a new one')


class RequestTooLarge(JMapError):
    """The batch has more calls than the server's `maxCallsInRequest`."""

    def __init__(self, calls: int, limit: int):
        self.calls = calls
        self.limit = limit
        super().__init__(f'The batch has {calls} method calls, but the server accepts at most {limit}')


#### Errors decoding the wire format.


class MalformedJSON(JMapError):
    pass


class MalformedMethodCall(JMapError):
    """
    A method call or method response was not the 3-element array
    `[name, arguments, clientId]` (3.2 The Invocation data type,
    https://jmap.io/spec-core.html#the-invocation-data-type).
    """


class MalformedBatchResponse(JMapError):
    pass


class ProjectionError(JMapError):
    """A dynamic value did not fit the typed record it was projected into."""

    def __init__(self, shape, messages):
        self.shape = shape
        self.messages = messages
        super().__init__(f'Cannot read {getattr(shape, "__name__", shape)}: {messages}')


#### Transport and request level errors; these abort the whole batch.


class TransportError(JMapError):
    """The transport could not complete the HTTP exchange at all."""


class ProtocolError(JMapError):
    """
    The server answered with a non-success status code. If the body was
    a request-level error (3.6.1 Request-level errors,
    https://jmap.io/spec-core.html#request-level-errors), its `type` and
    `detail` are kept.
    """

    summary = 'Request failed'

    def __init__(self, status_code: int, type: Optional[str] = None, detail: Optional[str] = None):
        self.status_code = status_code
        self.type = type
        self.detail = detail

        message = f'{self.summary} with status code: {status_code}'
        if type:
            message += f' ({type}'
            message += f': {detail})' if detail else ')'
        super().__init__(message)

    @classmethod
    def from_problem(cls, status_code: int, body: Any):
        if isinstance(body, dict):
            return cls(status_code, type=body.get('type'), detail=body.get('detail'))
        return cls(status_code)


class AuthenticationFailed(ProtocolError):
    summary = 'Authentication failed'


class NotAuthenticated(JMapError):

    def __init__(self):
        super().__init__('Client is not authenticated. Please authenticate first.')


class InvalidURL(JMapError):

    def __init__(self, url: str):
        self.url = url
        super().__init__(f'Invalid URL received from server: {url!r}')


class ConfigurationError(JMapError):
    pass


#### Method-level errors


CALL_LEVEL_ERRORS: Dict[str, type] = {}


class CallLevelError(JMapError):
    """
    A method level error  (3.6.2 Method-level errors, https://jmap.io/spec-core.html#method-level-errors).

    The response to that one call was an error object; the rest of the batch
    is unaffected.
    """

    typename = None

    def __init_subclass__(cls, **kwargs):
        super().__init_subclass__(**kwargs)
        if cls.typename:
            CALL_LEVEL_ERRORS[cls.typename] = cls

    def __init__(self, description: Optional[str] = None, *, type: Optional[str] = None,
                 extra: Optional[Dict[str, Any]] = None):
        self.type = type or self.typename or 'unknown'
        self.description = description
        self.extra = extra or {}
        super().__init__(f'{self.type}: {description}' if description else self.type)

    @staticmethod
    def from_json(data: Dict[str, Any]) -> 'CallLevelError':
        """Pick the matching subclass for an error object."""
        error_type = data.get('type')
        klass = CALL_LEVEL_ERRORS.get(error_type, CallLevelError)
        extra = {k: v for k, v in data.items() if k not in ('type', 'description')}
        return klass(data.get('description'), type=error_type, extra=extra)

    def to_json(self):
        result = {
            'type': self.type
        }
        if self.description:
            result['description'] = self.description
        return result


class UnknownMethod(CallLevelError):
    typename = 'unknownMethod'


class InvalidArguments(CallLevelError):
    typename = 'invalidArguments'


class InvalidResultReference(CallLevelError):
    typename = 'invalidResultReference'


class Forbidden(CallLevelError):
    typename = 'forbidden'


class AccountNotFound(CallLevelError):
    typename = 'accountNotFound'


class AccountNotSupportedByMethod(CallLevelError):
    typename = 'accountNotSupportedByMethod'


class AccountReadOnly(CallLevelError):
    typename = 'accountReadOnly'


class ServerFail(CallLevelError):
    typename = 'serverFail'


class ServerUnavailable(CallLevelError):
    typename = 'serverUnavailable'


class ServerPartialFail(CallLevelError):
    typename = 'serverPartialFail'


class UnsupportedFilter(CallLevelError):
    typename = 'unsupportedFilter'


class UnsupportedSort(CallLevelError):
    typename = 'unsupportedSort'


class CannotCalculateChanges(CallLevelError):
    typename = 'cannotCalculateChanges'


class MethodRequestTooLarge(CallLevelError):
    typename = 'requestTooLarge'


class StateMismatch(CallLevelError):
    typename = 'stateMismatch'


#### /set errors


class PartialCreationFailure(JMapError):
    """
    One of the objects in a `/set` call's `create` was rejected; the server
    reports it under `notCreated` (5.3 /set, https://jmap.io/spec-core.html#set).
    """

    def __init__(self, creation_id: str, type: str, description: Optional[str] = None,
                 properties: Optional[List[str]] = None):
        self.creation_id = creation_id
        self.type = type
        self.description = description
        self.properties = properties

        message = f'{type}: {description or "Unknown error"}'
        if properties:
            message += f' (Properties: {", ".join(properties)})'
        super().__init__(message)


#### Errors of the high-level mail operations


class IdentityNotFound(JMapError):

    def __init__(self, email: str):
        self.email = email
        super().__init__(f'No matching identity found for the sender email address {email}.')


class MailboxNotFound(JMapError):

    def __init__(self, role: Optional[str] = None, name: Optional[str] = None):
        self.role = role
        self.name = name
        what = f'role "{role}"' if role else f'name "{name}"'
        super().__init__(f'Required mailbox with {what} not found.')


class SendingFailed(JMapError):

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f'Failed to send email: {reason}')
