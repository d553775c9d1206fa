import pytest

from jmapclient.protocol import json
from jmapclient.protocol.core import JMapRequest, JMapResponse, MethodCall, MethodResponse, \
    decode_method_call, encode_method_call
from jmapclient.protocol.errors import AccountReadOnly, CallLevelError, MalformedBatchResponse, \
    MalformedMethodCall, UnknownMethod


def test_method_call_is_an_array_of_three():
    call = MethodCall(name='Mailbox/get', args={'accountId': 'u1', 'ids': None}, client_id='c1')
    assert encode_method_call(call) == ['Mailbox/get', {'accountId': 'u1', 'ids': None}, 'c1']
    assert decode_method_call(encode_method_call(call)) == call
    assert json.encode(call.to_json()) == b'["Mailbox/get",{"accountId":"u1","ids":null},"c1"]'


@pytest.mark.parametrize('data', [
    ['Mailbox/get', {}],
    ['Mailbox/get', {}, '0', 'extra'],
    {'method': 'Mailbox/get', 'arguments': {}, 'clientId': '0'},
    [1, {}, '0'],
    ['Mailbox/get', [], '0'],
    ['Mailbox/get', {}, 0],
    'Mailbox/get',
])
def test_malformed_method_call(data):
    with pytest.raises(MalformedMethodCall):
        decode_method_call(data)


def test_request_wire_format():
    request = JMapRequest(
        using=['urn:ietf:params:jmap:core'],
        method_calls=[MethodCall(name='Core/echo', args={'hello': True}, client_id='0')]
    )
    assert json.decode(request.to_bytes()) == {
        'using': ['urn:ietf:params:jmap:core'],
        'methodCalls': [['Core/echo', {'hello': True}, '0']]
    }
    assert JMapRequest.from_json(request.to_json()) == request


class TestResponse:

    def test_parse(self):
        response = JMapResponse.from_bytes(
            b'{"methodResponses": [["Mailbox/get", {"list": []}, "0"],'
            b' ["error", {"type": "unknownMethod"}, "1"]],'
            b' "sessionState": "s1", "createdIds": {"k": "v"}}')

        assert response.session_state == 's1'
        assert response.created_ids == {'k': 'v'}
        assert [r.client_id for r in response] == ['0', '1']
        assert response.get('0') == MethodResponse(name='Mailbox/get', response={'list': []}, client_id='0')
        assert not response['0'].is_error
        assert response['1'].is_error
        assert isinstance(response['1'].error, UnknownMethod)

    def test_created_ids_are_optional(self):
        response = JMapResponse.from_json({'methodResponses': [], 'sessionState': 's'})
        assert response.created_ids is None
        assert 'createdIds' not in response.to_json()

    @pytest.mark.parametrize('data', [
        [],
        {'sessionState': 's'},
        {'methodResponses': {}, 'sessionState': 's'},
        {'methodResponses': []},
        {'methodResponses': [], 'sessionState': 1},
        {'methodResponses': [], 'sessionState': 's', 'createdIds': []},
        {'methodResponses': [['Mailbox/get', {}]], 'sessionState': 's'},
    ])
    def test_malformed(self, data):
        with pytest.raises(MalformedBatchResponse):
            JMapResponse.from_json(data)

    def test_malformed_element_is_chained(self):
        with pytest.raises(MalformedBatchResponse) as excinfo:
            JMapResponse.from_json({'methodResponses': [{'a': 1}], 'sessionState': 's'})
        assert isinstance(excinfo.value.__cause__, MalformedMethodCall)

    def test_lookup_does_not_trust_the_position(self):
        response = JMapResponse.from_json({
            'methodResponses': [
                ['B/get', {'b': 1}, '1'],
                ['A/get', {'a': 1}, '0'],
                ['A/extra', {'x': 1}, '0'],
            ],
            'sessionState': 's'
        })
        assert response['0'].name == 'A/get'
        assert response['1'].name == 'B/get'
        assert [r.name for r in response.responses_for('0')] == ['A/get', 'A/extra']
        assert response.extract('1', '/b') == 1
        assert response.get('2') is None
        with pytest.raises(KeyError):
            response['2']

        # Order is as the server sent it
        assert [r.name for r in response] == ['B/get', 'A/get', 'A/extra']


def test_call_level_errors():
    error = CallLevelError.from_json({'type': 'accountReadOnly', 'description': 'No writes'})
    assert isinstance(error, AccountReadOnly)
    assert str(error) == 'accountReadOnly: No writes'

    error = CallLevelError.from_json({'type': 'somethingNew', 'extra': 1})
    assert type(error) is CallLevelError
    assert error.type == 'somethingNew'
    assert error.extra == {'extra': 1}
    assert str(error) == 'somethingNew'

    response = MethodResponse(name='error', response={'type': 'unknownMethod'}, client_id='0')
    with pytest.raises(UnknownMethod):
        response.raise_for_error()
