import pytest
import requests

from jmapclient.protocol.errors import TransportError
from jmapclient.transport import RequestsTransport, Transport


class StubSession:

    def __init__(self, error=None):
        self.calls = []
        self.error = error
        self.closed = False

    def request(self, method, url, **kwargs):
        self.calls.append((method, url, kwargs))
        if self.error:
            raise self.error
        response = requests.Response()
        response.status_code = 201
        response._content = b'{"ok": true}'
        return response

    def close(self):
        self.closed = True


def test_send():
    session = StubSession()
    transport = RequestsTransport(timeout=5, session=session)

    body, status = transport.send('https://api.example.com/jmap/', b'{}', {'Content-Type': 'application/json'})
    assert (body, status) == (b'{"ok": true}', 201)

    method, url, kwargs = session.calls[0]
    assert method == 'POST'
    assert kwargs['data'] == b'{}'
    assert kwargs['timeout'] == 5
    assert kwargs['headers'] == {'Content-Type': 'application/json'}

    transport.fetch('https://api.example.com/.well-known/jmap', {})
    assert session.calls[1][0] == 'GET'
    assert session.calls[1][2]['data'] is None

    transport.close()
    assert session.closed


@pytest.mark.parametrize('error', [
    requests.exceptions.ConnectTimeout('slow'),
    requests.exceptions.ConnectionError('refused'),
])
def test_errors(error):
    transport = RequestsTransport(session=StubSession(error=error))
    with pytest.raises(TransportError) as excinfo:
        transport.fetch('https://api.example.com/', {})
    assert excinfo.value.__cause__ is error


def test_request_must_be_implemented():
    class Incomplete(Transport):
        pass

    with pytest.raises(TypeError):
        Incomplete()
