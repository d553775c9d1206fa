import json

import pytest

from jmapclient.client import JMAPClient
from jmapclient.transport import Transport


BASE_URL = 'https://api.example.com'
API_URL = 'https://api.example.com/jmap/api/'


SESSION = {
    'capabilities': {
        'urn:ietf:params:jmap:core': {
            'maxSizeUpload': 50000000,
            'maxConcurrentUpload': 4,
            'maxSizeRequest': 10000000,
            'maxConcurrentRequests': 4,
            'maxCallsInRequest': 32,
            'maxObjectsInGet': 256,
            'maxObjectsInSet': 128,
            'collationAlgorithms': ['i;ascii-numeric', 'i;ascii-casemap', 'i;unicode-casemap']
        },
        'urn:ietf:params:jmap:mail': {
            'maxSizeMailboxName': 256,
            'maxMailboxDepth': 10,
            'mayCreateTopLevelMailbox': True,
            'emailQuerySortOptions': ['receivedAt', 'sentAt', 'size', 'from', 'to', 'subject']
        },
        'urn:ietf:params:jmap:submission': {
            'maxDelayedSend': 86400,
            'submissionExtensions': {}
        }
    },
    'accounts': {
        'u123456': {
            'name': 'test@example.com',
            'isPersonal': True,
            'isReadOnly': False,
            'accountCapabilities': {
                'urn:ietf:params:jmap:core': {},
                'urn:ietf:params:jmap:mail': {},
                'urn:ietf:params:jmap:submission': {}
            }
        }
    },
    'primaryAccounts': {
        'urn:ietf:params:jmap:core': 'u123456',
        'urn:ietf:params:jmap:mail': 'u123456',
        'urn:ietf:params:jmap:submission': 'u123456'
    },
    'username': 'test@example.com',
    'apiUrl': API_URL,
    'downloadUrl': 'https://api.example.com/jmap/download/{accountId}/{blobId}/{name}',
    'uploadUrl': 'https://api.example.com/jmap/upload/{accountId}/',
    'eventSourceUrl': 'https://api.example.com/jmap/eventsource/?types={types}&closeafter={closeafter}&ping={ping}',
    'state': 'state123'
}


RIGHTS = {
    'mayReadItems': True,
    'mayAddItems': True,
    'mayRemoveItems': True,
    'maySetSeen': True,
    'maySetKeywords': True,
    'mayCreateChild': True,
    'mayRename': False,
    'mayDelete': False,
    'maySubmit': True
}


def mailbox(id, name, role, total=0, unread=0):
    return {
        'id': id,
        'name': name,
        'parentId': None,
        'role': role,
        'sortOrder': 1,
        'totalEmails': total,
        'unreadEmails': unread,
        'totalThreads': total,
        'unreadThreads': unread,
        'myRights': RIGHTS,
        'isSubscribed': True
    }


MAILBOXES = [
    mailbox('mb1', 'Inbox', 'inbox', total=100, unread=5),
    mailbox('mb2', 'Sent', 'sent', total=50),
    mailbox('drafts', 'Drafts', 'drafts'),
]


IDENTITIES = [
    {
        'id': 'id1',
        'name': 'John Doe',
        'email': 'john@example.com',
        'replyTo': None,
        'bcc': None,
        'textSignature': '',
        'htmlSignature': '',
        'mayDelete': False
    }
]


def method_response(name, args, client_id='0', session_state='state456'):
    return {
        'methodResponses': [[name, args, client_id]],
        'sessionState': session_state
    }


def mailboxes_response(mailboxes=MAILBOXES):
    return method_response('Mailbox/get', {
        'accountId': 'u123456',
        'state': 'state456',
        'list': mailboxes,
        'notFound': []
    })


def identities_response(identities=IDENTITIES):
    return method_response('Identity/get', {
        'accountId': 'u123456',
        'state': 'state789',
        'list': identities,
        'notFound': []
    })


class FakeTransport(Transport):
    """Records every request, and answers from a queue.

    An answer is a `(body, status)` tuple, or a callable which gets the
    request and returns one; JSON-able bodies are encoded for you.
    """

    def __init__(self):
        self.requests = []
        self.answers = []
        self.closed = False

    def queue(self, body, status=200):
        self.answers.append((body, status))

    def request(self, method, url, *, headers, body=None):
        self.requests.append({'method': method, 'url': url, 'headers': dict(headers), 'body': body})
        if not self.answers:
            raise AssertionError(f'Unexpected request: {method} {url}')

        answer = self.answers.pop(0)
        if callable(answer):
            answer = answer(self.requests[-1])
        body, status = answer
        if not isinstance(body, bytes):
            body = json.dumps(body).encode('utf-8')
        return body, status

    def close(self):
        self.closed = True

    @property
    def last_request(self):
        return self.requests[-1]

    def last_json(self):
        return json.loads(self.last_request['body'])


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def client(transport):
    client = JMAPClient(BASE_URL, transport=transport)
    yield client
    client.close()


@pytest.fixture
def authenticated_client(client, transport):
    transport.queue(SESSION)
    client.authenticate('test-token')
    return client
