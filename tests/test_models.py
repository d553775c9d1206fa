from datetime import datetime, timezone

import pytest

from jmapclient.protocol.errors import ProjectionError
from jmapclient.protocol.models import CORE_URN, MAIL_URN, Email, EmailAddress, EmailBodyPart, \
    EmailBodyValue, EmailSubmission, Mailbox, MailboxRole, Session, UndoStatus, project, project_list

from conftest import MAILBOXES, SESSION


def test_session():
    session = project(SESSION, Session)

    assert session.username == 'test@example.com'
    assert session.primary_account(MAIL_URN) == 'u123456'
    assert session.primary_account('urn:example:unknown') is None
    assert session.accounts['u123456'].is_personal is True
    assert session.accounts['u123456'].account_capabilities[CORE_URN] == {}

    core = session.core_capabilities
    assert core.max_calls_in_request == 32
    assert core.max_objects_in_get == 256
    assert 'i;unicode-casemap' in core.collation_algorithms

    # Other capabilities stay as they came
    assert session.capabilities[MAIL_URN]['maxMailboxDepth'] == 10


def test_session_without_core_capability():
    session = project({**SESSION, 'capabilities': {}}, Session)
    assert session.core_capabilities is None


def test_projection_errors():
    with pytest.raises(ProjectionError):
        project(['not', 'an', 'object'], Session)

    with pytest.raises(ProjectionError) as excinfo:
        project({'username': 'x'}, Session)
    assert 'apiUrl' in str(excinfo.value)

    with pytest.raises(ProjectionError):
        project({**MAILBOXES[0], 'totalEmails': -1}, Mailbox)

    with pytest.raises(ProjectionError):
        project({**MAILBOXES[0], 'totalEmails': '100'}, Mailbox)

    with pytest.raises(ProjectionError):
        project_list({'notList': []}, Mailbox)


def test_mailbox():
    mailboxes = project_list({'list': MAILBOXES}, Mailbox)
    assert [m.role for m in mailboxes] == ['inbox', 'sent', 'drafts']
    assert MailboxRole(mailboxes[2].role) is MailboxRole.drafts
    assert mailboxes[0].my_rights.may_rename is False

    # Roles a server invents are kept
    custom = project({**MAILBOXES[0], 'role': 'x-custom'}, Mailbox)
    assert custom.role == 'x-custom'


def test_unknown_properties_are_ignored():
    mailbox = project({**MAILBOXES[0], 'x-vendor': {'a': 1}}, Mailbox)
    assert mailbox.id == 'mb1'


def test_draft_is_sent_without_server_set_properties():
    draft = Email(
        mailbox_ids={'drafts': True},
        from_=[EmailAddress(email='john@example.com', name='John')],
        subject='Hi',
        text_body=[EmailBodyPart(part_id='text', type='text/plain')],
        body_values={'text': EmailBodyValue(value='Hello')},
    )
    assert draft.to_server() == {
        'mailboxIds': {'drafts': True},
        'from': [{'email': 'john@example.com', 'name': 'John'}],
        'subject': 'Hi',
        'textBody': [{'partId': 'text', 'type': 'text/plain'}],
        'bodyValues': {'text': {'value': 'Hello'}},
    }


def test_email_from_server():
    email = project({
        'id': 'e1',
        'blobId': 'b1',
        'threadId': 't1',
        'mailboxIds': {'mb1': True},
        'size': 10,
        'receivedAt': '2014-12-22T03:12:58Z',
        'from': [{'name': None, 'email': 'jane@example.com'}],
        'bodyStructure': {
            'type': 'multipart/alternative',
            'subParts': [{'partId': '1', 'type': 'text/plain'}],
        },
    }, Email)

    assert email.received_at == datetime(2014, 12, 22, 3, 12, 58, tzinfo=timezone.utc)
    assert str(email.from_[0]) == 'jane@example.com'
    assert email.body_structure.sub_parts[0].part_id == '1'
    assert email.keywords == {}
    assert email.subject is None


def test_email_submission():
    submission = project({
        'id': 'S1',
        'identityId': 'id1',
        'emailId': 'M1',
        'threadId': 'T1',
        'sendAt': '2024-05-01T12:00:00Z',
        'undoStatus': 'pending',
        'deliveryStatus': {
            'jane@example.com': {'smtpReply': '250 OK', 'delivered': 'queued', 'displayed': 'unknown'}
        },
    }, EmailSubmission)

    assert submission.undo_status is UndoStatus.pending
    assert submission.delivery_status['jane@example.com'].smtp_reply == '250 OK'

    with pytest.raises(ProjectionError):
        project({'id': 'S1', 'identityId': 'id1', 'emailId': 'M1', 'undoStatus': 'gone'}, EmailSubmission)

    # A new submission only carries what the client sets
    assert EmailSubmission(identity_id='id1', email_id='#draft').to_server() == {
        'identityId': 'id1',
        'emailId': '#draft',
    }
