"""
The parts of the mail spec (https://jmap.io/spec-mail.html) a client needs
to talk about mail: capabilities, method names, keywords, and helpers which
add the usual calls to a `Batch`.

The helpers only build arguments; they do not send anything.
"""

from typing import List, Optional

from jmapclient.protocol.batch import Batch
from jmapclient.protocol.models import CORE_URN, MAIL_URN, SUBMISSION_URN, Comparator


__all__ = [
    'CORE_URN', 'MAIL_URN', 'SUBMISSION_URN', 'Methods', 'Keywords', 'DEFAULT_EMAIL_PROPERTIES',
    'mail_batch', 'add_mailbox_get', 'add_identity_get', 'add_email_query', 'add_email_get',
]


class Methods:
    EMAIL_GET = 'Email/get'
    EMAIL_SET = 'Email/set'
    EMAIL_QUERY = 'Email/query'
    EMAIL_CHANGES = 'Email/changes'

    MAILBOX_GET = 'Mailbox/get'
    MAILBOX_SET = 'Mailbox/set'
    MAILBOX_QUERY = 'Mailbox/query'
    MAILBOX_CHANGES = 'Mailbox/changes'

    IDENTITY_GET = 'Identity/get'

    EMAIL_SUBMISSION_GET = 'EmailSubmission/get'
    EMAIL_SUBMISSION_SET = 'EmailSubmission/set'


class Keywords:
    SEEN = '$seen'
    FLAGGED = '$flagged'
    ANSWERED = '$answered'
    DRAFT = '$draft'


# What we ask for when listing emails; the body is not included.
DEFAULT_EMAIL_PROPERTIES = [
    'id', 'blobId', 'threadId', 'mailboxIds', 'keywords',
    'size', 'receivedAt', 'sentAt', 'from', 'to', 'cc', 'bcc',
    'subject', 'preview', 'hasAttachment'
]


def mail_batch(*extra: str) -> Batch:
    return Batch(using=[CORE_URN, MAIL_URN, *extra])


def add_mailbox_get(batch: Batch, account_id: str, ids: Optional[List[str]] = None) -> str:
    return batch.add_call(Methods.MAILBOX_GET, {'accountId': account_id, 'ids': ids})


def add_identity_get(batch: Batch, account_id: str) -> str:
    batch.use(SUBMISSION_URN)
    return batch.add_call(Methods.IDENTITY_GET, {'accountId': account_id, 'ids': None})


def add_email_query(batch: Batch, account_id: str, mailbox_id: Optional[str] = None,
                    limit: Optional[int] = None) -> str:
    """Newest first."""
    args = {
        'accountId': account_id,
        'sort': [Comparator(property='receivedAt', is_ascending=False)],
    }
    if mailbox_id is not None:
        args['filter'] = {'inMailbox': mailbox_id}
    if limit is not None:
        args['limit'] = limit
    return batch.add_call(Methods.EMAIL_QUERY, args)


def add_email_get(batch: Batch, account_id: str, ids_from: str,
                  properties: Optional[List[str]] = None) -> str:
    """Get the emails whose ids are the result of the earlier call `ids_from`."""
    args = {
        'accountId': account_id,
        'properties': properties or DEFAULT_EMAIL_PROPERTIES,
    }
    batch.add_reference(args, 'ids', ids_from, '/ids')
    return batch.add_call(Methods.EMAIL_GET, args)
