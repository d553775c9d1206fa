"""
Sending an email is a transaction of two calls in one request
(7.5 EmailSubmission/set, https://jmap.io/spec-mail.html#emailsubmissionset):

    Email/set               creates the message as a draft, under a creation
                            id, in the drafts mailbox.

    EmailSubmission/set     creates a submission for "#<draft creation id>",
                            and says `onSuccessDestroyEmail`, so the server
                            removes the draft once the submission exists.

The server resolves the creation id reference; we never see the draft's real
id before the request is sent. Whether the transaction worked can only be
told by looking at both responses together, which is what `interpret()` does.
"""

import enum
import logging
from dataclasses import dataclass, field
from typing import Any, List, Optional

from jmapclient.protocol.batch import Batch
from jmapclient.protocol.core import JMapResponse, MethodResponse
from jmapclient.protocol.errors import PartialCreationFailure, ProjectionError
from jmapclient.protocol.mail import Keywords, Methods
from jmapclient.protocol.models import CORE_URN, MAIL_URN, SUBMISSION_URN, Email, EmailAddress, \
    EmailBodyPart, EmailBodyValue, EmailSubmission, Identity, SetError, project


logger = logging.getLogger(__name__)


ACCOUNT_READ_ONLY_HINT = \
    'Account is read-only. Please create an API token with write permissions.'


class SendState(enum.Enum):
    composing = 'composing'
    submitting = 'submitting'
    sent = 'sent'
    failed = 'failed'


@dataclass
class OutgoingEmail:
    sender: str
    to: List[str]
    subject: str
    text_body: str
    html_body: Optional[str] = None
    cc: List[str] = field(default_factory=list)
    bcc: List[str] = field(default_factory=list)
    sender_name: Optional[str] = None


@dataclass
class SendResult:
    state: SendState
    submission: Optional[EmailSubmission] = None
    reason: Optional[str] = None

    @property
    def is_sent(self) -> bool:
        return self.state is SendState.sent


def addresses(emails: List[str]) -> List[EmailAddress]:
    return [EmailAddress(email=email) for email in emails]


def call_failure(method: str, response: MethodResponse) -> str:
    error = response.error
    if error.type == 'accountReadOnly':
        return f'{method}: accountReadOnly: {ACCOUNT_READ_ONLY_HINT}'
    return f'{method}: {error}'


def creation_failure(creation_id: str, entry: Any) -> PartialCreationFailure:
    try:
        error = project(entry, SetError)
    except ProjectionError:
        return PartialCreationFailure(creation_id, 'unknown')
    return PartialCreationFailure(creation_id, error.type, error.description, error.properties)


class SendEmailTransaction:
    """Compose a draft, and submit it, in one request.

        transaction = SendEmailTransaction(account_id, identity, drafts_id, message)
        batch = transaction.build()
        result = transaction.interpret(batch.run(transport, api_url))

    The identity and the drafts mailbox have to be looked up beforehand, in
    requests of their own.
    """

    def __init__(self, account_id: str, identity: Identity, drafts_mailbox_id: str,
                 message: OutgoingEmail):
        self.account_id = account_id
        self.identity = identity
        self.drafts_mailbox_id = drafts_mailbox_id
        self.message = message

        self.state = SendState.composing
        self.draft_id: Optional[str] = None
        self.submission_id: Optional[str] = None
        self.email_call: Optional[str] = None
        self.submission_call: Optional[str] = None

    def _expect(self, state: SendState, action: str):
        if self.state is not state:
            raise RuntimeError(f'Cannot {action} a transaction which is {self.state.value}')

    def make_draft(self) -> Email:
        message = self.message

        sender = EmailAddress(email=self.identity.email)
        if message.sender_name or self.identity.name:
            sender.name = message.sender_name or self.identity.name

        draft = Email(
            mailbox_ids={self.drafts_mailbox_id: True},
            keywords={Keywords.DRAFT: True},
            from_=[sender],
            to=addresses(message.to),
            subject=message.subject,
            text_body=[EmailBodyPart(part_id='text', type='text/plain')],
            body_values={'text': EmailBodyValue(value=message.text_body)},
        )
        if message.cc:
            draft.cc = addresses(message.cc)
        if message.bcc:
            draft.bcc = addresses(message.bcc)
        if message.html_body is not None:
            draft.html_body = [EmailBodyPart(part_id='html', type='text/html')]
            draft.body_values['html'] = EmailBodyValue(value=message.html_body)
        return draft

    def build(self) -> Batch:
        """Composing -> Submitting; returns the batch to send."""
        self._expect(SendState.composing, 'build')

        batch = Batch(using=[CORE_URN, MAIL_URN, SUBMISSION_URN])
        self.draft_id = batch.creation_id('draft')
        self.submission_id = batch.creation_id('send')

        self.email_call = batch.add_call(Methods.EMAIL_SET, {
            'accountId': self.account_id,
            'create': {
                self.draft_id: self.make_draft()
            }
        })

        submission = EmailSubmission(
            identity_id=self.identity.id,
            email_id=batch.creation_ref(self.draft_id)
        )
        self.submission_call = batch.add_call(Methods.EMAIL_SUBMISSION_SET, {
            'accountId': self.account_id,
            'create': {
                self.submission_id: submission
            },
            # Refers to the submission created by this very call
            'onSuccessDestroyEmail': [f'#{self.submission_id}'],
        })

        self.state = SendState.submitting
        return batch

    def interpret(self, response: JMapResponse) -> SendResult:
        """Submitting -> Sent or Failed.

        Raises `ProjectionError` when the server accepted the submission but
        its created record cannot be read.
        """
        self._expect(SendState.submitting, 'interpret')

        email_response = response.get(self.email_call)
        submission_response = response.get(self.submission_call)

        reason = self._check(Methods.EMAIL_SET, email_response, self.draft_id) \
            or self._check(Methods.EMAIL_SUBMISSION_SET, submission_response, self.submission_id)

        if reason is None:
            drafts = email_response.response.get('created')
            if drafts is not None and not isinstance(drafts, dict):
                reason = f'{Methods.EMAIL_SET}: Failed to create email'

        if reason is None:
            created = submission_response.response.get('created')
            if not isinstance(created, dict) or list(created) != [self.submission_id]:
                reason = f'{Methods.EMAIL_SUBMISSION_SET}: Failed to create email submission'

        if reason is not None:
            logger.warning('Sending failed: %s', reason)
            self.state = SendState.failed
            return SendResult(state=SendState.failed, reason=reason)

        self.state = SendState.sent
        return SendResult(
            state=SendState.sent,
            submission=self._read_submission(email_response, created[self.submission_id])
        )

    def _check(self, method: str, response: Optional[MethodResponse], creation_id: str) -> Optional[str]:
        if response is None:
            return f'{method}: The server sent no response to this call'

        # An error object replaces the whole result
        if response.is_error:
            return call_failure(method, response)

        not_created = response.response.get('notCreated')
        if isinstance(not_created, dict) and not_created:
            failed_id = creation_id if creation_id in not_created else next(iter(not_created))
            return f'{method} could not create {failed_id}: ' \
                   f'{creation_failure(failed_id, not_created[failed_id])}'

        return None

    def _read_submission(self, email_response, record) -> EmailSubmission:
        """
        A server only returns the properties it set itself; fill in the ones
        we sent, and the draft's real id, where it left them out.

        Raises `ProjectionError` if the record still does not fit; the state
        is Sent by then, as the server did accept the submission.
        """
        data = {'identityId': self.identity.id}
        drafts = email_response.response.get('created')
        draft = drafts.get(self.draft_id) if isinstance(drafts, dict) else None
        if isinstance(draft, dict) and isinstance(draft.get('id'), str):
            data['emailId'] = draft['id']
        if isinstance(record, dict):
            data.update(record)

        submission = project(data, EmailSubmission)
        logger.info('Email sent, submission %s (%s)', submission.id,
                    submission.undo_status.value if submission.undo_status else 'unknown status')
        return submission
