"""
A JMAP client for mail: authentication, and the common operations on top of
`Batch`. Each operation is one request; the client holds the session and the
token between them.
"""

import logging
from typing import List, Optional, Union
from urllib.parse import urlparse

from jmapclient.config import DEFAULT_SESSION_PATH
from jmapclient.protocol import json
from jmapclient.protocol.batch import Batch, problem_from_response
from jmapclient.protocol.core import JMapResponse
from jmapclient.protocol.errors import AuthenticationFailed, IdentityNotFound, InvalidURL, \
    MailboxNotFound, MalformedBatchResponse, NotAuthenticated, SendingFailed
from jmapclient.protocol.mail import add_email_get, add_email_query, add_identity_get, add_mailbox_get, \
    mail_batch
from jmapclient.protocol.models import CORE_URN, MAIL_URN, SUBMISSION_URN, Email, EmailGetResponse, \
    EmailSubmission, Identity, IdentityGetResponse, Mailbox, MailboxGetResponse, MailboxRole, Session, \
    StandardQueryResponse, project
from jmapclient.protocol.submission import OutgoingEmail, SendEmailTransaction
from jmapclient.transport import RequestsTransport, Transport


logger = logging.getLogger(__name__)


def check_url(url: str) -> str:
    parsed = urlparse(url or '')
    if parsed.scheme not in ('http', 'https') or not parsed.netloc:
        raise InvalidURL(url)
    return url


class JMAPClient:
    """
    Use it like this:

        with JMAPClient('https://api.fastmail.com') as client:
            client.authenticate(token)
            client.send_email('me@example.com', ['you@example.com'], 'Hi', 'Hello!')

    The token is kept in a `bytearray`, and overwritten with zeros on
    `logout()`, when authentication fails, and when the client goes away.

    An instance is not meant to be shared by concurrent operations.
    """

    def __init__(self, base_url: str, transport: Optional[Transport] = None,
                 session_path: str = DEFAULT_SESSION_PATH):
        self._token: Optional[bytearray] = None
        self._session: Optional[Session] = None
        self._account_id: Optional[str] = None

        self.base_url = check_url(base_url).rstrip('/')
        self.session_path = session_path
        self._owns_transport = transport is None
        self.transport = transport or RequestsTransport()

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()

    def __del__(self):
        # __init__ may not have gotten far enough
        if getattr(self, '_token', None) is not None:
            self.logout()

    def close(self):
        self.logout()
        if self._owns_transport:
            self.transport.close()

    @property
    def session_url(self) -> str:
        return f'{self.base_url}/{self.session_path.lstrip("/")}'

    @property
    def session(self) -> Optional[Session]:
        return self._session

    @property
    def is_authenticated(self) -> bool:
        return self._token is not None and self._session is not None

    @property
    def account_id(self) -> str:
        if not self.is_authenticated or self._account_id is None:
            raise NotAuthenticated()
        return self._account_id

    #### Session lifecycle

    def _clear_token(self):
        if self._token is not None:
            self._token[:] = bytes(len(self._token))
        self._token = None

    def _auth_headers(self):
        if self._token is None:
            raise NotAuthenticated()
        return {'Authorization': 'Bearer ' + self._token.decode('utf-8')}

    def authenticate(self, token: Union[str, bytes, bytearray]) -> Session:
        """Fetch the session resource with `token`, and keep both.

        The token is copied; a `bytearray` passed in may be wiped afterwards.
        """
        self.logout()
        self._token = bytearray(token.encode('utf-8') if isinstance(token, str) else token)

        try:
            body, status_code = self.transport.fetch(self.session_url, {
                'Accept': 'application/json',
                **self._auth_headers()
            })
            if status_code != 200:
                raise problem_from_response(status_code, body, AuthenticationFailed)
            session = project(json.decode(body), Session)
        except Exception:
            self.logout()
            raise

        self._session = session
        self._account_id = session.primary_account(MAIL_URN)
        if self._account_id is None:
            logger.warning('The server names no primary account for %s', MAIL_URN)

        logger.info('Authenticated as %s (account %s)', session.username, self._account_id)
        return session

    def logout(self):
        """Forget the token and the session. Calling it twice is fine."""
        self._clear_token()
        self._session = None
        self._account_id = None

    #### Requests

    def execute(self, batch: Batch) -> JMapResponse:
        headers = self._auth_headers()
        if self._session is None:
            raise NotAuthenticated()

        url = check_url(self._session.api_url)

        core = self._session.core_capabilities
        if core is not None:
            batch.check_size(core.max_calls_in_request)

        return batch.run(self.transport, url, headers)

    def _result(self, response: JMapResponse, client_id: str) -> dict:
        method_response = response.get(client_id)
        if method_response is None:
            raise MalformedBatchResponse(f'The server sent no response to call "{client_id}"')
        method_response.raise_for_error()
        return method_response.response

    #### Mail operations

    def get_mailboxes(self) -> List[Mailbox]:
        batch = mail_batch()
        call = add_mailbox_get(batch, self.account_id)
        response = self.execute(batch)
        return project(self._result(response, call), MailboxGetResponse).list

    def get_mailbox(self, role: Union[MailboxRole, str, None] = None, name: Optional[str] = None) -> Mailbox:
        """Find a mailbox by its role, or by its name.

        The server sends us all of them; we pick locally.
        """
        if role is None and name is None:
            raise ValueError('Give a role or a name')
        if isinstance(role, MailboxRole):
            role = role.value

        for mailbox in self.get_mailboxes():
            if role is not None and mailbox.role == role:
                return mailbox
            if role is None and mailbox.name == name:
                return mailbox
        raise MailboxNotFound(role=role, name=name)

    def get_identities(self) -> List[Identity]:
        batch = Batch(using=[CORE_URN, SUBMISSION_URN])
        call = add_identity_get(batch, self.account_id)
        response = self.execute(batch)
        return project(self._result(response, call), IdentityGetResponse).list

    def find_identity(self, email: str) -> Identity:
        for identity in self.get_identities():
            if identity.email.lower() == email.lower():
                return identity
        raise IdentityNotFound(email)

    def get_emails(self, mailbox_id: str, limit: int = 50) -> List[Email]:
        """The newest emails in a mailbox, without their bodies.

        The query and the get go out in one request; the get takes its ids
        from the query's result.
        """
        account_id = self.account_id
        batch = mail_batch()
        query = add_email_query(batch, account_id, mailbox_id=mailbox_id, limit=limit)
        get = add_email_get(batch, account_id, query)
        response = self.execute(batch)

        query_result = project(self._result(response, query), StandardQueryResponse)
        emails = project(self._result(response, get), EmailGetResponse).list
        logger.debug('Mailbox %s: %d of %s emails', mailbox_id, len(emails),
                     query_result.total if query_result.total is not None else 'unknown')
        return emails

    def send(self, message: OutgoingEmail) -> EmailSubmission:
        account_id = self.account_id
        identity = self.find_identity(message.sender)
        drafts = self.get_mailbox(role=MailboxRole.drafts)

        transaction = SendEmailTransaction(account_id, identity, drafts.id, message)
        batch = transaction.build()
        result = transaction.interpret(self.execute(batch))
        if not result.is_sent:
            raise SendingFailed(result.reason)
        return result.submission

    def send_email(self, sender: str, to: List[str], subject: str, text_body: str,
                   html_body: Optional[str] = None, cc: Optional[List[str]] = None,
                   bcc: Optional[List[str]] = None, sender_name: Optional[str] = None) -> EmailSubmission:
        return self.send(OutgoingEmail(
            sender=sender,
            to=to,
            subject=subject,
            text_body=text_body,
            html_body=html_body,
            cc=cc or [],
            bcc=bcc or [],
            sender_name=sender_name
        ))
