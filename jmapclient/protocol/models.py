"""Objects representing the various data objects used in JMAP.

JMAP type guide:

String|null (default: null) ===>  Optional[str] = None
String|null                 ===>  Optional[str] = None    (see 3.4 "null is always the default")
String (default="")         ===>  str = ""

In our models, Optional[str] allows None, but the type attribute needs to given.

To give more information to an attribute, such as validation logic, write:

Optional[str] = attrib()

This is preferable to a custom MyString type, since the types itself are used for
MyPy, which it is supposed to be a true string.

None of these are required to talk to a server: a `Batch` deals in plain
JSON values only. Use `project()` to read a part of a response into one of
these records, when you want a concrete shape.
"""

from datetime import datetime
import enum
from typing import Any, Dict, List, Optional

from marshmallow import ValidationError

from jmapclient.models import model, attrib, Factory
from jmapclient.protocol.errors import ProjectionError


CORE_URN = 'urn:ietf:params:jmap:core'
MAIL_URN = 'urn:ietf:params:jmap:mail'
SUBMISSION_URN = 'urn:ietf:params:jmap:submission'


def PositiveInt(default=None, **kwargs):
    """The UnsignedInt type specified by JMAP.

    This is a `attrib` which defines a validator. Use like this:

        @model
        class Foo:
            bar: int = PositiveInt(default=42)

    That is, the MyPy type remains an `int`, but the model has a
    validation logic and a default.
    """
    def larger_than_0(self, attribute, value):
        if value is not None and value < 0:
            raise ValueError(f'{attribute.name} is an UnsignedInt and must be >= 0, but was given: {value}')
    return attrib(validator=larger_than_0, default=default, **kwargs)


def project(data: Any, shape):
    """Read the dynamic value `data` into the record type `shape`.

    Raises `ProjectionError` if it does not fit.
    """
    if not isinstance(data, dict):
        raise ProjectionError(shape, f'expected an object, got {type(data).__name__}')
    try:
        return shape.from_server(data)
    except ValidationError as exc:
        raise ProjectionError(shape, exc.messages) from exc


def project_list(data: Any, shape, key: str = 'list') -> list:
    """Read the array `data[key]`, as in the result of a /get call."""
    if not isinstance(data, dict) or not isinstance(data.get(key), list):
        raise ProjectionError(shape, f'expected an object with a "{key}" array')
    return [project(item, shape) for item in data[key]]


###### Session


@model
class CoreCapabilities:
    """
    The `urn:ietf:params:jmap:core` capability (2. The JMAP Session resource).
    """
    max_size_upload: int = PositiveInt()
    max_concurrent_upload: int = PositiveInt()
    max_size_request: int = PositiveInt()
    max_concurrent_requests: int = PositiveInt()
    max_calls_in_request: int = PositiveInt()
    max_objects_in_get: int = PositiveInt()
    max_objects_in_set: int = PositiveInt()
    collation_algorithms: List[str] = attrib(default=Factory(list))


@model
class Account:
    """
    See "2. The JMAP Session resource".
    """
    name: str
    is_personal: bool
    is_read_only: bool
    account_capabilities: Dict[str, Any] = attrib(default=Factory(dict))


@model
class Session:
    """
    2. The JMAP Session resource (https://jmap.io/spec-core.html#the-jmap-session-resource)
    """
    capabilities: Dict[str, Any]
    accounts: Dict[str, Account]
    primary_accounts: Dict[str, str]
    username: str
    api_url: str
    download_url: Optional[str] = None
    upload_url: Optional[str] = None
    event_source_url: Optional[str] = None
    state: str

    @property
    def core_capabilities(self) -> Optional[CoreCapabilities]:
        data = self.capabilities.get(CORE_URN)
        if data is None:
            return None
        return project(data, CoreCapabilities)

    def primary_account(self, urn: str) -> Optional[str]:
        return self.primary_accounts.get(urn)


###### Base models


@model
class Comparator:
    property: str
    is_ascending: bool = True
    collation: str = ''


@model
class SetError:
    """
    5.3 /set, `notCreated` and friends (https://jmap.io/spec-core.html#/set)
    """
    type: str
    description: Optional[str] = None
    properties: Optional[List[str]] = None


@model
class StandardGetResponse:
    """
    "5.1 /get" (https://jmap.io/spec-core.html#/get)

    Subclasses add a `list` of their type.
    """
    account_id: str
    state: str
    not_found: List[str] = attrib(default=Factory(list))


@model
class StandardQueryResponse:
    """
    "5.5 /query" (https://jmap.io/spec-core.html#/query)
    """
    account_id: str
    query_state: str
    can_calculate_changes: bool
    position: int = PositiveInt()
    total: Optional[int] = PositiveInt(default=None)
    limit: Optional[int] = PositiveInt(default=None)
    ids: List[str]


####### Mailbox


class MailboxRole(enum.Enum):
    """
    The IANA registered roles (RFC 8457), and `junk`, which some servers
    use in place of `spam`.
    """
    inbox = 'inbox'
    archive = 'archive'
    drafts = 'drafts'
    outbox = 'outbox'
    sent = 'sent'
    trash = 'trash'
    spam = 'spam'
    junk = 'junk'
    templates = 'templates'
    important = 'important'
    all = 'all'
    flagged = 'flagged'


@model
class MailboxRights:
    may_read_items: bool
    may_add_items: bool
    may_remove_items: bool
    may_set_seen: bool
    may_set_keywords: bool
    may_create_child: bool
    may_rename: bool
    may_delete: bool
    may_submit: bool


@model
class Mailbox:
    id: str = attrib(server_set=True)
    name: str
    parent_id: Optional[str] = None
    # Servers may use roles outside of `MailboxRole`, so this stays a string.
    role: Optional[str] = None
    sort_order: int = PositiveInt(default=0)

    total_emails: int = PositiveInt(server_set=True)
    unread_emails: int = PositiveInt(server_set=True)
    total_threads: int = PositiveInt(server_set=True)
    unread_threads: int = PositiveInt(server_set=True)
    my_rights: MailboxRights = attrib(server_set=True)
    is_subscribed: bool = True


@model
class MailboxGetResponse(StandardGetResponse):
    list: List[Mailbox]


####### Email


@model
class EmailAddress:
    name: Optional[str] = None
    email: str

    def __str__(self):
        if self.name:
            return f'{self.name} <{self.email}>'
        return self.email


@model
class EmailHeader:
    name: str
    value: str


@model
class EmailBodyValue:
    value: str
    is_encoding_problem: bool = False
    is_truncated: bool = False


@model
class EmailBodyPart:
    # 4.1.4 Body Parts
    part_id: Optional[str] = None
    blob_id: Optional[str] = None
    size: int = PositiveInt()
    headers: Optional[List[EmailHeader]] = None
    name: Optional[str] = None
    type: Optional[str] = None
    charset: Optional[str] = None
    disposition: Optional[str] = None
    cid: Optional[str] = None
    language: Optional[List[str]] = None
    location: Optional[str] = None
    sub_parts: Optional[List["self"]] = None


@model
class Email:
    # https://jmap.io/spec-mail.html#properties-of-the-email-object
    # 4.1.1 Metadata
    id: str = attrib(server_set=True)
    blob_id: str = attrib(server_set=True)
    thread_id: str = attrib(server_set=True)
    mailbox_ids: Dict[str, bool] = attrib(default=Factory(dict))
    keywords: Dict[str, bool] = attrib(default=Factory(dict))
    size: int = PositiveInt(server_set=True)
    received_at: datetime = attrib(server_set=True)

    # 4.1.3 Header fields properties, the parsed shortcuts only
    message_id: Optional[List[str]] = None
    in_reply_to: Optional[List[str]] = None
    references: Optional[List[str]] = None
    sender: Optional[List[EmailAddress]] = None
    from_: Optional[List[EmailAddress]] = None
    to: Optional[List[EmailAddress]] = None
    cc: Optional[List[EmailAddress]] = None
    bcc: Optional[List[EmailAddress]] = None
    reply_to: Optional[List[EmailAddress]] = None
    subject: Optional[str] = None
    sent_at: Optional[datetime] = None

    # 4.1.4 Body Parts
    body_structure: Optional[EmailBodyPart] = None
    body_values: Optional[Dict[str, EmailBodyValue]] = None
    text_body: Optional[List[EmailBodyPart]] = None
    html_body: Optional[List[EmailBodyPart]] = None
    attachments: Optional[List[EmailBodyPart]] = None
    has_attachment: bool = attrib(server_set=True)
    preview: str = attrib(server_set=True)


@model
class EmailGetResponse(StandardGetResponse):
    list: List[Email]


####### Identity


@model
class Identity:
    """
    6. Identities (https://jmap.io/spec-mail.html#identities)
    """
    id: str = attrib(server_set=True)
    name: str = ''
    email: str
    reply_to: Optional[List[EmailAddress]] = None
    bcc: Optional[List[EmailAddress]] = None
    text_signature: str = ''
    html_signature: str = ''
    may_delete: bool = attrib(server_set=True)


@model
class IdentityGetResponse(StandardGetResponse):
    list: List[Identity]


####### EmailSubmission


class UndoStatus(enum.Enum):
    pending = 'pending'
    final = 'final'
    canceled = 'canceled'


@model
class SubmissionAddress:
    email: str
    parameters: Optional[Dict[str, Any]] = None


@model
class Envelope:
    mail_from: SubmissionAddress
    rcpt_to: List[SubmissionAddress]


@model
class DeliveryStatus:
    smtp_reply: str
    # yes, no, queued, unknown
    delivered: str
    # yes, unknown
    displayed: str


@model
class EmailSubmission:
    """
    7. Email Submission (https://jmap.io/spec-mail.html#email-submission)

    On creation, `email_id` may be a creation id reference ("#draft-...")
    to an email created earlier in the same request.
    """
    id: str = attrib(server_set=True)
    identity_id: str
    email_id: str
    thread_id: Optional[str] = attrib(server_set=True)
    envelope: Optional[Envelope] = None
    send_at: Optional[datetime] = attrib(server_set=True)
    undo_status: UndoStatus = attrib(server_set=True)
    delivery_status: Optional[Dict[str, DeliveryStatus]] = attrib(server_set=True)
    dsn_blob_ids: Optional[List[str]] = attrib(server_set=True)
    mdn_blob_ids: Optional[List[str]] = attrib(server_set=True)
