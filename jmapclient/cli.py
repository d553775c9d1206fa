"""The `jmap-client` command line tool."""

import logging
from typing import List, Optional

import click

from jmapclient.client import JMAPClient
from jmapclient.config import load_settings
from jmapclient.protocol.errors import JMapError, MailboxNotFound
from jmapclient.protocol.models import MailboxRole
from jmapclient.transport import RequestsTransport


ROLES = [role.value for role in MailboxRole]


class AppContext:
    """What the subcommands share. A test can pass its own `transport`."""

    def __init__(self, transport=None):
        self.transport = transport
        self.options = {}
        self._client: Optional[JMAPClient] = None

    def client(self) -> JMAPClient:
        """An authenticated client; closed when the command ends."""
        if self._client is None:
            settings = load_settings(**self.options)
            self.options.pop('token', None)
            transport = self.transport or RequestsTransport(timeout=settings.timeout)
            client = JMAPClient(settings.server_url, transport=transport,
                                session_path=settings.session_path)
            click.get_current_context().call_on_close(client.close)
            try:
                client.authenticate(settings.token)
            finally:
                settings.clear_token()
            self._client = client
        return self._client


class JMapGroup(click.Group):
    """Turns our errors into a one-line message, and exit status 1."""

    def invoke(self, ctx):
        try:
            return super().invoke(ctx)
        except JMapError as exc:
            raise click.ClickException(str(exc)) from exc


def split_addresses(value: Optional[str]) -> List[str]:
    if not value:
        return []
    return [item.strip() for item in value.split(',') if item.strip()]


@click.group(cls=JMapGroup)
@click.option('-u', '--server', 'server_url', default=None, help='JMAP server URL [JMAP_SERVER_URL].')
@click.option('-t', '--token', default=None, help='API token [JMAP_TOKEN].')
@click.option('--session-path', default=None,
              help='Path of the session resource [JMAP_SESSION_PATH, default /.well-known/jmap].')
@click.option('--timeout', type=float, default=None, help='Request timeout in seconds [JMAP_TIMEOUT].')
@click.option('-v', '--verbose', is_flag=True, help='Log debug output.')
@click.pass_context
def cli(ctx: click.Context, server_url, token, session_path, timeout, verbose):
    """Talk to a JMAP mail server."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format='%(levelname)s %(name)s: %(message)s'
    )
    if ctx.obj is None:
        ctx.obj = AppContext()
    ctx.obj.options = {
        'server_url': server_url,
        'token': token,
        'session_path': session_path,
        'timeout': timeout,
    }


@cli.command()
@click.pass_obj
def auth(app: AppContext):
    """Check the token, and show the session."""
    client = app.client()
    session = client.session

    click.echo('Authentication successful.')
    click.echo(f'Username: {session.username}')
    click.echo(f'API URL: {session.api_url}')
    click.echo(f'State: {session.state}')
    click.echo('Capabilities:')
    for capability in session.capabilities:
        click.echo(f'  - {capability}')
    click.echo('Accounts:')
    for account_id, account in session.accounts.items():
        click.echo(f'  {account_id}: {account.name} (personal: {account.is_personal})')


@cli.group()
def mailbox():
    """Mailboxes."""


def echo_mailbox(item):
    click.echo(f'{item.name} [{item.role or "no role"}]')
    click.echo(f'  ID: {item.id}')
    click.echo(f'  Emails: {item.total_emails} ({item.unread_emails} unread)')
    click.echo(f'  Threads: {item.total_threads} ({item.unread_threads} unread)')


@mailbox.command('list')
@click.pass_obj
def mailbox_list(app: AppContext):
    mailboxes = app.client().get_mailboxes()
    click.echo(f'Mailboxes ({len(mailboxes)}):')
    for item in mailboxes:
        echo_mailbox(item)


@mailbox.command('get')
@click.option('-n', '--name', default=None, help='Mailbox name.')
@click.option('-r', '--role', type=click.Choice(ROLES, case_sensitive=False), default=None,
              help='Mailbox role.')
@click.pass_obj
def mailbox_get(app: AppContext, name, role):
    if not name and not role:
        raise click.UsageError('Either --name or --role must be given.')
    echo_mailbox(app.client().get_mailbox(role=role.lower() if role else None, name=name))


@cli.group()
def email():
    """Emails."""


@email.command('list')
@click.option('-m', '--mailbox', 'mailbox_name', default='inbox', show_default=True,
              help='Mailbox role or name.')
@click.option('-l', '--limit', type=click.IntRange(min=1), default=10, show_default=True)
@click.pass_obj
def email_list(app: AppContext, mailbox_name, limit):
    client = app.client()

    target = None
    if mailbox_name.lower() in ROLES:
        try:
            target = client.get_mailbox(role=mailbox_name.lower())
        except MailboxNotFound:
            pass
    if target is None:
        target = client.get_mailbox(name=mailbox_name)

    emails = client.get_emails(target.id, limit=limit)
    click.echo(f'Emails in {target.name} ({len(emails)}):')
    for index, item in enumerate(emails, 1):
        click.echo(f'[{index}] {item.subject or "(No Subject)"}')
        if item.from_:
            click.echo(f'  From: {", ".join(str(a) for a in item.from_)}')
        if item.received_at:
            click.echo(f'  Date: {item.received_at:%Y-%m-%d %H:%M}')
        if item.preview:
            click.echo(f'  Preview: {item.preview[:100]}')
        click.echo(f'  ID: {item.id}')


@cli.group()
def identity():
    """Sender identities."""


@identity.command('list')
@click.pass_obj
def identity_list(app: AppContext):
    identities = app.client().get_identities()
    click.echo(f'Identities ({len(identities)}):')
    for item in identities:
        click.echo(f'{item.name} <{item.email}>' if item.name else item.email)
        click.echo(f'  ID: {item.id}')


@cli.command()
@click.option('-f', '--from', 'sender', required=True, help='Sender address; must match an identity.')
@click.option('-r', '--to', required=True, help='Recipients, comma-separated.')
@click.option('-s', '--subject', required=True)
@click.option('-b', '--body', required=True, help='Plain text body.')
@click.option('-c', '--cc', default=None, help='CC recipients, comma-separated.')
@click.option('--bcc', default=None, help='BCC recipients, comma-separated.')
@click.option('--html-body', default=None, help='HTML body.')
@click.pass_obj
def send(app: AppContext, sender, to, subject, body, cc, bcc, html_body):
    """Send an email."""
    recipients = split_addresses(to)
    if not recipients:
        raise click.UsageError('--to needs at least one address.')

    submission = app.client().send_email(
        sender,
        recipients,
        subject,
        body,
        html_body=html_body,
        cc=split_addresses(cc),
        bcc=split_addresses(bcc)
    )

    click.echo('Email sent.')
    click.echo(f'Submission ID: {submission.id}')
    if submission.undo_status:
        click.echo(f'Status: {submission.undo_status.value}')


def main():
    cli(prog_name='jmap-client')


if __name__ == '__main__':
    main()
