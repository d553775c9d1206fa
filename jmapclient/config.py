"""
Settings come from the environment, and from a `.env` file if there is one.
"""

import os
from typing import Mapping, Optional

import attr
import dotenv

from jmapclient.protocol.errors import ConfigurationError


DEFAULT_SESSION_PATH = '/.well-known/jmap'
DEFAULT_TIMEOUT = 30.0


def secret(value) -> bytearray:
    if isinstance(value, str):
        value = value.encode('utf-8')
    return bytearray(value)


@attr.s(auto_attribs=True, kw_only=True, frozen=True)
class Settings:
    """
    The token is kept as a `bytearray`, so that `clear_token()` can overwrite
    it once the client has its own copy.
    """
    server_url: str
    token: bytearray = attr.ib(repr=False, converter=secret)
    session_path: str = DEFAULT_SESSION_PATH
    timeout: float = DEFAULT_TIMEOUT

    def clear_token(self):
        self.token[:] = bytes(len(self.token))


def parse_timeout(value) -> float:
    try:
        timeout = float(value)
    except (TypeError, ValueError):
        raise ConfigurationError(f'JMAP_TIMEOUT must be a number of seconds, got: {value!r}')
    if timeout <= 0:
        raise ConfigurationError(f'JMAP_TIMEOUT must be positive, got: {value!r}')
    return timeout


def load_settings(environ: Optional[Mapping[str, str]] = None, *, server_url: str = None,
                  token: str = None, session_path: str = None, timeout=None,
                  dotenv_path: str = None) -> Settings:
    """Explicit arguments win over the environment.

    Pass `environ` to read from something other than `os.environ`; the
    `.env` file is only loaded when reading `os.environ`.
    """
    if environ is None:
        dotenv.load_dotenv(dotenv_path)
        environ = os.environ

    server_url = server_url or environ.get('JMAP_SERVER_URL')
    token = token or environ.get('JMAP_TOKEN')
    if not server_url:
        raise ConfigurationError('No server URL given; set JMAP_SERVER_URL or pass --server')
    if not token:
        raise ConfigurationError('No API token given; set JMAP_TOKEN or pass --token')

    if timeout is None:
        timeout = environ.get('JMAP_TIMEOUT', DEFAULT_TIMEOUT)

    return Settings(
        server_url=server_url,
        token=token,
        session_path=session_path or environ.get('JMAP_SESSION_PATH') or DEFAULT_SESSION_PATH,
        timeout=parse_timeout(timeout)
    )
