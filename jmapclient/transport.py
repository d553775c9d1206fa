"""
The HTTP exchange. A transport moves bytes and reports the status code; it
knows nothing about JMAP, and it does not judge the status code either.
"""

import abc
import logging
from typing import Dict, Optional, Tuple

import requests

from jmapclient.protocol.errors import TransportError


logger = logging.getLogger(__name__)


class Transport(abc.ABC):
    """The interface the client needs. Subclasses implement `request`."""

    @abc.abstractmethod
    def request(self, method: str, url: str, *, headers: Dict[str, str],
                body: Optional[bytes] = None) -> Tuple[bytes, int]:
        pass

    def send(self, url: str, body: bytes, headers: Dict[str, str]) -> Tuple[bytes, int]:
        return self.request('POST', url, headers=headers, body=body)

    def fetch(self, url: str, headers: Dict[str, str]) -> Tuple[bytes, int]:
        return self.request('GET', url, headers=headers)

    def close(self):
        pass


class RequestsTransport(Transport):
    """
    A transport on a `requests.Session`, for its connection pooling.

    There are no retries; every call is exactly one exchange.
    """

    def __init__(self, timeout: float = 30, verify: bool = True, session: requests.Session = None):
        self.timeout = timeout
        self.verify = verify
        self.session = session or requests.Session()

    def request(self, method, url, *, headers, body=None):
        try:
            response = self.session.request(
                method,
                url,
                data=body,
                headers=headers,
                timeout=self.timeout,
                verify=self.verify,
                allow_redirects=True,
            )
        except requests.exceptions.Timeout as exc:
            raise TransportError(f'{method} {url} timed out after {self.timeout}s') from exc
        except requests.exceptions.RequestException as exc:
            raise TransportError(f'{method} {url} failed: {exc}') from exc

        logger.debug('%s %s -> %s', method, url, response.status_code)
        return response.content, response.status_code

    def close(self):
        self.session.close()
