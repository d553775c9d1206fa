"""
A client for JMAP mail servers (RFC 8620, RFC 8621).
"""

from jmapclient.client import JMAPClient
from jmapclient.protocol.batch import Batch
from jmapclient.protocol.submission import OutgoingEmail, SendEmailTransaction, SendResult, SendState


__version__ = '0.1.0'
