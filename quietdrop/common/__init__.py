"""
Common utilities and protocol definitions for QuietDrop.

The protocol module is imported explicitly (quietdrop.common.protocol)
since it depends on quietdrop.crypto.
"""

from .utils import now_utc, key_fingerprint, format_peer
from .exceptions import *

__all__ = [
    'now_utc',
    'key_fingerprint',
    'format_peer',
    'QuietDropError',
    'ConfigurationError',
    'AuthenticationFailure',
    'MalformedInput',
    'EncodingError',
    'TransportError',
]
