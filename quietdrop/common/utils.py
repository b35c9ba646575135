"""
Utility functions for QuietDrop.
"""

import hashlib
from datetime import datetime, timezone


def now_utc() -> datetime:
    """
    Get the current instant as a timezone-aware UTC datetime.

    Returns:
        Current UTC datetime
    """
    return datetime.now(timezone.utc)


def key_fingerprint(public_key: bytes) -> str:
    """
    Short SHA-256 fingerprint of a raw public key, for log lines.

    Args:
        public_key: Raw public key bytes

    Returns:
        First 16 hex characters of SHA-256(public_key)
    """
    return hashlib.sha256(public_key).hexdigest()[:16]


def format_peer(peername) -> str:
    """Render a socket peername tuple as host:port."""
    if not peername:
        return "<unknown>"
    host, port = peername[0], peername[1]
    if ':' in host:
        return f"[{host}]:{port}"
    return f"{host}:{port}"
