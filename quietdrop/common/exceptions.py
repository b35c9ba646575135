"""
Custom exceptions for QuietDrop.
"""


class QuietDropError(Exception):
    """Base exception for QuietDrop errors."""
    pass


class ConfigurationError(QuietDropError):
    """Invalid configuration (KDF parameters, settings). Fatal at startup."""
    pass


class AuthenticationFailure(QuietDropError):
    """Ciphertext failed the integrity/authenticity check."""
    pass


class MalformedInput(QuietDropError):
    """Truncated ciphertext, bad key material or unparsable frame."""
    pass


class EncodingError(QuietDropError):
    """Serialization/deserialization or text decoding failed."""
    pass


class TransportError(QuietDropError):
    """Connection refused, reset, timed out or bad acknowledgment."""
    pass
