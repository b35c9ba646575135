"""
Authenticated Public-Key Encryption (NaCl box)

Ciphertext package layout:

    nonce (24 bytes) || sealed box (MAC 16 bytes + encrypted plaintext)

The box is keyed by (sender secret, recipient public) to encrypt and by
(sender public, recipient secret) to decrypt, so a successful open also
authenticates the sender.
"""

import nacl.exceptions
import nacl.utils
from nacl.public import Box, PrivateKey, PublicKey

from ..common.exceptions import AuthenticationFailure, EncodingError, MalformedInput


NONCE_SIZE = Box.NONCE_SIZE
MAC_SIZE = 16
MIN_CIPHERTEXT_SIZE = NONCE_SIZE + MAC_SIZE


def _make_box(secret_key: bytes, public_key: bytes) -> Box:
    try:
        return Box(PrivateKey(secret_key), PublicKey(public_key))
    except (nacl.exceptions.TypeError, nacl.exceptions.ValueError) as e:
        raise MalformedInput(f"Invalid key material: {e}") from e


def encrypt(plaintext: str, recipient_public_key: bytes, sender_secret_key: bytes) -> bytes:
    """
    Encrypt plaintext for a recipient.

    A fresh random nonce is drawn for every call.

    Args:
        plaintext: Text to encrypt
        recipient_public_key: Recipient's raw 32-byte public key
        sender_secret_key: Sender's raw 32-byte secret key

    Returns:
        nonce || sealed box

    Raises:
        MalformedInput: If either key has the wrong length
    """
    box = _make_box(sender_secret_key, recipient_public_key)
    nonce = nacl.utils.random(NONCE_SIZE)

    sealed = box.encrypt(plaintext.encode('utf-8'), nonce)

    # EncryptedMessage already carries the nonce prefix
    return bytes(sealed)


def decrypt(data: bytes, sender_public_key: bytes, recipient_secret_key: bytes) -> str:
    """
    Open a ciphertext package produced by encrypt().

    Args:
        data: nonce || sealed box
        sender_public_key: Sender's raw 32-byte public key
        recipient_secret_key: Recipient's raw 32-byte secret key

    Returns:
        Decrypted plaintext string

    Raises:
        MalformedInput: If data is shorter than the nonce, or a key is invalid
        AuthenticationFailure: If the box does not open (wrong keys, tampering)
        EncodingError: If the decrypted bytes are not valid UTF-8
    """
    if len(data) < NONCE_SIZE:
        raise MalformedInput(
            f"Ciphertext too short: {len(data)} bytes (nonce is {NONCE_SIZE})"
        )

    box = _make_box(recipient_secret_key, sender_public_key)
    nonce, sealed = bytes(data[:NONCE_SIZE]), bytes(data[NONCE_SIZE:])

    try:
        plaintext = box.decrypt(sealed, nonce)
    except nacl.exceptions.CryptoError as e:
        raise AuthenticationFailure("Decryption failed") from e

    try:
        return plaintext.decode('utf-8')
    except UnicodeDecodeError as e:
        raise EncodingError("Decrypted content is not valid UTF-8") from e
