"""
Cryptographic primitives for QuietDrop.

This package provides:
- Curve25519 key pair generation and raw key files
- NaCl box authenticated public-key encryption (XSalsa20-Poly1305)
"""

from .box import encrypt, decrypt, NONCE_SIZE, MIN_CIPHERTEXT_SIZE
from .keys import (
    KeyPair,
    KEY_SIZE,
    generate_keypair,
    save_keypair,
    load_keypair,
    load_or_create_keypair,
    load_public_key,
    load_secret_key,
)

__all__ = [
    'encrypt',
    'decrypt',
    'NONCE_SIZE',
    'MIN_CIPHERTEXT_SIZE',
    'KeyPair',
    'KEY_SIZE',
    'generate_keypair',
    'save_keypair',
    'load_keypair',
    'load_or_create_keypair',
    'load_public_key',
    'load_secret_key',
]
