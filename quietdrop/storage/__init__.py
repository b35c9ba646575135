"""
Storage modules for QuietDrop.

Includes:
- Argon2id credential hashing and the plaintext salt file
"""

from .credentials import (
    KDF_PARAMETERS,
    SALT_FILE,
    generate_salt,
    hash_password,
    hash_password_with_salt,
    verify_password,
    needs_rehash,
    save_salt,
    load_salt,
)

__all__ = [
    'KDF_PARAMETERS',
    'SALT_FILE',
    'generate_salt',
    'hash_password',
    'hash_password_with_salt',
    'verify_password',
    'needs_rehash',
    'save_salt',
    'load_salt',
]
