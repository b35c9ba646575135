"""
Password Hashing for QuietDrop Users

Argon2id (memory-hard) via argon2-cffi. Hashes are PHC strings that embed
the algorithm, version, cost parameters and salt, so verification always
re-derives with the parameters the hash was created with.

NEVER stores plaintext passwords.
"""

import base64
import binascii
import secrets
from pathlib import Path
from typing import Tuple, Union

from argon2 import Parameters, PasswordHasher, Type
from argon2.exceptions import (
    HashingError,
    InvalidHashError,
    VerificationError,
    VerifyMismatchError,
)

from ..common.exceptions import ConfigurationError, MalformedInput


SALT_FILE = 'salt.txt'
SALT_SIZE = 16
MIN_SALT_SIZE = 8
MAX_SALT_SIZE = 64

# Bump together with any parameter change; verification reads the
# parameters back out of each stored hash.
KDF_PARAMETERS = Parameters(
    type=Type.ID,
    version=19,
    salt_len=SALT_SIZE,
    hash_len=32,
    time_cost=3,
    memory_cost=4096,
    parallelism=1,
)


def _build_hasher(params: Parameters) -> PasswordHasher:
    """
    Create the PasswordHasher, rejecting parameters Argon2 cannot run with.

    Raises:
        ConfigurationError: If the parameters are out of range
    """
    if params.time_cost < 1:
        raise ConfigurationError(f"time_cost must be >= 1, got {params.time_cost}")
    if params.parallelism < 1:
        raise ConfigurationError(f"parallelism must be >= 1, got {params.parallelism}")
    if params.memory_cost < 8 * params.parallelism:
        raise ConfigurationError(
            f"memory_cost must be >= 8 * parallelism ({8 * params.parallelism} KiB), "
            f"got {params.memory_cost}"
        )
    if params.hash_len < 4:
        raise ConfigurationError(f"hash_len must be >= 4, got {params.hash_len}")
    return PasswordHasher.from_parameters(params)


_hasher = _build_hasher(KDF_PARAMETERS)


def generate_salt() -> str:
    """
    Generate a random salt string.

    Returns:
        16 random bytes as unpadded standard base64 (PHC salt encoding)
    """
    return base64.b64encode(secrets.token_bytes(SALT_SIZE)).decode('ascii').rstrip('=')


def decode_salt(salt: str) -> bytes:
    """
    Decode a salt string back to raw bytes.

    Raises:
        MalformedInput: If the string is not base64 or has an invalid length
    """
    stripped = salt.strip()
    padded = stripped + '=' * (-len(stripped) % 4)
    try:
        raw = base64.b64decode(padded, validate=True)
    except (binascii.Error, ValueError) as e:
        raise MalformedInput(f"Salt is not valid base64: {e}") from e

    if not MIN_SALT_SIZE <= len(raw) <= MAX_SALT_SIZE:
        raise MalformedInput(
            f"Salt must decode to {MIN_SALT_SIZE}-{MAX_SALT_SIZE} bytes, got {len(raw)}"
        )
    return raw


def hash_password_with_salt(password: str, salt: str) -> str:
    """
    Hash a password with a given salt.

    Deterministic: the same password, salt and KDF_PARAMETERS always give
    the same hash string.

    Args:
        password: Plaintext password
        salt: Salt string from generate_salt() or load_salt()

    Returns:
        PHC-format Argon2id hash string

    Raises:
        MalformedInput: If the salt string is invalid
        ConfigurationError: If Argon2 rejects the configured parameters
    """
    raw_salt = decode_salt(salt)
    try:
        return _hasher.hash(password, salt=raw_salt)
    except HashingError as e:
        raise ConfigurationError(f"Argon2 hashing failed: {e}") from e


def hash_password(password: str) -> Tuple[str, str]:
    """
    Hash a password with a freshly generated salt.

    Args:
        password: Plaintext password

    Returns:
        Tuple of (hash, salt)
    """
    salt = generate_salt()
    return hash_password_with_salt(password, salt), salt


def verify_password(password_hash: str, password: str) -> bool:
    """
    Verify a password against a stored hash.

    The comparison of derived and stored digests is constant-time
    (performed by libargon2).

    Args:
        password_hash: PHC-format hash from hash_password()
        password: Candidate plaintext password

    Returns:
        True if the password matches, False otherwise

    Raises:
        MalformedInput: If password_hash is not a valid Argon2 hash
    """
    try:
        return _hasher.verify(password_hash, password)
    except VerifyMismatchError:
        return False
    except (InvalidHashError, UnicodeEncodeError) as e:
        raise MalformedInput("Stored password hash is malformed") from e
    except VerificationError as e:
        raise MalformedInput(f"Stored password hash could not be verified: {e}") from e


def needs_rehash(password_hash: str) -> bool:
    """Return True if the hash was made with parameters other than KDF_PARAMETERS."""
    try:
        return _hasher.check_needs_rehash(password_hash)
    except InvalidHashError as e:
        raise MalformedInput("Stored password hash is malformed") from e


def save_salt(salt: str, path: Union[str, Path] = SALT_FILE) -> None:
    """
    Write the salt string to a plaintext file.

    Salts are not secret; the file exists for out-of-band verification.
    """
    Path(path).write_text(salt, encoding='ascii')


def load_salt(path: Union[str, Path] = SALT_FILE) -> str:
    """
    Read a salt string written by save_salt().

    Raises:
        FileNotFoundError: If the file does not exist
        MalformedInput: If the file does not hold a valid salt
    """
    try:
        salt = Path(path).read_text(encoding='ascii').strip()
    except UnicodeDecodeError as e:
        raise MalformedInput(f"Salt file {path} is not ASCII") from e
    decode_salt(salt)
    return salt
