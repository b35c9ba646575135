"""
Curve25519 Key Pairs

Generates key pairs for NaCl's authenticated public-key encryption (box)
and reads/writes the raw 32-byte key files used by the entry point.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Tuple, Union

from nacl.public import PrivateKey

from ..common.exceptions import MalformedInput


KEY_SIZE = 32

PathLike = Union[str, Path]


@dataclass(frozen=True)
class KeyPair:
    """A box key pair. The secret key never goes on the wire."""
    public_key: bytes
    secret_key: bytes = field(repr=False)


def generate_keypair() -> KeyPair:
    """
    Generate a fresh Curve25519 key pair from the OS CSPRNG.

    Returns:
        KeyPair with raw 32-byte public and secret keys
    """
    private_key = PrivateKey.generate()
    return KeyPair(
        public_key=bytes(private_key.public_key),
        secret_key=bytes(private_key),
    )


def keypair_paths(directory: PathLike, name: str) -> Tuple[Path, Path]:
    """Return the (public, secret) key file paths for an identity name."""
    directory = Path(directory)
    return (
        directory / f"{name}_public_key.key",
        directory / f"{name}_secret_key.key",
    )


def _write_secret(path: Path, data: bytes) -> None:
    fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
    with os.fdopen(fd, 'wb') as f:
        # O_CREAT ignores the mode for a file that already exists
        os.fchmod(f.fileno(), 0o600)
        f.write(data)


def save_keypair(keypair: KeyPair, directory: PathLike, name: str) -> Tuple[Path, Path]:
    """
    Persist a key pair as two raw key files.

    The secret key file is created owner read/write only, before any key
    bytes are written to it.

    Args:
        keypair: Key pair to write
        directory: Target directory (created if missing)
        name: Identity name, e.g. "server"

    Returns:
        Tuple of (public_key_path, secret_key_path)
    """
    public_path, secret_path = keypair_paths(directory, name)
    public_path.parent.mkdir(parents=True, exist_ok=True)

    _write_secret(secret_path, keypair.secret_key)
    public_path.write_bytes(keypair.public_key)

    return public_path, secret_path


def _load_key(path: PathLike) -> bytes:
    data = Path(path).read_bytes()
    if len(data) != KEY_SIZE:
        raise MalformedInput(
            f"Key file {path} holds {len(data)} bytes, expected {KEY_SIZE}"
        )
    return data


def load_public_key(path: PathLike) -> bytes:
    """Read a raw 32-byte public key file."""
    return _load_key(path)


def load_secret_key(path: PathLike) -> bytes:
    """Read a raw 32-byte secret key file."""
    return _load_key(path)


def load_keypair(directory: PathLike, name: str) -> KeyPair:
    """
    Load a key pair previously written by save_keypair().

    Raises:
        FileNotFoundError: If either key file is missing
        MalformedInput: If a key file has the wrong length, or the public
            key does not belong to the secret key
    """
    public_path, secret_path = keypair_paths(directory, name)
    public_key = load_public_key(public_path)
    secret_key = load_secret_key(secret_path)

    if bytes(PrivateKey(secret_key).public_key) != public_key:
        raise MalformedInput(f"{public_path} does not match {secret_path}")

    return KeyPair(public_key=public_key, secret_key=secret_key)


def load_or_create_keypair(directory: PathLike, name: str) -> Tuple[KeyPair, bool]:
    """
    Load an existing identity, or generate and save one if none exists.

    An identity prepared ahead of time (e.g. with scripts/gen_keys.py) is
    reused, so a public key already handed to clients stays valid.

    Returns:
        Tuple of (keypair, created)

    Raises:
        FileNotFoundError: If only one of the two key files exists
        MalformedInput: If a key file is invalid or the keys do not match
    """
    public_path, secret_path = keypair_paths(directory, name)
    if not public_path.exists() and not secret_path.exists():
        keypair = generate_keypair()
        save_keypair(keypair, directory, name)
        return keypair, True

    return load_keypair(directory, name), False
