#!/usr/bin/env python3
"""
Credential management for QuietDrop

Hashes a password with Argon2id, stores the salt in the salt file,
reproduces a hash from the stored salt, and verifies a password against a
stored hash (flagging hashes made with outdated Argon2 parameters).

Usage:
    python scripts/credentials.py hash
    python scripts/credentials.py verify --hash '$argon2id$v=19$...'
    python scripts/credentials.py hash-with-salt
"""

import argparse
import getpass
import os
import sys

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from quietdrop.common.config import load_settings
from quietdrop.common.exceptions import ConfigurationError, MalformedInput
from quietdrop.storage import (
    hash_password,
    hash_password_with_salt,
    load_salt,
    needs_rehash,
    save_salt,
    verify_password,
)


def main(argv=None):
    try:
        settings = load_settings()
    except ConfigurationError as e:
        print(f"[✗] Configuration error: {e}")
        return 2

    parser = argparse.ArgumentParser(description="Credential management for QuietDrop")
    parser.add_argument("action", choices=["hash", "verify", "hash-with-salt"],
                        help="hash: new salt + hash; verify: check a hash; "
                             "hash-with-salt: hash again with the stored salt")
    parser.add_argument("--hash", dest="password_hash", help="Stored hash (for verify)")
    parser.add_argument("--salt-file", default=settings.salt_file,
                        help=f"Salt file path (default: {settings.salt_file})")

    args = parser.parse_args(argv)
    password = getpass.getpass("Password: ")

    if args.action == "hash":
        password_hash, salt = hash_password(password)
        save_salt(salt, args.salt_file)
        print(f"[✓] Hash: {password_hash}")
        print(f"    Salt saved to: {args.salt_file}")
        return 0

    if args.action == "hash-with-salt":
        try:
            salt = load_salt(args.salt_file)
        except (FileNotFoundError, MalformedInput) as e:
            print(f"[✗] Cannot load salt: {e}")
            return 1
        print(f"[✓] Hash: {hash_password_with_salt(password, salt)}")
        return 0

    if not args.password_hash:
        parser.error("verify requires --hash")

    try:
        ok = verify_password(args.password_hash, password)
    except MalformedInput as e:
        print(f"[✗] {e}")
        return 1

    if not ok:
        print("[✗] Password does not match")
        return 1

    print("[✓] Password matches")
    if needs_rehash(args.password_hash):
        print("[!] Hash uses outdated Argon2 parameters, run 'hash' to replace it")
    return 0


if __name__ == "__main__":
    sys.exit(main())
