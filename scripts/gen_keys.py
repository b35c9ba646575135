#!/usr/bin/env python3
"""
Generate a QuietDrop Key Pair

Writes <name>_public_key.key and <name>_secret_key.key (raw 32 bytes each)
so that a server identity can be prepared ahead of time and its public key
handed to clients.

Usage:
    python scripts/gen_keys.py --name server --output keys
"""

import argparse
import os
import sys

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from quietdrop.common.utils import key_fingerprint
from quietdrop.crypto import generate_keypair, save_keypair


def generate_identity(name: str, output_dir: str = "."):
    """
    Generate and persist a key pair.

    Args:
        name: Identity name used as the file prefix
        output_dir: Directory to save the key files
    """
    print(f"[*] Generating Curve25519 key pair for '{name}'...")
    keypair = generate_keypair()

    public_path, secret_path = save_keypair(keypair, output_dir, name)
    print(f"[+] Public key saved to: {public_path}")
    print(f"[+] Secret key saved to: {secret_path} (mode 600)")

    print(f"\n[✓] Key pair created successfully!")
    print(f"    Fingerprint: {key_fingerprint(keypair.public_key)}")

    return keypair


def main():
    parser = argparse.ArgumentParser(
        description="Generate a QuietDrop key pair"
    )
    parser.add_argument(
        "--name",
        default="server",
        help="Identity name, used as the key file prefix (default: server)"
    )
    parser.add_argument(
        "--output",
        default=".",
        help="Output directory for key files (default: current directory)"
    )

    args = parser.parse_args()

    generate_identity(name=args.name, output_dir=args.output)


if __name__ == "__main__":
    main()
