"""
QuietDrop

A minimal end-to-end encrypted message drop implementing:
- Curve25519 key pairs and NaCl box authenticated encryption
- JSON envelopes over length-prefixed TCP frames
- Per-peer fixed-window connection rate limiting
- Argon2id password hashing
"""

__version__ = "0.1.0"
