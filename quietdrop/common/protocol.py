"""
Protocol message definitions using Pydantic.

An Envelope is serialized to JSON and sent over TCP as one length-prefixed
frame:

    length (4 bytes, big-endian, unsigned) || JSON envelope (length bytes)

The server answers with the raw ASCII acknowledgment and closes.
"""

import asyncio
import struct
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .exceptions import EncodingError, MalformedInput
from .utils import now_utc
from ..crypto.box import MIN_CIPHERTEXT_SIZE, decrypt, encrypt
from ..crypto.keys import KEY_SIZE


ACKNOWLEDGMENT = b"Message received."
ACK_BUFFER_SIZE = 1024

FRAME_HEADER = struct.Struct(">I")
MAX_FRAME_SIZE = 1024 * 1024


class MessageType(str, Enum):
    """Kind of payload carried in an envelope."""
    TEXT = "Text"
    FILE = "File"


class Envelope(BaseModel):
    """Encrypted message with cleartext routing metadata."""
    model_config = ConfigDict(ser_json_bytes='base64', val_json_bytes='base64')

    timestamp: datetime = Field(default_factory=now_utc, description="UTC creation time")
    message_type: MessageType = MessageType.TEXT
    sender: str
    recipient: str
    content: bytes = Field(b"", description="nonce || sealed box, or empty")
    public_key: bytes = Field(..., description="Sender's raw 32-byte public key")

    @field_validator('timestamp')
    @classmethod
    def _force_utc(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    @field_validator('public_key')
    @classmethod
    def _check_public_key(cls, value: bytes) -> bytes:
        if len(value) != KEY_SIZE:
            raise ValueError(f"public_key must be {KEY_SIZE} bytes, got {len(value)}")
        return value

    @field_validator('content')
    @classmethod
    def _check_content(cls, value: bytes) -> bytes:
        if value and len(value) < MIN_CIPHERTEXT_SIZE:
            raise ValueError(
                f"content must be empty or at least {MIN_CIPHERTEXT_SIZE} bytes, got {len(value)}"
            )
        return value

    @classmethod
    def create(
        cls,
        sender: str,
        recipient: str,
        public_key: bytes,
        message_type: MessageType = MessageType.TEXT,
    ) -> "Envelope":
        """Build an unfilled envelope stamped with the current UTC time."""
        return cls(
            message_type=message_type,
            sender=sender,
            recipient=recipient,
            public_key=public_key,
        )

    def encrypt_content(
        self,
        plaintext: str,
        recipient_public_key: bytes,
        sender_secret_key: bytes,
    ) -> None:
        """Seal plaintext for the recipient and store it as content."""
        self.content = encrypt(plaintext, recipient_public_key, sender_secret_key)

    def decrypt_content(self, recipient_secret_key: bytes) -> str:
        """Open content using the sender key carried in the envelope."""
        return decrypt(self.content, self.public_key, recipient_secret_key)

    def to_json(self) -> bytes:
        """Serialize to UTF-8 JSON bytes."""
        return self.model_dump_json().encode('utf-8')

    @classmethod
    def from_json(cls, data: bytes) -> "Envelope":
        """
        Parse an envelope from JSON bytes.

        Raises:
            EncodingError: If the bytes are not a valid envelope
        """
        try:
            return cls.model_validate_json(data)
        except ValidationError as e:
            raise EncodingError(f"Invalid envelope: {e.error_count()} validation error(s)") from e


# Framing helpers

def encode_frame(payload: bytes) -> bytes:
    """Prefix payload with its 4-byte big-endian length."""
    if len(payload) > 0xFFFFFFFF:
        raise MalformedInput(f"Payload too large to frame: {len(payload)} bytes")
    return FRAME_HEADER.pack(len(payload)) + payload


async def read_frame(reader: asyncio.StreamReader, max_size: int = MAX_FRAME_SIZE) -> Optional[bytes]:
    """
    Read one length-prefixed frame.

    Args:
        reader: Stream to read from
        max_size: Largest accepted payload in bytes

    Returns:
        Payload bytes, or None if the peer closed before sending anything

    Raises:
        MalformedInput: If the header is truncated, the length is zero or
            exceeds max_size, or the payload is cut short
    """
    try:
        header = await reader.readexactly(FRAME_HEADER.size)
    except asyncio.IncompleteReadError as e:
        if not e.partial:
            return None
        raise MalformedInput(f"Truncated frame header ({len(e.partial)} bytes)") from e

    (length,) = FRAME_HEADER.unpack(header)
    if length == 0:
        raise MalformedInput("Empty frame")
    if length > max_size:
        raise MalformedInput(f"Frame too large: {length} bytes (max {max_size})")

    try:
        return await reader.readexactly(length)
    except asyncio.IncompleteReadError as e:
        raise MalformedInput(f"Truncated frame: got {len(e.partial)} of {length} bytes") from e
