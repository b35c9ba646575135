#!/usr/bin/env python3
"""
QuietDrop Client

Sends one encrypted envelope per connection and waits for the server's
acknowledgment. There is no automatic retry; callers decide whether to
try again after a TransportError.
"""

import asyncio
import logging
from typing import Optional

from .common.config import DEFAULT_IO_TIMEOUT
from .common.exceptions import MalformedInput, TransportError
from .common.protocol import (
    ACK_BUFFER_SIZE,
    ACKNOWLEDGMENT,
    Envelope,
    MessageType,
    encode_frame,
)
from .crypto import KeyPair, generate_keypair

logger = logging.getLogger(__name__)


async def _read_response(reader: asyncio.StreamReader) -> bytes:
    """Read until EOF or until the response buffer is full."""
    response = b""
    while len(response) < ACK_BUFFER_SIZE:
        chunk = await reader.read(ACK_BUFFER_SIZE - len(response))
        if not chunk:
            break
        response += chunk
    return response


async def send_message(
    envelope: Envelope,
    host: str,
    port: int,
    timeout: float = DEFAULT_IO_TIMEOUT,
) -> str:
    """
    Send one envelope and wait for the acknowledgment.

    Args:
        envelope: Envelope with encrypted content
        host: Server host
        port: Server port
        timeout: Deadline in seconds for connect, write and read each

    Returns:
        The acknowledgment string

    Raises:
        TransportError: On connection failure, timeout, or any response
            other than the expected acknowledgment
    """
    frame = encode_frame(envelope.to_json())

    try:
        reader, writer = await asyncio.wait_for(
            asyncio.open_connection(host, port), timeout=timeout
        )
    except asyncio.TimeoutError as e:
        raise TransportError(f"Timed out connecting to {host}:{port}") from e
    except OSError as e:
        raise TransportError(f"Cannot connect to {host}:{port}: {e}") from e

    try:
        writer.write(frame)
        await asyncio.wait_for(writer.drain(), timeout=timeout)
        logger.debug("Sent %d byte envelope to %s:%d", len(frame), host, port)

        response = await asyncio.wait_for(_read_response(reader), timeout=timeout)
    except asyncio.TimeoutError as e:
        raise TransportError(f"Timed out talking to {host}:{port}") from e
    except OSError as e:
        raise TransportError(f"Connection to {host}:{port} failed: {e}") from e
    finally:
        writer.close()
        try:
            await writer.wait_closed()
        except OSError:
            pass

    if not response:
        raise TransportError("Server closed the connection without acknowledgment")
    if response != ACKNOWLEDGMENT:
        raise TransportError(
            f"Unexpected server response: {response[:64].decode('utf-8', errors='replace')!r}"
        )

    logger.info("Server response: %s", response.decode('ascii'))
    return response.decode('ascii')


class QuietDropClient:
    """Holds a sender identity and the server's public key."""

    def __init__(
        self,
        server_public_key: bytes,
        host: str = '127.0.0.1',
        port: int = 8080,
        keypair: Optional[KeyPair] = None,
        timeout: float = DEFAULT_IO_TIMEOUT,
    ):
        self.server_public_key = server_public_key
        self.host = host
        self.port = port
        self.keypair = keypair or generate_keypair()
        self.timeout = timeout

    def compose(
        self,
        sender: str,
        recipient: str,
        text: str,
        message_type: MessageType = MessageType.TEXT,
    ) -> Envelope:
        """Build an envelope with text sealed for the server."""
        envelope = Envelope.create(sender, recipient, self.keypair.public_key, message_type)
        envelope.encrypt_content(text, self.server_public_key, self.keypair.secret_key)
        return envelope

    async def send(self, sender: str, recipient: str, text: str) -> str:
        """Compose and send one message; see send_message() for errors."""
        envelope = self.compose(sender, recipient, text)
        return await send_message(envelope, self.host, self.port, self.timeout)


def get_input(prompt: str) -> str:
    return input(prompt).strip()


def main(settings=None) -> int:
    from pathlib import Path

    from .common.config import load_settings
    from .crypto import load_public_key
    from .crypto.keys import keypair_paths

    settings = settings or load_settings()

    print("=" * 70)
    print("  QUIETDROP CLIENT")
    print("=" * 70 + "\n")

    server_key_path, _ = keypair_paths(settings.key_dir, "server")
    try:
        server_public_key = load_public_key(server_key_path)
    except FileNotFoundError:
        print(f"[!] Server public key not found at {Path(server_key_path)}")
        print("[!] Start the server first so it can write its key")
        return 1
    except MalformedInput as e:
        print(f"[!] {e}")
        return 1

    client = QuietDropClient(
        server_public_key,
        host=settings.host,
        port=settings.port,
        timeout=settings.io_timeout,
    )

    name = get_input("Enter your name: ")
    text = get_input("Enter your message: ")

    try:
        response = asyncio.run(client.send(name, "Bob", text))
    except TransportError as e:
        print(f"\n[!] Error: {e}")
        return 1

    print(f"[✓] Server response: {response}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
