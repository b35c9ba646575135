#!/usr/bin/env python3
"""
QuietDrop Server

Implements the server side of the exchange:
1. Accept a connection and consult the rate limiter with the peer address
2. Read exactly one length-prefixed envelope
3. Decrypt the envelope with the server secret key
4. Hand the plaintext to the application callback
5. Acknowledge and close

Every connection runs as its own asyncio task; an error in one connection
is logged and never affects another.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional, Tuple, Union

from .common.config import DEFAULT_IO_TIMEOUT
from .common.exceptions import (
    AuthenticationFailure,
    EncodingError,
    MalformedInput,
    TransportError,
)
from .common.protocol import ACKNOWLEDGMENT, MAX_FRAME_SIZE, Envelope, read_frame
from .common.utils import format_peer, key_fingerprint
from .ratelimit import RateLimiter

logger = logging.getLogger(__name__)


MessageHandler = Callable[[Envelope, str], Union[None, Awaitable[None]]]

SWEEP_INTERVAL = 60.0


class QuietDropServer:
    def __init__(
        self,
        secret_key: bytes,
        host: str = '127.0.0.1',
        port: int = 8080,
        rate_limiter: Optional[RateLimiter] = None,
        on_message: Optional[MessageHandler] = None,
        io_timeout: float = DEFAULT_IO_TIMEOUT,
        max_frame_size: int = MAX_FRAME_SIZE,
    ):
        """
        Args:
            secret_key: Server's raw 32-byte secret key
            host: Interface to bind
            port: Port to bind (0 picks a free port)
            rate_limiter: Connection gate shared by all handlers
            on_message: Called with (envelope, plaintext) for each decrypted
                message; may be a coroutine function
            io_timeout: Deadline in seconds for each read and write
            max_frame_size: Largest accepted envelope in bytes
        """
        self.secret_key = secret_key
        self.host = host
        self.port = port
        if rate_limiter is None:
            rate_limiter = RateLimiter(time_frame=60.0, request_limit=10)
        self.rate_limiter = rate_limiter
        self.on_message = on_message
        self.io_timeout = io_timeout
        self.max_frame_size = max_frame_size

        self._server: Optional[asyncio.AbstractServer] = None
        self._sweeper: Optional[asyncio.Task] = None

    @property
    def address(self) -> Tuple[str, int]:
        """The (host, port) actually bound; valid after start()."""
        if self._server is None or not self._server.sockets:
            raise RuntimeError("Server is not started")
        sockname = self._server.sockets[0].getsockname()
        return sockname[0], sockname[1]

    async def start(self) -> None:
        """
        Bind the listening socket.

        Raises:
            TransportError: If the socket cannot be bound
        """
        try:
            self._server = await asyncio.start_server(
                self.handle_client, self.host, self.port
            )
        except OSError as e:
            raise TransportError(f"Cannot listen on {self.host}:{self.port}: {e}") from e

        self._sweeper = asyncio.create_task(self._sweep_loop())
        host, port = self.address
        logger.info("QuietDrop server listening on %s:%d", host, port)

    async def serve_forever(self) -> None:
        """
        Start (if needed) and accept connections until cancelled.

        A failure of the listening socket propagates and ends the loop.
        """
        if self._server is None:
            await self.start()
        try:
            await self._server.serve_forever()
        finally:
            await self.stop()

    async def stop(self) -> None:
        """Close the listening socket and the background sweep."""
        if self._sweeper is not None:
            self._sweeper.cancel()
            await asyncio.gather(self._sweeper, return_exceptions=True)
            self._sweeper = None

        if self._server is not None:
            self._server.close()
            await self._server.wait_closed()
            self._server = None
            logger.info("QuietDrop server stopped")

    async def _sweep_loop(self) -> None:
        interval = min(SWEEP_INTERVAL, self.rate_limiter.time_frame)
        while True:
            await asyncio.sleep(interval)
            self.rate_limiter.sweep()

    async def handle_client(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter):
        """Handle a single inbound connection carrying one envelope."""
        peername = writer.get_extra_info('peername')
        peer = format_peer(peername)
        logger.debug("New connection from %s", peer)

        try:
            # Gate before touching the payload
            if not self.rate_limiter.check(peername[0] if peername else peer):
                logger.warning("Rate limit exceeded for %s, dropping connection", peer)
                return

            await self.process_envelope(reader, writer, peer)

        except (MalformedInput, EncodingError) as e:
            logger.warning("Rejected malformed envelope from %s: %s", peer, e)
        except AuthenticationFailure as e:
            logger.warning("Could not decrypt envelope from %s: %s", peer, e)
        except asyncio.TimeoutError:
            logger.warning("Connection from %s timed out", peer)
        except (ConnectionError, OSError) as e:
            logger.warning("I/O error with %s: %s", peer, e)
        except Exception:
            logger.exception("Error handling client %s", peer)
        finally:
            writer.close()
            try:
                await writer.wait_closed()
            except (ConnectionError, OSError):
                pass
            logger.debug("Client %s disconnected", peer)

    async def process_envelope(self, reader, writer, peer: str) -> Optional[str]:
        """
        Read, decrypt, dispatch and acknowledge one envelope.

        Returns:
            The decrypted plaintext, or None if the peer closed without sending
        """
        payload = await asyncio.wait_for(
            read_frame(reader, self.max_frame_size), timeout=self.io_timeout
        )
        if payload is None:
            logger.info("Connection from %s closed before sending", peer)
            return None

        envelope = Envelope.from_json(payload)
        logger.debug("Encrypted content from %s: %d bytes", peer, len(envelope.content))

        plaintext = envelope.decrypt_content(self.secret_key)
        logger.info(
            "Message from %s (%s) to %s, type=%s, sent %s, sender key %s",
            envelope.sender, peer, envelope.recipient, envelope.message_type.value,
            envelope.timestamp.isoformat(), key_fingerprint(envelope.public_key),
        )
        logger.debug("Decrypted content: %s", plaintext)

        if self.on_message is not None:
            result = self.on_message(envelope, plaintext)
            if asyncio.iscoroutine(result):
                await result

        writer.write(ACKNOWLEDGMENT)
        await asyncio.wait_for(writer.drain(), timeout=self.io_timeout)
        return plaintext


def print_message(envelope: Envelope, plaintext: str) -> None:
    """Default console handler for decrypted messages."""
    print("## Decrypted message:")
    print(f"    sender:    {envelope.sender}")
    print(f"    recipient: {envelope.recipient}")
    print(f"    content:   {plaintext}")
    print(f"    timestamp: {envelope.timestamp.isoformat()}\n")


def main(settings=None) -> int:
    from .common.config import load_settings
    from .common.exceptions import MalformedInput
    from .crypto import load_or_create_keypair
    from .crypto.keys import keypair_paths

    settings = settings or load_settings()

    print("=" * 70)
    print("  QUIETDROP SERVER")
    print("=" * 70 + "\n")

    try:
        keypair, created = load_or_create_keypair(settings.key_dir, "server")
    except (FileNotFoundError, MalformedInput) as e:
        print(f"[!] Cannot load server key pair: {e}")
        return 1

    public_path, _ = keypair_paths(settings.key_dir, "server")
    if created:
        print(f"[*] Server key pair generated, public key: {public_path}")
    else:
        print(f"[*] Loaded server key pair, public key: {public_path}")
    print(f"    Fingerprint: {key_fingerprint(keypair.public_key)}")

    server = QuietDropServer(
        keypair.secret_key,
        host=settings.host,
        port=settings.port,
        rate_limiter=RateLimiter(settings.rate_window, settings.rate_limit),
        on_message=print_message,
        io_timeout=settings.io_timeout,
        max_frame_size=settings.max_frame_size,
    )

    print(f"\n>>> Now listening for incoming messages on {settings.host}:{settings.port}...\n")
    try:
        asyncio.run(server.serve_forever())
    except KeyboardInterrupt:
        print("\n[*] Server shutting down...")
    except TransportError as e:
        print(f"[!] {e}")
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
