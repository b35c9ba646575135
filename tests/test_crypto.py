"""Tests for box encryption and decryption."""

import nacl.utils
import pytest
from nacl.public import Box, PrivateKey, PublicKey

from quietdrop.common.exceptions import AuthenticationFailure, EncodingError, MalformedInput
from quietdrop.crypto import NONCE_SIZE, decrypt, encrypt, generate_keypair


TEST_MESSAGES = [
    "Hello Bob!",
    "",
    "Hello Bob, this is a secure message from Alice!",
    "Unicode: ñ ü 日本語 🔐",
    "x" * 4096,
]


class TestEncryption:
    """Test message encryption."""

    @pytest.mark.parametrize("message", TEST_MESSAGES)
    def test_round_trip(self, alice, bob, message) -> None:
        """Bob decrypts what Alice encrypted for him."""
        ciphertext = encrypt(message, bob.public_key, alice.secret_key)

        assert decrypt(ciphertext, alice.public_key, bob.secret_key) == message

    def test_ciphertext_layout(self, alice, bob) -> None:
        """Output is nonce followed by a box 16 bytes longer than the plaintext."""
        message = "Hello Bob!"
        ciphertext = encrypt(message, bob.public_key, alice.secret_key)

        assert len(ciphertext) == NONCE_SIZE + 16 + len(message.encode("utf-8"))
        assert message.encode("utf-8") not in ciphertext

    def test_fresh_nonce_per_call(self, alice, bob) -> None:
        """Encrypting the same plaintext twice gives different ciphertexts."""
        first = encrypt("same text", bob.public_key, alice.secret_key)
        second = encrypt("same text", bob.public_key, alice.secret_key)

        assert first != second
        assert first[:NONCE_SIZE] != second[:NONCE_SIZE]

    def test_invalid_key_length(self, alice) -> None:
        """Keys that are not 32 bytes are rejected."""
        with pytest.raises(MalformedInput):
            encrypt("hi", b"short", alice.secret_key)


class TestDecryption:
    """Test message decryption failures."""

    def test_every_single_bit_flip_is_detected(self, alice, bob) -> None:
        """Flipping any one bit of nonce or box makes decryption fail."""
        ciphertext = encrypt("This message integrity must be protected", bob.public_key, alice.secret_key)

        for index in range(len(ciphertext)):
            for bit in range(8):
                tampered = bytearray(ciphertext)
                tampered[index] ^= 1 << bit
                with pytest.raises(AuthenticationFailure):
                    decrypt(bytes(tampered), alice.public_key, bob.secret_key)

    def test_key_specificity(self, alice, bob, charlie) -> None:
        """A message for Bob cannot be opened with Charlie's secret key."""
        for_bob = encrypt("Hey Bob, this is for your eyes only", bob.public_key, alice.secret_key)
        for_charlie = encrypt("Hey Charlie, here's the info", charlie.public_key, alice.secret_key)

        assert decrypt(for_bob, alice.public_key, bob.secret_key) == "Hey Bob, this is for your eyes only"
        assert decrypt(for_charlie, alice.public_key, charlie.secret_key) == "Hey Charlie, here's the info"

        with pytest.raises(AuthenticationFailure):
            decrypt(for_bob, alice.public_key, charlie.secret_key)
        with pytest.raises(AuthenticationFailure):
            decrypt(for_charlie, alice.public_key, bob.secret_key)

    def test_wrong_sender_key(self, alice, bob, charlie) -> None:
        """Claiming the wrong sender public key fails authentication."""
        ciphertext = encrypt("from alice", bob.public_key, alice.secret_key)

        with pytest.raises(AuthenticationFailure):
            decrypt(ciphertext, charlie.public_key, bob.secret_key)

    @pytest.mark.parametrize("length", [0, 1, 12, NONCE_SIZE - 1])
    def test_shorter_than_nonce(self, alice, bob, length) -> None:
        """Input shorter than the nonce is malformed, not an auth failure."""
        with pytest.raises(MalformedInput):
            decrypt(bytes(length), alice.public_key, bob.secret_key)

    def test_nonce_only(self, alice, bob) -> None:
        """A nonce with no box fails authentication."""
        with pytest.raises(AuthenticationFailure):
            decrypt(bytes(NONCE_SIZE), alice.public_key, bob.secret_key)

    def test_invalid_utf8(self, alice, bob) -> None:
        """A box holding non-UTF-8 bytes raises EncodingError."""
        box = Box(PrivateKey(alice.secret_key), PublicKey(bob.public_key))
        nonce = nacl.utils.random(NONCE_SIZE)
        ciphertext = bytes(box.encrypt(b"\xff\xfe\xfd", nonce))

        with pytest.raises(EncodingError):
            decrypt(ciphertext, alice.public_key, bob.secret_key)


class TestKeyPairs:
    """Test key pair generation."""

    def test_key_sizes(self) -> None:
        keypair = generate_keypair()

        assert len(keypair.public_key) == 32
        assert len(keypair.secret_key) == 32

    def test_keys_are_unique(self) -> None:
        keys = {generate_keypair().public_key for _ in range(10)}

        assert len(keys) == 10

    def test_secret_key_not_in_repr(self) -> None:
        keypair = generate_keypair()

        assert keypair.secret_key.hex() not in repr(keypair)
        assert "secret_key" not in repr(keypair)
