"""Shared fixtures for the QuietDrop test suite."""

import pytest

from quietdrop.crypto import generate_keypair


@pytest.fixture
def alice():
    """Alice's key pair."""
    return generate_keypair()


@pytest.fixture
def bob():
    """Bob's key pair."""
    return generate_keypair()


@pytest.fixture
def charlie():
    """Charlie's key pair."""
    return generate_keypair()
