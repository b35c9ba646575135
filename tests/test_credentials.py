"""Tests for Argon2id credential hashing."""

import dataclasses

import pytest

from quietdrop.common.exceptions import ConfigurationError, MalformedInput
from quietdrop.storage import (
    KDF_PARAMETERS,
    generate_salt,
    hash_password,
    hash_password_with_salt,
    load_salt,
    needs_rehash,
    save_salt,
    verify_password,
)
from quietdrop.storage.credentials import _build_hasher


PASSWORD = "secure_password_123"


class TestHashing:
    """Test password hashing."""

    def test_hash_is_self_describing(self) -> None:
        """The hash string embeds algorithm, version, parameters and salt."""
        password_hash, salt = hash_password(PASSWORD)

        assert password_hash.startswith("$argon2id$v=19$m=4096,t=3,p=1$")
        assert f"${salt}$" in password_hash
        assert PASSWORD not in password_hash

    def test_same_salt_is_deterministic(self) -> None:
        """Same password + same salt + same parameters gives the same hash."""
        salt = generate_salt()

        first = hash_password_with_salt(PASSWORD, salt)
        second = hash_password_with_salt(PASSWORD, salt)

        assert first == second

    def test_fresh_salts_give_distinct_hashes(self) -> None:
        """Hashing one password N times yields N distinct hashes and salts."""
        results = [hash_password(PASSWORD) for _ in range(5)]

        assert len({password_hash for password_hash, _ in results}) == 5
        assert len({salt for _, salt in results}) == 5

    def test_salt_uniqueness(self) -> None:
        salts = {generate_salt() for _ in range(10)}

        assert len(salts) == 10

    def test_invalid_salt(self) -> None:
        with pytest.raises(MalformedInput):
            hash_password_with_salt(PASSWORD, "not base64 !!")

        with pytest.raises(MalformedInput):
            hash_password_with_salt(PASSWORD, "AAAA")  # 3 bytes, below minimum


class TestVerification:
    """Test password verification."""

    def test_correct_password(self) -> None:
        password_hash, _ = hash_password(PASSWORD)

        assert verify_password(password_hash, PASSWORD) is True

    def test_wrong_password(self) -> None:
        """A wrong password returns False rather than raising."""
        password_hash, _ = hash_password(PASSWORD)

        assert verify_password(password_hash, "wrong_password_123") is False
        assert verify_password(password_hash, "") is False

    def test_hash_with_stored_salt_verifies(self) -> None:
        _, salt = hash_password(PASSWORD)

        assert verify_password(hash_password_with_salt(PASSWORD, salt), PASSWORD)

    @pytest.mark.parametrize("bad_hash", [
        "",
        "plaintext",
        "$argon2id$v=19$m=4096,t=3,p=1$garbage",
        "$argon2id$v=19$m=4096,t=3,p=1$c29tZXNhbHQ$",
    ])
    def test_malformed_hash(self, bad_hash) -> None:
        """Structurally invalid hashes raise instead of returning False."""
        with pytest.raises(MalformedInput):
            verify_password(bad_hash, PASSWORD)

    def test_needs_rehash(self) -> None:
        password_hash, _ = hash_password(PASSWORD)

        assert needs_rehash(password_hash) is False


class TestConfiguration:
    """Test KDF parameter validation."""

    @pytest.mark.parametrize("changes", [
        {"time_cost": 0},
        {"parallelism": 0},
        {"memory_cost": 4, "parallelism": 1},
        {"hash_len": 2},
    ])
    def test_invalid_parameters(self, changes) -> None:
        with pytest.raises(ConfigurationError):
            _build_hasher(dataclasses.replace(KDF_PARAMETERS, **changes))

    def test_default_parameters_are_valid(self) -> None:
        assert _build_hasher(KDF_PARAMETERS) is not None


class TestSaltFile:
    """Test salt file persistence."""

    def test_save_and_load(self, tmp_path) -> None:
        path = tmp_path / "salt.txt"
        salt = generate_salt()

        save_salt(salt, path)

        assert path.read_text() == salt
        assert load_salt(path) == salt

    def test_loaded_salt_reproduces_hash(self, tmp_path) -> None:
        path = tmp_path / "salt.txt"
        password_hash, salt = hash_password(PASSWORD)
        save_salt(salt, path)

        assert hash_password_with_salt(PASSWORD, load_salt(path)) == password_hash

    def test_invalid_salt_file(self, tmp_path) -> None:
        path = tmp_path / "salt.txt"
        path.write_text("%%%")

        with pytest.raises(MalformedInput):
            load_salt(path)

    def test_missing_salt_file(self, tmp_path) -> None:
        with pytest.raises(FileNotFoundError):
            load_salt(tmp_path / "missing.txt")
