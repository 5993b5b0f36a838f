"""Unit tests for stored password hash functions."""

import pytest

from dbuserprovider.core.security.hashing import (
    hash_password,
    hash_pbkdf2_sha256,
    verify_password,
    verify_pbkdf2_sha256,
)
from dbuserprovider.runtime.config.config_data import SUPPORTED_HASH_FUNCTIONS


class TestHexDigests:
    """Hex digests must match what other systems store for the same password."""

    @pytest.mark.parametrize(
        ("hash_function", "expected"),
        [
            ("MD5", "5f4dcc3b5aa765d61d8327deb882cf99"),
            ("SHA-1", "5baa61e4c9b93f3f0682250b6cf8331b7ee68fd8"),
            ("SHA-256", "5e884898da28047151d0e56f8dc6292773603d0d6aabbdd62a11ef721d1542d8"),
        ],
    )
    def test_known_digests(self, hash_function, expected):
        assert hash_password(hash_function, "password") == expected

    def test_verify_accepts_uppercase_stored_digest(self):
        stored = "5E884898DA28047151D0E56F8DC6292773603D0D6AABBDD62A11EF721D1542D8"
        assert verify_password("SHA-256", stored, "password")

    @pytest.mark.parametrize("hash_function", ["MD5", "SHA-256", "PBKDF2-SHA256"])
    def test_non_ascii_stored_value_does_not_verify(self, hash_function):
        assert not verify_password(hash_function, "café", "password")
        assert not verify_password(hash_function, "pbkdf2_sha256$1000$sél$café", "password")

    def test_verify_rejects_wrong_password(self):
        stored = hash_password("SHA-512", "password")
        assert not verify_password("SHA-512", stored, "Password")


class TestPbkdf2:
    def test_format(self):
        stored = hash_pbkdf2_sha256("password", salt="salt", iterations=1000)

        algorithm, iterations, salt, _ = stored.split("$")
        assert algorithm == "pbkdf2_sha256"
        assert iterations == "1000"
        assert salt == "salt"

    def test_verify_uses_stored_iterations(self):
        stored = hash_pbkdf2_sha256("password", iterations=1000)

        assert verify_pbkdf2_sha256(stored, "password")
        assert not verify_pbkdf2_sha256(stored, "wrong")

    def test_random_salt_per_hash(self):
        assert hash_pbkdf2_sha256("password", iterations=1000) != hash_pbkdf2_sha256(
            "password", iterations=1000
        )

    @pytest.mark.parametrize(
        "stored",
        ["", "plain", "md5$1000$salt$abc", "pbkdf2_sha256$many$salt$abc"],
    )
    def test_malformed_hash_does_not_verify(self, stored):
        assert not verify_pbkdf2_sha256(stored, "password")


class TestLibraryHashes:
    def test_bcrypt(self):
        stored = hash_password("Blowfish", "password")

        assert stored.startswith("$2")
        assert verify_password("Blowfish", stored, "password")
        assert not verify_password("Blowfish", stored, "wrong")

    def test_bcrypt_rejects_foreign_hash(self):
        assert not verify_password("Blowfish", "5f4dcc3b5aa765d61d8327deb882cf99", "password")

    def test_bcrypt_rejects_overlong_password(self):
        with pytest.raises(ValueError, match="72 bytes"):
            hash_password("Blowfish", "x" * 100)

    def test_bcrypt_overlong_password_never_verifies(self):
        stored = hash_password("Blowfish", "x" * 72)

        assert verify_password("Blowfish", stored, "x" * 72)
        assert not verify_password("Blowfish", stored, "x" * 100)

    def test_argon2(self):
        stored = hash_password("Argon2", "password")

        assert stored.startswith("$argon2")
        assert verify_password("Argon2", stored, "password")
        assert not verify_password("Argon2", stored, "wrong")

    def test_argon2_rejects_foreign_hash(self):
        assert not verify_password("Argon2", "not-a-hash", "password")


class TestDispatch:
    @pytest.mark.parametrize("hash_function", SUPPORTED_HASH_FUNCTIONS)
    def test_every_configurable_function_is_implemented(self, hash_function):
        if hash_function == "PBKDF2-SHA256":
            stored = hash_pbkdf2_sha256("secret", iterations=1000)
        else:
            stored = hash_password(hash_function, "secret")

        assert verify_password(hash_function, stored, "secret")

    def test_missing_stored_hash_never_verifies(self):
        assert not verify_password("SHA-256", None, "password")
        assert not verify_password("SHA-256", "", "")

    def test_unknown_function(self):
        with pytest.raises(ValueError, match="Unsupported hash function"):
            hash_password("ROT13", "password")
