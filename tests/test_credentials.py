"""Unit tests for auth/credentials.py -- CredentialManager.

Covers:
- Same password hashed twice gives different hashes, both verifiable
- verify() rejects wrong passwords
- verify() returns False (never raises) for malformed or empty hashes
- Invalid cost factor surfaces as HashingFailure
- dummy_hash is computed once per manager
"""

import pytest

from auth.credentials import CredentialManager, HashingFailure
from tests.conftest import TEST_COST


class TestHash:
    def test_same_password_gives_different_hashes(self, creds: CredentialManager) -> None:
        first = creds.hash("hunter2-hunter2")
        second = creds.hash("hunter2-hunter2")
        assert first != second
        assert creds.verify(first, "hunter2-hunter2")
        assert creds.verify(second, "hunter2-hunter2")

    def test_cost_factor_is_embedded_in_hash(self, creds: CredentialManager) -> None:
        assert creds.hash("pw-pw-pw-pw").startswith(b"$2b$04$")
        assert creds.hash("pw-pw-pw-pw", cost=5).startswith(b"$2b$05$")

    def test_accepts_bytes_and_str(self, creds: CredentialManager) -> None:
        hashed = creds.hash(b"bytes-password")
        assert creds.verify(hashed, "bytes-password")

    @pytest.mark.parametrize("cost", [2, 40])
    def test_invalid_cost_raises_hashing_failure(self, cost: int) -> None:
        with pytest.raises(HashingFailure):
            CredentialManager(cost=cost).hash("whatever-password")


class TestVerify:
    def test_rejects_other_passwords(self, creds: CredentialManager) -> None:
        hashed = creds.hash("the-right-one")
        assert not creds.verify(hashed, "the-wrong-one")
        assert not creds.verify(hashed, "")

    @pytest.mark.parametrize("bad_hash", [b"", None, b"not-a-bcrypt-hash", "$2b$04$short"])
    def test_malformed_hash_is_just_false(self, creds: CredentialManager, bad_hash) -> None:
        assert creds.verify(bad_hash, "anything") is False

    def test_str_hash_accepted(self, creds: CredentialManager) -> None:
        hashed = creds.hash("stringly-typed").decode("utf-8")
        assert creds.verify(hashed, "stringly-typed")


def test_dummy_hash_cached_per_manager() -> None:
    creds = CredentialManager(cost=TEST_COST)
    assert creds.dummy_hash is creds.dummy_hash
    assert not creds.verify(creds.dummy_hash, "a real user password")
