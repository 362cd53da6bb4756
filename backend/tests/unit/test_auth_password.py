"""Unit tests for password hashing and verification

Tests cover:
- Password hashing with Argon2id
- Password verification, including users without a password
- Password strength validation
- Pepper handling
"""

import pytest

from clientportal.auth.password import hash_password, verify_password, validate_password_strength


@pytest.fixture(autouse=True)
def pepper(monkeypatch):
    monkeypatch.setenv('PASSWORD_PEPPER', 'test-pepper-secret')


class TestHashPassword:
    """Test password hashing functionality"""

    def test_hash_password_argon2id_format(self):
        hashed = hash_password("SecurePass123")

        assert hashed.startswith('$argon2id$')
        assert 'm=65536' in hashed
        assert 't=3' in hashed
        assert 'p=4' in hashed

    def test_hash_password_different_for_same_input(self):
        assert hash_password("SecurePass123") != hash_password("SecurePass123")

    def test_hash_password_without_pepper_raises_error(self, monkeypatch):
        monkeypatch.delenv('PASSWORD_PEPPER', raising=False)

        with pytest.raises(ValueError, match="PASSWORD_PEPPER environment variable is not set"):
            hash_password("SecurePass123")

    def test_hash_password_empty_raises_error(self):
        with pytest.raises(ValueError, match="Password cannot be empty"):
            hash_password("")


class TestVerifyPassword:
    """Test password verification"""

    def test_correct_password_verifies(self):
        assert verify_password("SecurePass123", hash_password("SecurePass123")) is True

    def test_wrong_password_fails(self):
        assert verify_password("WrongPass123", hash_password("SecurePass123")) is False

    def test_pepper_change_invalidates_hash(self, monkeypatch):
        hashed = hash_password("SecurePass123")
        monkeypatch.setenv('PASSWORD_PEPPER', 'rotated-pepper')

        assert verify_password("SecurePass123", hashed) is False

    @pytest.mark.parametrize("stored", [None, "", "not-an-argon2-hash"])
    def test_missing_or_corrupt_hash_never_verifies(self, stored):
        assert verify_password("SecurePass123", stored) is False


class TestPasswordStrength:
    """Test password strength rules"""

    def test_strong_password_accepted(self):
        assert validate_password_strength("SecurePass123") == (True, "")

    @pytest.mark.parametrize("password,message", [
        ("Sh0rt", "at least 8 characters"),
        ("lowercase123", "uppercase"),
        ("UPPERCASE123", "lowercase"),
        ("NoDigitsHere", "digit"),
    ])
    def test_weak_passwords_rejected(self, password, message):
        valid, error = validate_password_strength(password)

        assert valid is False
        assert message in error
