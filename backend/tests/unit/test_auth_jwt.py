"""Unit tests for JWT token generation and validation

Tests cover:
- Token creation with user and organization claims
- Token decoding and validation
- Token expiration handling
- Invalid token handling
"""

import base64
import json
from datetime import datetime, timedelta, timezone
from uuid import uuid4

import jwt
import pytest

from clientportal.auth.jwt import create_access_token, decode_token

SECRET = 'test-secret-key-256-bits-minimum-length-required-for-security'


@pytest.fixture(autouse=True)
def jwt_secret(monkeypatch):
    monkeypatch.setenv('JWT_SECRET', SECRET)
    monkeypatch.delenv('JWT_EXPIRY_MINUTES', raising=False)


def _token(**overrides):
    claims = dict(user_id=str(uuid4()), org_id=str(uuid4()), role="member", email="member@acme.io")
    claims.update(overrides)
    return create_access_token(**claims)


class TestCreateAccessToken:
    """Test JWT token creation"""

    def test_token_contains_tenant_claims(self):
        user_id = str(uuid4())
        org_id = str(uuid4())

        token = _token(user_id=user_id, org_id=org_id, role="owner", email="owner@acme.io")
        payload = jwt.decode(token, options={"verify_signature": False})

        assert payload['sub'] == user_id
        assert payload['org_id'] == org_id
        assert payload['role'] == "owner"
        assert payload['email'] == "owner@acme.io"
        assert 'iat' in payload and 'exp' in payload

    def test_token_uses_hs256_algorithm(self):
        assert jwt.get_unverified_header(_token())['alg'] == 'HS256'

    @pytest.mark.parametrize("configured,expected", [("30", 30), ("120", 120), ("invalid", 60)])
    def test_expiry_follows_environment(self, monkeypatch, configured, expected):
        monkeypatch.setenv('JWT_EXPIRY_MINUTES', configured)

        before = datetime.now(timezone.utc)
        payload = jwt.decode(_token(), options={"verify_signature": False})

        exp_time = datetime.fromtimestamp(payload['exp'], tz=timezone.utc)
        assert abs((exp_time - (before + timedelta(minutes=expected))).total_seconds()) < 5

    def test_create_token_without_secret_raises_error(self, monkeypatch):
        monkeypatch.delenv('JWT_SECRET', raising=False)

        with pytest.raises(ValueError, match="JWT_SECRET environment variable is not set"):
            _token()


class TestDecodeToken:
    """Test JWT token decoding and validation"""

    def test_decode_valid_token(self):
        org_id = str(uuid4())
        payload = decode_token(_token(org_id=org_id))
        assert payload['org_id'] == org_id

    def test_decode_expired_token_raises_error(self):
        past = datetime.now(timezone.utc) - timedelta(minutes=10)
        expired = jwt.encode(
            {'sub': str(uuid4()), 'org_id': str(uuid4()), 'iat': int(past.timestamp()), 'exp': int(past.timestamp())},
            SECRET,
            algorithm='HS256',
        )

        with pytest.raises(jwt.ExpiredSignatureError):
            decode_token(expired)

    def test_decode_token_with_invalid_signature(self):
        forged = jwt.encode(
            {'sub': str(uuid4()), 'org_id': str(uuid4()),
             'exp': int((datetime.now(timezone.utc) + timedelta(hours=1)).timestamp())},
            'some-other-secret',
            algorithm='HS256',
        )

        with pytest.raises(jwt.InvalidTokenError):
            decode_token(forged)

    @pytest.mark.parametrize("token", ["not.a.token", "invalid-token", "a.b.c.d"])
    def test_decode_malformed_token(self, token):
        with pytest.raises(jwt.InvalidTokenError):
            decode_token(token)

    def test_token_without_org_claim_still_decodes(self):
        """The resolver, not the decoder, rejects tokens with no organization."""
        token = jwt.encode(
            {'sub': str(uuid4()), 'exp': int((datetime.now(timezone.utc) + timedelta(hours=1)).timestamp())},
            SECRET,
            algorithm='HS256',
        )

        assert 'org_id' not in decode_token(token)

    def test_org_claim_cannot_be_tampered(self):
        """Swapping the organization in the payload breaks the signature."""
        header, body, signature = _token().split('.')

        payload = json.loads(base64.urlsafe_b64decode(body + '=='))
        payload['org_id'] = str(uuid4())
        tampered = base64.urlsafe_b64encode(json.dumps(payload).encode()).decode().rstrip('=')

        with pytest.raises(jwt.InvalidTokenError):
            decode_token(f"{header}.{tampered}.{signature}")
