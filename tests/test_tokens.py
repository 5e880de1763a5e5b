"""Token and password helpers, tested without HTTP."""

from datetime import timedelta

import jwt
import pytest

from tradeboard.auth.jwt import CLAIM_KEYS, issue_token, verify_token
from tradeboard.auth.password import hash_password, verify_password
from tradeboard.errors import TokenExpired, TokenInvalid

SECRET = "unit-test-secret"
CLAIMS = {
    "userId": "9b2f3a0e-5a7c-4a43-9d0d-0d2e8e1b7c11",
    "email": "admin@acme.com",
    "role": "ADMIN",
    "companyId": "4f1d2c3b-6e5a-4b7c-8d9e-0f1a2b3c4d5e",
}


def test_issue_then_verify_returns_claims():
    token = issue_token(CLAIMS, secret=SECRET)
    payload = verify_token(token, secret=SECRET)
    for key in CLAIM_KEYS:
        assert payload[key] == CLAIMS[key]
    assert payload["exp"] > payload["iat"]


def test_default_ttl_is_one_day():
    token = issue_token(CLAIMS, secret=SECRET)
    payload = verify_token(token, secret=SECRET)
    assert payload["exp"] - payload["iat"] == 24 * 60 * 60


def test_expired_token_raises_token_expired():
    token = issue_token(CLAIMS, ttl=timedelta(seconds=-1), secret=SECRET)
    with pytest.raises(TokenExpired):
        verify_token(token, secret=SECRET)


def test_wrong_secret_raises_token_invalid():
    token = issue_token(CLAIMS, secret=SECRET)
    with pytest.raises(TokenInvalid):
        verify_token(token, secret="another-secret")


def test_token_without_exp_is_invalid():
    token = jwt.encode(dict(CLAIMS), SECRET, algorithm="HS256")
    with pytest.raises(TokenInvalid):
        verify_token(token, secret=SECRET)


@pytest.mark.parametrize("missing", CLAIM_KEYS)
def test_token_missing_a_claim_is_invalid(missing):
    claims = {k: v for k, v in CLAIMS.items() if k != missing}
    token = issue_token(claims, secret=SECRET)
    with pytest.raises(TokenInvalid):
        verify_token(token, secret=SECRET)


def test_non_string_claim_is_invalid():
    token = issue_token({**CLAIMS, "userId": 42}, secret=SECRET)
    with pytest.raises(TokenInvalid):
        verify_token(token, secret=SECRET)


def test_password_hash_verifies():
    hashed = hash_password("correct horse", rounds=4)
    assert hashed != "correct horse"
    assert verify_password("correct horse", hashed)
    assert not verify_password("wrong horse", hashed)


def test_password_hashes_are_salted():
    assert hash_password("same", rounds=4) != hash_password("same", rounds=4)


def test_verify_against_malformed_hash_is_false():
    assert verify_password("anything", "not-a-bcrypt-hash") is False
