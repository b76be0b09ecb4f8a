from datetime import timedelta

import jwt
import pytest

from filehost_api.auth import CredentialVerifier
from filehost_api.errors import ErrorCode, UnauthenticatedError
from tests.consts import TEST_JWT_SECRET, TEST_OWNER_ID
from tests.fixtures.auth_fixtures import make_token


@pytest.fixture
def verifier() -> CredentialVerifier:
    return CredentialVerifier(TEST_JWT_SECRET)


def test_verify_returns_identity(verifier):
    assert verifier.verify(make_token(TEST_OWNER_ID)) == TEST_OWNER_ID


def test_verify_header_accepts_bearer_scheme_case_insensitively(verifier):
    token = make_token(TEST_OWNER_ID)
    assert verifier.verify_header(f"Bearer {token}") == TEST_OWNER_ID
    assert verifier.verify_header(f"bearer {token}") == TEST_OWNER_ID


@pytest.mark.parametrize("header", [None, "", "Bearer", "Bearer   ", "Basic abc", "Token xyz"])
def test_verify_header_rejects_missing_or_malformed_header(verifier, header):
    with pytest.raises(UnauthenticatedError) as exc_info:
        verifier.verify_header(header)
    assert exc_info.value.code == ErrorCode.UNAUTHENTICATED
    assert exc_info.value.status_code == 401


def test_verify_rejects_expired_token(verifier):
    token = make_token(TEST_OWNER_ID, expires_in=timedelta(seconds=-5))
    with pytest.raises(UnauthenticatedError, match="expired"):
        verifier.verify(token)


def test_verify_rejects_token_signed_with_other_secret(verifier):
    token = make_token(TEST_OWNER_ID, secret="somebody-elses-secret")
    with pytest.raises(UnauthenticatedError):
        verifier.verify(token)


def test_verify_rejects_garbage(verifier):
    with pytest.raises(UnauthenticatedError):
        verifier.verify("not.a.jwt")


def test_verify_rejects_token_without_identity(verifier):
    token = jwt.encode({"role": "admin"}, TEST_JWT_SECRET, algorithm="HS256")
    with pytest.raises(UnauthenticatedError):
        verifier.verify(token)


def test_verify_accepts_sub_claim(verifier):
    token = jwt.encode({"sub": TEST_OWNER_ID}, TEST_JWT_SECRET, algorithm="HS256")
    assert verifier.verify(token) == TEST_OWNER_ID


def test_issue_sets_expiry(verifier):
    token = verifier.issue(TEST_OWNER_ID, expires_in=timedelta(minutes=5))
    payload = jwt.decode(token, TEST_JWT_SECRET, algorithms=["HS256"])
    assert payload["userId"] == TEST_OWNER_ID
    assert payload["exp"] > payload["iat"]


def test_empty_secret_is_rejected():
    with pytest.raises(ValueError):
        CredentialVerifier("")
