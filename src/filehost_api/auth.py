"""
Bearer credential verification.

Tokens are HMAC-signed JWTs carrying the caller identity in the ``userId``
claim (``sub`` is accepted as well). Verification is stateless: it never
touches the record store.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt

from filehost_api.errors import UnauthenticatedError
from filehost_api.settings import Settings

logger = logging.getLogger(__name__)

IDENTITY_CLAIMS = ("userId", "sub")


class CredentialVerifier:
    """Validates bearer credentials and extracts the caller identity"""

    def __init__(self, secret_key: str, algorithm: str = "HS256", scheme: str = "Bearer"):
        if not secret_key:
            raise ValueError("A signing secret is required")
        self._secret_key = secret_key
        self.algorithm = algorithm
        self.scheme = scheme

    @classmethod
    def from_settings(cls, settings: Settings) -> "CredentialVerifier":
        return cls(settings.jwt_secret, settings.jwt_algorithm, settings.auth_scheme)

    def verify(self, credential: str) -> str:
        """Return the identity encoded in ``credential`` or raise UnauthenticatedError."""
        if not credential:
            raise UnauthenticatedError()
        try:
            payload = jwt.decode(credential, self._secret_key, algorithms=[self.algorithm])
        except jwt.ExpiredSignatureError:
            logger.info("Rejected expired credential")
            raise UnauthenticatedError("Credential expired")
        except jwt.InvalidTokenError as e:
            logger.info(f"Rejected invalid credential: {type(e).__name__}")
            raise UnauthenticatedError()

        for claim in IDENTITY_CLAIMS:
            identity = payload.get(claim)
            if isinstance(identity, str) and identity:
                return identity
        raise UnauthenticatedError()

    def verify_header(self, authorization: Optional[str]) -> str:
        """Verify an ``Authorization`` header value such as ``Bearer <token>``."""
        if not authorization:
            raise UnauthenticatedError()
        scheme, _, credential = authorization.strip().partition(" ")
        if scheme.lower() != self.scheme.lower() or not credential.strip():
            raise UnauthenticatedError()
        return self.verify(credential.strip())

    def issue(self, identity: str, expires_in: Optional[timedelta] = None) -> str:
        """Mint a token for ``identity``. Used by operator tooling and tests."""
        now = datetime.now(timezone.utc)
        payload = {"userId": identity, "iat": now}
        if expires_in is not None:
            payload["exp"] = now + expires_in
        return jwt.encode(payload, self._secret_key, algorithm=self.algorithm)
