"""JWT-bearer token exchange against the STACKIT token endpoint.

Builds a self-signed RS256 assertion from the service account key, posts it
as a ``urn:ietf:params:oauth:grant-type:jwt-bearer`` grant and parses the
access token out of the response. Every call issues a fresh token; nothing is
cached or retried here.
"""
from __future__ import annotations
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Optional, Protocol
from urllib.parse import urlparse

import jwt
import requests
from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from .exceptions import InvalidPrivateKeyError, InvalidTokenResponseError, TokenExchangeError
from .key_material import KeyMaterial
from .sources import PrivateKeyMaterial

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT = 10
ASSERTION_LIFETIME = timedelta(minutes=10)
JWT_BEARER_GRANT_TYPE = "urn:ietf:params:oauth:grant-type:jwt-bearer"
MAX_ERROR_BODY_LENGTH = 512


@dataclass(frozen=True)
class AccessToken:
    """Bearer token returned by the token endpoint.

    For one-time use within a single operation; never cached or persisted.
    """
    access_token: str = field(repr=False)
    token_type: str = ""
    expires_in: Optional[int] = None
    scope: str = ""
    refresh_token: str = field(default="", repr=False)
    issued_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc), compare=False)

    @property
    def expires_at(self) -> Optional[datetime]:
        """Remote-reported expiry, relative to when the response was received."""
        if self.expires_in is None:
            return None
        return self.issued_at + timedelta(seconds=self.expires_in)


class TokenIssuer(Protocol):
    """Capability to exchange key material for an access token."""

    def issue(
        self,
        key_material: KeyMaterial,
        private_key: PrivateKeyMaterial,
        token_endpoint: str,
    ) -> AccessToken:
        ...


def load_signing_key(private_key: PrivateKeyMaterial) -> rsa.RSAPrivateKey:
    """Load a PEM private key for RS256 signing.

    Raises:
        InvalidPrivateKeyError: If the PEM/DER is malformed, encrypted or not RSA
    """
    try:
        key = serialization.load_pem_private_key(private_key.pem, password=None)
    except (ValueError, TypeError, UnsupportedAlgorithm) as exc:
        raise InvalidPrivateKeyError(
            f"Private key from {private_key.origin} is not a valid unencrypted PEM private key"
        ) from exc

    if not isinstance(key, rsa.RSAPrivateKey):
        raise InvalidPrivateKeyError(f"Private key from {private_key.origin} is not an RSA key")
    return key


def build_assertion_claims(
    key_material: KeyMaterial,
    token_endpoint: str,
    now: Optional[datetime] = None,
) -> dict[str, Any]:
    """Claims of the self-signed assertion.

    ``exp`` bounds the assertion itself, not the resulting access token.
    """
    now = now or datetime.now(timezone.utc)
    return {
        "iss": key_material.identifier,
        "sub": key_material.credentials.sub,
        "aud": token_endpoint,
        "jti": str(uuid.uuid4()),
        "iat": int(now.timestamp()),
        "exp": int((now + ASSERTION_LIFETIME).timestamp()),
    }


def sign_assertion(
    key_material: KeyMaterial,
    private_key: PrivateKeyMaterial,
    token_endpoint: str,
    now: Optional[datetime] = None,
) -> str:
    """Build and sign the JWT assertion (RS256, ``kid`` from the key).

    Raises:
        InvalidPrivateKeyError: If the key cannot be loaded or used to sign
    """
    signing_key = load_signing_key(private_key)
    claims = build_assertion_claims(key_material, token_endpoint, now)
    try:
        return jwt.encode(
            claims,
            signing_key,
            algorithm="RS256",
            headers={"kid": key_material.credentials.kid},
        )
    except (jwt.exceptions.PyJWTError, ValueError, TypeError) as exc:
        raise InvalidPrivateKeyError(f"Signing with private key from {private_key.origin} failed") from exc


def _truncate(text: str) -> str:
    if len(text) <= MAX_ERROR_BODY_LENGTH:
        return text
    return text[:MAX_ERROR_BODY_LENGTH] + "..."


def _coerce_expires_in(value: Any) -> Optional[int]:
    """Accept an integer, an integral float or a decimal integer string."""
    if value is None:
        return None
    if isinstance(value, bool):
        raise InvalidTokenResponseError("Token response expires_in must be an integer")
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            pass
    raise InvalidTokenResponseError("Token response expires_in must be an integer")


def parse_token_response(payload: Any) -> AccessToken:
    """Turn a decoded token response body into an ``AccessToken``.

    Raises:
        InvalidTokenResponseError: If access_token is missing/empty or fields have the wrong type
    """
    if not isinstance(payload, dict):
        raise InvalidTokenResponseError("Token response must be a JSON object")

    access_token = payload.get("access_token")
    if not isinstance(access_token, str) or not access_token:
        raise InvalidTokenResponseError("Token response has no access_token")

    expires_in = _coerce_expires_in(payload.get("expires_in"))

    return AccessToken(
        access_token=access_token,
        token_type=str(payload.get("token_type") or ""),
        expires_in=expires_in,
        scope=str(payload.get("scope") or ""),
        refresh_token=str(payload.get("refresh_token") or ""),
    )


class KeyFlowClient:
    """Issues access tokens via the JWT-bearer (key flow) grant.

    Usage:
        client = KeyFlowClient()
        token = client.issue(key_material, private_key, "https://service-account.api.stackit.cloud/token")
        headers = {"Authorization": f"Bearer {token.access_token}"}
    """

    def __init__(self, session: Optional[requests.Session] = None, timeout: Optional[float] = None):
        """Initialize the client.

        Args:
            session: Optional requests session; the request timeout is the only bound on a
                blocking exchange
            timeout: Request timeout in seconds (defaults to REQUEST_TIMEOUT)
        """
        self._session = session
        self._timeout = REQUEST_TIMEOUT if timeout is None else timeout

    def issue(
        self,
        key_material: KeyMaterial,
        private_key: PrivateKeyMaterial,
        token_endpoint: str,
    ) -> AccessToken:
        """Exchange a freshly signed assertion for an access token.

        Raises:
            InvalidPrivateKeyError: If the private key cannot sign
            TokenExchangeError: On transport failure or non-2xx status
            InvalidTokenResponseError: If the 2xx body carries no usable token
        """
        assertion = sign_assertion(key_material, private_key, token_endpoint)

        if urlparse(token_endpoint).scheme != "https":
            logger.warning("Token endpoint %s does not use HTTPS", token_endpoint)

        resp = self._post(token_endpoint, assertion)

        if not 200 <= resp.status_code < 300:
            logger.error("Token exchange failed at %s with status %s", token_endpoint, resp.status_code)
            raise TokenExchangeError(resp.status_code, _truncate(resp.text or ""), token_endpoint)

        try:
            payload = resp.json()
        except ValueError as exc:
            raise InvalidTokenResponseError("Token response is not valid JSON") from exc

        token = parse_token_response(payload)
        logger.info(
            "Issued access token for service account key %s (expires_in=%s)",
            key_material.key_id,
            token.expires_in,
        )
        return token

    def _post(self, token_endpoint: str, assertion: str) -> requests.Response:
        data = {"grant_type": JWT_BEARER_GRANT_TYPE, "assertion": assertion}
        headers = {"Accept": "application/json"}
        post = self._session.post if self._session is not None else requests.post
        try:
            return post(token_endpoint, data=data, headers=headers, timeout=self._timeout)
        except requests.RequestException as exc:
            logger.error("Token exchange request to %s failed: %s", token_endpoint, exc.__class__.__name__)
            raise TokenExchangeError(None, exc.__class__.__name__, token_endpoint) from exc
