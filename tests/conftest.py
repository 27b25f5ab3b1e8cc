"""Pytest shared fixtures for KeyFlow tests."""
import json
import pathlib
import sys
from typing import Optional

# Add project root to Python path
ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import pytest
import requests
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec, rsa

from stackit_keyflow.config.settings import (
    ENV_PRIVATE_KEY,
    ENV_PRIVATE_KEY_PATH,
    ENV_SERVICE_ACCOUNT_KEY,
    ENV_SERVICE_ACCOUNT_KEY_PATH,
)
from stackit_keyflow.core.features import ENV_ENABLE_BETA_RESOURCES

FIXTURES_DIR = ROOT / "tests" / "fixtures"
SERVICE_ACCOUNT_FIXTURE = FIXTURES_DIR / "service_account.json"
MOCK_TOKEN_URL = "https://token.example.test/token"


# ─────────────────────────────────────────────────────────────────────────────
# Environment Guard Rails
# ─────────────────────────────────────────────────────────────────────────────
@pytest.fixture(autouse=True)
def _clean_stackit_env(monkeypatch):
    """Keep credentials from the host environment out of every test."""
    for name in (
        ENV_SERVICE_ACCOUNT_KEY,
        ENV_SERVICE_ACCOUNT_KEY_PATH,
        ENV_PRIVATE_KEY,
        ENV_PRIVATE_KEY_PATH,
        ENV_ENABLE_BETA_RESOURCES,
    ):
        monkeypatch.delenv(name, raising=False)


# ─────────────────────────────────────────────────────────────────────────────
# Key Material
# ─────────────────────────────────────────────────────────────────────────────
def _pem(private_key) -> str:
    return private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode("utf-8")


@pytest.fixture(scope="session")
def rsa_key_pair():
    """Generate RSA key pair for assertion signing in tests."""
    private_key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    public_key = private_key.public_key()
    return {
        "private_key": private_key,
        "private_pem": _pem(private_key),
        "public_key": public_key,
    }


@pytest.fixture(scope="session")
def other_rsa_pem():
    """A second, unrelated RSA private key."""
    return _pem(rsa.generate_private_key(public_exponent=65537, key_size=2048))


@pytest.fixture(scope="session")
def ec_private_pem():
    """A non-RSA private key (must be rejected for RS256)."""
    return _pem(ec.generate_private_key(ec.SECP256R1()))


def make_service_account_key(private_key: Optional[str] = None, **credential_overrides) -> dict:
    """Service account key document shaped like the STACKIT API returns it."""
    document = json.loads(SERVICE_ACCOUNT_FIXTURE.read_text(encoding="utf-8"))
    if private_key is not None:
        document["credentials"]["privateKey"] = private_key
    document["credentials"].update(credential_overrides)
    return document


@pytest.fixture()
def service_account_key_json():
    """Service account key without an embedded private key."""
    return json.dumps(make_service_account_key())


@pytest.fixture()
def service_account_key_with_private_key_json(rsa_key_pair):
    """Service account key embedding the test private key."""
    return json.dumps(make_service_account_key(private_key=rsa_key_pair["private_pem"]))


# ─────────────────────────────────────────────────────────────────────────────
# Token Endpoint Stub
# ─────────────────────────────────────────────────────────────────────────────
class _StubResponse:
    def __init__(self, payload=None, status_code: int = 200, text: Optional[str] = None):
        self._payload = payload
        self.status_code = status_code
        self.text = text if text is not None else json.dumps(payload)

    def json(self):
        if self._payload is None:
            return json.loads(self.text)
        return self._payload


class TokenEndpoint:
    """Records token requests and answers with a configurable response."""

    def __init__(self):
        self.calls = []
        self.response = _StubResponse({
            "access_token": "mock_access_token",
            "refresh_token": "mock_refresh_token",
            "token_type": "Bearer",
            "expires_in": 3600,
            "scope": "mock_scope",
        })
        self.error: Optional[Exception] = None

    def respond(self, payload=None, status_code: int = 200, text: Optional[str] = None):
        self.response = _StubResponse(payload, status_code, text)

    def fail_with(self, error: Exception):
        self.error = error

    @property
    def last_form(self) -> dict:
        return self.calls[-1]["data"]

    def post(self, url, *args, **kwargs):
        if url != MOCK_TOKEN_URL:
            raise RuntimeError(f"Unexpected HTTP POST in unit test: {url}")
        self.calls.append({"url": url, **kwargs})
        if self.error is not None:
            raise self.error
        return self.response


@pytest.fixture()
def token_endpoint(monkeypatch):
    """Stub the token endpoint by patching requests.post."""
    endpoint = TokenEndpoint()
    monkeypatch.setattr(requests, "post", endpoint.post)
    return endpoint


# ─────────────────────────────────────────────────────────────────────────────
# Pytest Configuration
# ─────────────────────────────────────────────────────────────────────────────
def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "critical: marks tests as critical security tests (secrets never leak)"
    )
