"""STACKIT KeyFlow client library.

This package resolves service account credentials and exchanges them for a
short-lived access token via the JWT-bearer grant.

Architecture:
- sources.py: Layered resolution of key and private key material
- key_material.py: Service account key parsing
- client.py: Assertion signing and token exchange
- pipeline.py: Orchestration of the stages above
- exceptions.py: Typed exceptions for error handling

Usage:
    from stackit_keyflow.config import load_credential_sources
    from stackit_keyflow.core.keyflow import get_access_token, setup_key_flow

    sources = load_credential_sources(config)
    token = get_access_token(sources)

    # Or keep the resolved flow for a single operation
    flow = setup_key_flow(sources)
    access_token = flow.issue()
"""
from .client import (
    ASSERTION_LIFETIME,
    JWT_BEARER_GRANT_TYPE,
    REQUEST_TIMEOUT,
    AccessToken,
    KeyFlowClient,
    TokenIssuer,
    build_assertion_claims,
    parse_token_response,
    sign_assertion,
)
from .exceptions import (
    CredentialSourceError,
    InvalidPrivateKeyError,
    InvalidTokenResponseError,
    KeyFlowError,
    MalformedCredentialError,
    MissingCredentialError,
    MissingPrivateKeyError,
    TokenExchangeError,
)
from .key_material import KeyMaterial, ServiceAccountCredentials, parse_service_account_key
from .pipeline import KeyFlow, get_access_token, setup_key_flow
from .sources import (
    PrivateKeyMaterial,
    ResolvedSource,
    resolve_layered_source,
    resolve_private_key,
    resolve_service_account_key,
)

__all__ = [
    # Client
    "ASSERTION_LIFETIME",
    "JWT_BEARER_GRANT_TYPE",
    "REQUEST_TIMEOUT",
    "AccessToken",
    "KeyFlowClient",
    "TokenIssuer",
    "build_assertion_claims",
    "parse_token_response",
    "sign_assertion",
    # Exceptions
    "KeyFlowError",
    "MissingCredentialError",
    "CredentialSourceError",
    "MalformedCredentialError",
    "MissingPrivateKeyError",
    "InvalidPrivateKeyError",
    "TokenExchangeError",
    "InvalidTokenResponseError",
    # Key material
    "KeyMaterial",
    "ServiceAccountCredentials",
    "parse_service_account_key",
    # Pipeline
    "KeyFlow",
    "get_access_token",
    "setup_key_flow",
    # Sources
    "PrivateKeyMaterial",
    "ResolvedSource",
    "resolve_layered_source",
    "resolve_private_key",
    "resolve_service_account_key",
]
