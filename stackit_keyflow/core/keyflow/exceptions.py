"""KeyFlow-specific exceptions for error handling.

Each stage of token issuance raises its own kind, so callers can tell a
credential-source problem apart from a token-exchange problem. Messages never
contain key or token material.
"""
from __future__ import annotations
from typing import Optional


class KeyFlowError(Exception):
    """Base exception for all KeyFlow operations."""
    pass


class MissingCredentialError(KeyFlowError):
    """No service account key source was provided."""
    pass


class CredentialSourceError(KeyFlowError):
    """A credential file could not be read.

    Attributes:
        origin: Source label (``env_path`` or ``config_path``)
        path: File path that failed
    """

    def __init__(self, origin: str, path: str, reason: str):
        self.origin = origin
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to read credential file ({origin}) {path}: {reason}")


class MalformedCredentialError(KeyFlowError):
    """Service account key is not valid JSON or does not match the key schema."""
    pass


class MissingPrivateKeyError(KeyFlowError):
    """No private key source was provided and the key embeds none."""
    pass


class InvalidPrivateKeyError(KeyFlowError):
    """Private key could not be loaded or used for RS256 signing."""
    pass


class TokenExchangeError(KeyFlowError):
    """Token endpoint could not be reached or answered with a non-2xx status.

    Attributes:
        status_code: HTTP status code (None for transport failures)
        body: Response body, truncated
        endpoint: Token endpoint that failed
    """

    def __init__(self, status_code: Optional[int], body: str, endpoint: str):
        self.status_code = status_code
        self.body = body
        self.endpoint = endpoint
        label = status_code if status_code is not None else "no response"
        super().__init__(f"[{label}] {endpoint}: {body}")


class InvalidTokenResponseError(KeyFlowError):
    """Token endpoint answered 2xx but the body is not a usable token response."""
    pass
