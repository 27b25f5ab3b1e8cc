"""Credential resolution pipeline.

Runs, strictly in order:

1. resolve_service_account_key  (sources.py)
2. parse_service_account_key    (key_material.py)
3. resolve_private_key          (sources.py)
4. TokenIssuer.issue            (client.py)

The first error from any stage is raised as-is, so callers can distinguish a
credential-source problem from a token-exchange problem.
"""
from __future__ import annotations
import logging
from dataclasses import dataclass, field
from typing import Optional

from ...config.settings import CredentialSources
from .client import AccessToken, KeyFlowClient, TokenIssuer
from .key_material import KeyMaterial, parse_service_account_key
from .sources import PrivateKeyMaterial, resolve_private_key, resolve_service_account_key

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class KeyFlow:
    """Fully resolved key flow, ready to issue tokens.

    Returned by ``setup_key_flow`` so callers get the token capability
    directly instead of probing a generic transport for it.
    """
    key_material: KeyMaterial
    private_key: PrivateKeyMaterial = field(repr=False)
    token_endpoint: str
    issuer: TokenIssuer = field(repr=False, compare=False)

    def issue(self) -> AccessToken:
        return self.issuer.issue(self.key_material, self.private_key, self.token_endpoint)

    def get_access_token(self) -> str:
        return self.issue().access_token


def setup_key_flow(sources: CredentialSources, issuer: Optional[TokenIssuer] = None) -> KeyFlow:
    """Resolve and parse all credential material for the key flow.

    Args:
        sources: Injected credential sources
        issuer: Token issuer (defaults to a new KeyFlowClient)

    Raises:
        MissingCredentialError, CredentialSourceError, MalformedCredentialError,
        MissingPrivateKeyError
    """
    resolved = resolve_service_account_key(sources)
    key_material = parse_service_account_key(resolved.data)
    private_key = resolve_private_key(sources, key_material)

    logger.debug(
        "Key flow configured: key=%s key_source=%s private_key_source=%s endpoint=%s",
        key_material.key_id,
        resolved.origin,
        private_key.origin,
        sources.token_endpoint,
    )
    return KeyFlow(
        key_material=key_material,
        private_key=private_key,
        token_endpoint=sources.token_endpoint,
        issuer=issuer if issuer is not None else KeyFlowClient(),
    )


def get_access_token(
    sources: CredentialSources,
    issuer: Optional[TokenIssuer] = None,
    timeout: Optional[float] = None,
) -> str:
    """Resolve credentials and return a fresh access token string.

    Args:
        sources: Injected credential sources
        issuer: Token issuer (defaults to KeyFlowClient)
        timeout: Request timeout for the default issuer

    Returns:
        Access token string for one-time use

    Raises:
        KeyFlowError: The specific error of the first failing stage
    """
    if issuer is None:
        issuer = KeyFlowClient(timeout=timeout)
    return setup_key_flow(sources, issuer).get_access_token()
