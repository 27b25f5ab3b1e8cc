"""Ephemeral access token resource.

Generates a short-lived STACKIT access token (JWT) from service account key
credentials every time it is opened. The token is never stored on the
resource; the caller holds it steady for the duration of one operation.
"""
from __future__ import annotations
import logging
from typing import Any, Mapping, Optional

from ..config.settings import CredentialSources, ProviderConfig, load_credential_sources
from .features import check_beta_resources_enabled
from .keyflow import KeyFlowError, TokenIssuer, get_access_token

logger = logging.getLogger(__name__)

RESOURCE_NAME = "stackit_access_token"
RESOURCE_KIND = "ephemeral_resource"

DESCRIPTION = (
    "Ephemeral resource that generates a short-lived STACKIT access token (JWT) using a service account key. "
    "A new token is generated each time the resource is evaluated, and it remains consistent for the duration "
    "of an operation. If a private key is not explicitly provided, the key embedded in the service account key "
    "is used instead. Access tokens generated from service account keys expire after 60 minutes.\n\n"
    "Service account key credentials must be configured either in the provider configuration or via "
    "environment variables. If any other authentication method is configured, this ephemeral resource "
    "will fail with an error."
)


class AccessTokenEphemeralResource:
    """Ephemeral resource wrapping the key flow pipeline.

    Usage:
        resource = AccessTokenEphemeralResource()
        resource.configure(ProviderConfig(service_account_key_path="sa.json", enable_beta_resources=True))
        result = resource.open()
        result["access_token"]
    """

    def __init__(self, issuer: Optional[TokenIssuer] = None):
        self._issuer = issuer
        self._sources: Optional[CredentialSources] = None

    @staticmethod
    def metadata(provider_type_name: str) -> str:
        """Type name of the resource for the given provider."""
        return f"{provider_type_name}_access_token"

    @staticmethod
    def schema() -> dict[str, Any]:
        return {
            "description": DESCRIPTION,
            "attributes": {
                "access_token": {
                    "description": "JWT access token for STACKIT API authentication.",
                    "type": "string",
                    "computed": True,
                    "sensitive": True,
                },
            },
        }

    def configure(self, provider_config: ProviderConfig, environ: Optional[Mapping[str, str]] = None) -> None:
        """Capture credential sources from provider config and environment.

        Raises:
            BetaResourcesDisabledError: If beta resources are not enabled
        """
        check_beta_resources_enabled(provider_config, RESOURCE_NAME, RESOURCE_KIND, environ)
        # private_key -> private_key and private_key_path -> private_key_path
        self._sources = load_credential_sources(provider_config, environ)

    def open(self) -> dict[str, str]:
        """Generate a fresh access token.

        Returns:
            Result model with the ``access_token`` attribute

        Raises:
            RuntimeError: If the resource was not configured
            KeyFlowError: The specific error of the failing stage
        """
        if self._sources is None:
            raise RuntimeError(f"{RESOURCE_NAME} must be configured before it is opened")

        try:
            access_token = get_access_token(self._sources, issuer=self._issuer)
        except KeyFlowError as exc:
            logger.error("Access token generation failed: %s", exc)
            raise

        return {"access_token": access_token}
