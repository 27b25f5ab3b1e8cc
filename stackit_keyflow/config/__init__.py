"""Configuration module for the STACKIT KeyFlow package."""
from .settings import (
    CredentialSources,
    ProviderConfig,
    load_credential_sources,
    load_provider_config,
)

__all__ = [
    "CredentialSources",
    "ProviderConfig",
    "load_credential_sources",
    "load_provider_config",
]
