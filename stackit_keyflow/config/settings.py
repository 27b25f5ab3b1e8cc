"""Settings loader for KeyFlow credential sources.

The process environment is read once, at the call boundary, and copied into a
``CredentialSources`` value. Resolvers only ever see that value, so the
precedence rules can be exercised without touching the real environment.
"""
from __future__ import annotations
import logging
import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Mapping, Optional

import yaml

logger = logging.getLogger(__name__)

# Public endpoint, not a hardcoded credential
DEFAULT_TOKEN_ENDPOINT = "https://service-account.api.stackit.cloud/token"

ENV_SERVICE_ACCOUNT_KEY = "STACKIT_SERVICE_ACCOUNT_KEY"
ENV_SERVICE_ACCOUNT_KEY_PATH = "STACKIT_SERVICE_ACCOUNT_KEY_PATH"
ENV_PRIVATE_KEY = "STACKIT_PRIVATE_KEY"
ENV_PRIVATE_KEY_PATH = "STACKIT_PRIVATE_KEY_PATH"


@dataclass(frozen=True)
class ProviderConfig:
    """Provider-level configuration (the non-environment credential layer)."""
    service_account_key: str = field(default="", repr=False)
    service_account_key_path: str = ""
    private_key: str = field(default="", repr=False)
    private_key_path: str = ""
    token_custom_endpoint: str = ""
    enable_beta_resources: bool = False

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "ProviderConfig":
        """Build a config from a plain mapping (e.g. parsed YAML).

        Null values are treated as unset. Unknown keys and wrongly typed
        values raise ValueError.
        """
        known = {f.name: f for f in fields(cls)}
        unknown = sorted(set(data) - set(known))
        if unknown:
            raise ValueError(f"Unknown provider configuration keys: {', '.join(unknown)}")

        values: dict[str, Any] = {}
        for name, value in data.items():
            if value is None:
                continue
            if name == "enable_beta_resources":
                if not isinstance(value, bool):
                    raise ValueError("enable_beta_resources must be a boolean")
            elif not isinstance(value, str):
                raise ValueError(f"{name} must be a string")
            values[name] = value
        return cls(**values)


def load_provider_config(path: str | os.PathLike[str]) -> ProviderConfig:
    """Load a ``ProviderConfig`` from a YAML file.

    An empty file yields the default config.

    Raises:
        OSError: If the file cannot be read
        ValueError: If the document is not a mapping or has invalid keys
    """
    config_path = Path(path)
    with config_path.open("r", encoding="utf-8") as handle:
        try:
            document = yaml.safe_load(handle)
        except yaml.YAMLError as exc:
            raise ValueError(f"Provider configuration {config_path} is not valid YAML") from exc

    if document is None:
        document = {}
    if not isinstance(document, dict):
        raise ValueError(f"Provider configuration {config_path} must be a mapping")

    logger.debug("Loaded provider configuration from %s", config_path)
    return ProviderConfig.from_mapping(document)


@dataclass(frozen=True)
class CredentialSources:
    """Every credential source value, injected explicitly.

    Literal secrets are kept out of ``repr`` so the value can be logged or
    shown in a traceback without exposing key material.
    """
    env_service_account_key: str = field(default="", repr=False)
    env_service_account_key_path: str = ""
    service_account_key: str = field(default="", repr=False)
    service_account_key_path: str = ""
    env_private_key: str = field(default="", repr=False)
    env_private_key_path: str = ""
    private_key: str = field(default="", repr=False)
    private_key_path: str = ""
    token_endpoint: str = DEFAULT_TOKEN_ENDPOINT


def load_credential_sources(
    config: Optional[ProviderConfig] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> CredentialSources:
    """Snapshot environment and provider config into ``CredentialSources``.

    Args:
        config: Provider configuration (defaults to an empty config)
        environ: Environment mapping (defaults to ``os.environ``)

    Returns:
        CredentialSources carrying both layers
    """
    config = config or ProviderConfig()
    env = os.environ if environ is None else environ

    return CredentialSources(
        env_service_account_key=env.get(ENV_SERVICE_ACCOUNT_KEY, ""),
        env_service_account_key_path=env.get(ENV_SERVICE_ACCOUNT_KEY_PATH, ""),
        service_account_key=config.service_account_key,
        service_account_key_path=config.service_account_key_path,
        env_private_key=env.get(ENV_PRIVATE_KEY, ""),
        env_private_key_path=env.get(ENV_PRIVATE_KEY_PATH, ""),
        private_key=config.private_key,
        private_key_path=config.private_key_path,
        token_endpoint=config.token_custom_endpoint or DEFAULT_TOKEN_ENDPOINT,
    )
