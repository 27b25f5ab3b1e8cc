"""Beta feature gate.

Beta resources (such as the ephemeral access token) are only usable when
enabled, either via ``enable_beta_resources`` in the provider configuration
or via the ``STACKIT_TF_ENABLE_BETA_RESOURCES`` environment variable. A valid
environment value always overrides the configuration flag.
"""
from __future__ import annotations
import logging
import os
from typing import Mapping, Optional

from ..config.settings import ProviderConfig

logger = logging.getLogger(__name__)

ENV_ENABLE_BETA_RESOURCES = "STACKIT_TF_ENABLE_BETA_RESOURCES"


class BetaResourcesDisabledError(Exception):
    """A beta resource was used without enabling beta resources."""

    def __init__(self, name: str, kind: str):
        self.name = name
        self.kind = kind
        super().__init__(
            f"The {kind} {name} is in beta and beta resources are disabled. "
            f"Set enable_beta_resources = true in the provider configuration "
            f"or {ENV_ENABLE_BETA_RESOURCES}=true to use it."
        )


def beta_resources_enabled(config: ProviderConfig, environ: Optional[Mapping[str, str]] = None) -> bool:
    """Whether beta resources are enabled.

    Args:
        config: Provider configuration
        environ: Environment mapping (defaults to ``os.environ``)
    """
    env = os.environ if environ is None else environ
    if ENV_ENABLE_BETA_RESOURCES not in env:
        return config.enable_beta_resources

    value = env[ENV_ENABLE_BETA_RESOURCES].strip().lower()
    if value == "true":
        return True
    if value == "false":
        return False

    logger.warning(
        "Invalid value for %s (expected true or false), falling back to enable_beta_resources=%s",
        ENV_ENABLE_BETA_RESOURCES,
        config.enable_beta_resources,
    )
    return config.enable_beta_resources


def check_beta_resources_enabled(
    config: ProviderConfig,
    name: str,
    kind: str,
    environ: Optional[Mapping[str, str]] = None,
) -> None:
    """Raise unless beta resources are enabled; warn when they are.

    Raises:
        BetaResourcesDisabledError: If beta resources are disabled
    """
    if not beta_resources_enabled(config, environ):
        logger.error("Beta %s %s used while beta resources are disabled", kind, name)
        raise BetaResourcesDisabledError(name, kind)

    logger.warning("The %s %s is in beta; its behaviour may change without notice", kind, name)
