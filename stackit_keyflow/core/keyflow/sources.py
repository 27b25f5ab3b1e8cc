"""Layered resolution of service account key and private key material.

Both values follow the same precedence, first non-empty source wins:

1. literal value from the environment
2. file path from the environment
3. literal value from provider configuration
4. file path from provider configuration

The private key has a fifth, lowest-priority fallback: the key embedded in
the service account key's credentials block. Sources are never merged.
"""
from __future__ import annotations
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from ...config.settings import CredentialSources
from .exceptions import CredentialSourceError, MissingCredentialError, MissingPrivateKeyError
from .key_material import KeyMaterial

logger = logging.getLogger(__name__)

ORIGIN_ENV = "env"
ORIGIN_ENV_PATH = "env_path"
ORIGIN_CONFIG = "config"
ORIGIN_CONFIG_PATH = "config_path"
ORIGIN_SERVICE_ACCOUNT_KEY = "service_account_key"


@dataclass(frozen=True)
class ResolvedSource:
    """Raw bytes from the one source that won, plus its origin label."""
    data: bytes = field(repr=False)
    origin: str


@dataclass(frozen=True)
class PrivateKeyMaterial:
    """PEM-encoded private key. Never logged, never persisted."""
    pem: bytes = field(repr=False)
    origin: str


def _encode_literal(value: str) -> bytes:
    # Undecodable environment bytes arrive as lone surrogates.
    try:
        return value.encode("utf-8", "surrogateescape")
    except UnicodeEncodeError:
        return value.encode("utf-8", "surrogatepass")


def _read_source_file(path: str, origin: str) -> bytes:
    try:
        return Path(path).read_bytes()
    except (OSError, ValueError) as exc:
        # ValueError: path contains a NUL byte
        reason = getattr(exc, "strerror", None) or str(exc) or exc.__class__.__name__
        logger.error("Failed to read credential file (%s) %s: %s", origin, path, reason)
        raise CredentialSourceError(origin, path, reason) from exc


def resolve_layered_source(
    env_value: str,
    env_path: str,
    config_value: str,
    config_path: str,
) -> Optional[ResolvedSource]:
    """Pick the first non-empty of the four layered sources.

    Returns:
        ResolvedSource, or None when no source is set

    Raises:
        CredentialSourceError: If the winning source is a file that cannot be read
            or whose path is not a valid file name
    """
    if env_value:
        return ResolvedSource(_encode_literal(env_value), ORIGIN_ENV)
    if env_path:
        return ResolvedSource(_read_source_file(env_path, ORIGIN_ENV_PATH), ORIGIN_ENV_PATH)
    if config_value:
        return ResolvedSource(_encode_literal(config_value), ORIGIN_CONFIG)
    if config_path:
        return ResolvedSource(_read_source_file(config_path, ORIGIN_CONFIG_PATH), ORIGIN_CONFIG_PATH)
    return None


def resolve_service_account_key(sources: CredentialSources) -> ResolvedSource:
    """Resolve raw service account key bytes.

    Raises:
        MissingCredentialError: If none of the four sources is set
        CredentialSourceError: If the selected key file cannot be read
    """
    resolved = resolve_layered_source(
        sources.env_service_account_key,
        sources.env_service_account_key_path,
        sources.service_account_key,
        sources.service_account_key_path,
    )
    if resolved is None:
        raise MissingCredentialError(
            "Missing service account key: neither STACKIT_SERVICE_ACCOUNT_KEY, "
            "STACKIT_SERVICE_ACCOUNT_KEY_PATH, service_account_key nor "
            "service_account_key_path were provided"
        )
    logger.debug("Resolved service account key from %s", resolved.origin)
    return resolved


def resolve_private_key(sources: CredentialSources, key_material: KeyMaterial) -> PrivateKeyMaterial:
    """Resolve the signing private key.

    PEM structure is not validated here; that happens when signing.

    Raises:
        MissingPrivateKeyError: If no source yields a key
        CredentialSourceError: If the selected key file cannot be read
    """
    resolved = resolve_layered_source(
        sources.env_private_key,
        sources.env_private_key_path,
        sources.private_key,
        sources.private_key_path,
    )
    if resolved is not None:
        logger.debug("Resolved private key from %s", resolved.origin)
        return PrivateKeyMaterial(resolved.data, resolved.origin)

    embedded = key_material.embedded_private_key
    if embedded:
        logger.debug("Resolved private key from %s", ORIGIN_SERVICE_ACCOUNT_KEY)
        return PrivateKeyMaterial(_encode_literal(embedded), ORIGIN_SERVICE_ACCOUNT_KEY)

    raise MissingPrivateKeyError(
        "Missing private key: no private key set via STACKIT_PRIVATE_KEY, "
        "STACKIT_PRIVATE_KEY_PATH, private_key, private_key_path or the "
        "service account key credentials"
    )
