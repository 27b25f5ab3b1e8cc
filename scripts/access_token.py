"""Fetch a short-lived STACKIT access token via the key flow.

This module serves as a CLI wrapper around stackit_keyflow.core.keyflow.
Environment variables (STACKIT_SERVICE_ACCOUNT_KEY, ..._PATH, STACKIT_PRIVATE_KEY,
..._PATH) take precedence over the values given here.
"""
from __future__ import annotations
import argparse
import dataclasses
import logging
import os
import sys
from pathlib import Path

SCRIPT_DIR = Path(__file__).parent
PROJECT_ROOT = SCRIPT_DIR.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from stackit_keyflow.config import ProviderConfig, load_credential_sources, load_provider_config
from stackit_keyflow.core.keyflow import KeyFlowError, get_access_token


def build_provider_config(args: argparse.Namespace) -> ProviderConfig:
    """Provider config from --config, with flags overriding file values."""
    config = load_provider_config(args.config) if args.config else ProviderConfig()

    overrides = {}
    if args.service_account_key_path:
        overrides["service_account_key_path"] = args.service_account_key_path
    if args.private_key_path:
        overrides["private_key_path"] = args.private_key_path
    if args.token_endpoint:
        overrides["token_custom_endpoint"] = args.token_endpoint
    return dataclasses.replace(config, **overrides)


def main() -> None:
    """Command-line entry point."""
    parser = argparse.ArgumentParser(description="STACKIT key flow access token helper")
    parser.add_argument("--config", help="YAML provider configuration file")
    parser.add_argument("--service-account-key-path")
    parser.add_argument("--private-key-path")
    parser.add_argument("--token-endpoint", help="Custom token endpoint URL")
    parser.add_argument("--timeout", type=float, default=None, help="Request timeout in seconds")
    parser.add_argument("--verbose", "-v", action="store_true")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        config = build_provider_config(args)
    except (OSError, ValueError) as exc:
        print(f"[access-token] Invalid configuration: {exc}", file=sys.stderr)
        sys.exit(2)

    sources = load_credential_sources(config, os.environ)
    try:
        token = get_access_token(sources, timeout=args.timeout)
    except KeyFlowError as exc:
        print(f"[access-token] {exc.__class__.__name__}: {exc}", file=sys.stderr)
        sys.exit(1)

    print(token)


if __name__ == "__main__":
    main()
