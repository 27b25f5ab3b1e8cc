"""STACKIT KeyFlow access-token package.

To fetch a short-lived access token:
    from stackit_keyflow.config import load_credential_sources
    from stackit_keyflow.core.keyflow import get_access_token

    sources = load_credential_sources(config)
    token = get_access_token(sources)

To use the ephemeral resource wrapper:
    from stackit_keyflow.core.access_token import AccessTokenEphemeralResource
"""
