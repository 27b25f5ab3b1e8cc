"""Core Business Logic Module

Module Structure:
    - keyflow/          : Credential resolution and JWT-bearer token exchange
    - features.py       : Beta feature gate
    - access_token.py   : Ephemeral access token resource

Usage Pattern:
    Import explicitly when needed:
        from stackit_keyflow.core.keyflow import get_access_token, KeyFlowError
        from stackit_keyflow.core.features import check_beta_resources_enabled
        from stackit_keyflow.core.access_token import AccessTokenEphemeralResource
"""
