"""Keycloak group/role mapper package.

To reconcile a realm from code:
    from rolemapper.core.keycloak import KeycloakClient, KeycloakIdentityStore
    from rolemapper.core.reconciler import build_change_set

The command-line entry point lives in scripts/mapper.py.
"""
