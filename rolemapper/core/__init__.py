"""Core reconciliation logic.

Module Structure:
    - models.py     : Group / Role / Realm snapshots and the IdentityStore protocol
    - keycloak/     : Keycloak Admin API client and IdentityStore implementation
    - reconciler.py : Group tree walk and ChangeSet computation
    - report.py     : ChangeSet preview
    - applier.py    : ChangeSet application (roles first, then mappings)

Usage Pattern:
    store = KeycloakIdentityStore(client, realm)
    change_set = build_change_set(store)
    print(render_change_set(change_set))
    apply_change_set(store, change_set, confirmed=True, realm=realm)
"""
