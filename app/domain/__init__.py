"""
Domain layer containing core business logic and domain services.

Submodules:
- live: Live game API domain logic (identity, envelopes, players, catalog, store).
"""
