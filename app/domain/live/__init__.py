"""
Live game API domain logic.

Includes:
- identity: Ticket to player id / token derivation and optional verification.
- envelope: Alias-expanded response envelopes.
- player, catalog: Handler-level services.
- session, store, debug: Session registry, persistence adapters, debug buffer.
"""
