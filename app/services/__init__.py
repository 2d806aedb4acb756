"""Services Layer — persistence-backed operations over the domain core.

Invariants:
    - Services own their AsyncSession usage (commit/rollback) and raise MacDirError subclasses
    - No HTTP types cross into services
"""
