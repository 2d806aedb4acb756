"""MacDir Application Package — MAC-keyed contact directory behind a PIN gate.

Invariants:
    - Package root contains no executable code (import side-effects prohibited)

Design Decisions:
    - Empty __init__.py: explicit imports only, no star exports
"""
