"""Infrastructure Layer — database lifecycle and cross-cutting concerns.

Invariants:
    - Infrastructure never imports domain rules from core/ (errors excepted)
    - Store failures mapped to DatabaseError

Design Decisions:
    - One shared, lazily connected store handle per process
"""
