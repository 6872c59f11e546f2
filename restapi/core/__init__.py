"""Core Layer — pure decoding and domain types, no IO, no async.

Invariants:
    - No module in core/ imports from api/ or infrastructure/
    - All functions are pure and deterministic
"""
