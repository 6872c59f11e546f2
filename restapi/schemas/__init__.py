"""Pydantic Schemas — records exchanged with clients and with the cluster service.

Invariants:
    - Domain types from core/ used for enum fields
"""
