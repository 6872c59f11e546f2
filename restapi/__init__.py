"""Cluster REST API — HTTP translation layer in front of a content-pinning cluster.

Invariants:
    - Package root contains no executable code (import side-effects prohibited)
"""
