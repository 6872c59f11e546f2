"""API Layer — FastAPI routes, dependencies, response shaping and error handlers.

Invariants:
    - Routes registered explicitly in main.py (no auto-discovery)
    - All endpoints return JSON (or 204 with no body)
"""
