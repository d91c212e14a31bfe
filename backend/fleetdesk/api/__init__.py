"""API Layer — FastAPI routes, dependency providers and error handlers.

Invariants:
    - Routes registered explicitly in main.py (no auto-discovery)
    - All endpoints return JSON; errors use the flat {"error", "code"} body

Design Decisions:
    - Thin routes delegate to services (functional core, imperative shell)
"""
