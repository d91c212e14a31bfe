"""Pydantic Schemas — request validation for the dashboard endpoints.

Invariants:
    - Schemas validate at the system boundary; invalid bodies become 400 VALIDATION_ERROR

Design Decisions:
    - Separate from models: schemas are API contracts, models are persistence
"""
