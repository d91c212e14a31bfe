"""FleetDesk Package — rental desk backend: clients, cars and QR document uploads.

Invariants:
    - Package root contains no executable code (import side-effects prohibited)

Design Decisions:
    - Empty __init__.py: explicit imports only, no star exports
"""
