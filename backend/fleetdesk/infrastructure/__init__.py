"""Infrastructure Layer — database, object storage, Document AI, signing and logging.

Invariants:
    - Third-party failures (SQLAlchemy, botocore, httpx, jose) are mapped to FleetDeskError here
    - Clients needing configuration are built lazily, at the request that needs them

Design Decisions:
    - One adapter per external system, each satisfying a Protocol from core/repository_protocols.py
"""
