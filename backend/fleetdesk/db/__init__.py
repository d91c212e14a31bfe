"""Database Base — SQLAlchemy declarative Base shared by every model.

Invariants:
    - All sessions are async (AsyncSession), created by infrastructure/database.py

Design Decisions:
    - asyncpg driver for PostgreSQL; aiosqlite for the test database
"""
