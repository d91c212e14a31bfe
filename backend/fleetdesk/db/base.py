"""SQLAlchemy Declarative Base — shared base class for all ORM models.

Invariants:
    - All models inherit from Base
    - Base is the single source of truth for table metadata
    - as_dict() returns JSON-ready values (UUID/date/datetime as strings)

Design Decisions:
    - Separate file for Base: avoids circular imports between models
    - Rows leave the repository layer as snake_case dicts, the same shape the
      dashboard reads from the hosted database
"""

import uuid
from datetime import date, datetime

from sqlalchemy.orm import DeclarativeBase


def _json_value(value):
    if isinstance(value, uuid.UUID):
        return str(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return value


class Base(DeclarativeBase):
    """Base class for all FleetDesk ORM models."""

    def as_dict(self) -> dict:
        return {
            column.key: _json_value(getattr(self, column.key))
            for column in self.__mapper__.column_attrs
        }
