"""
Module: envmon_kernel.db.base
Responsibility: Declarative base for all SQLAlchemy ORM models. Provides the
    type annotation map used for consistent column types.
Architecture position: Kernel > DB. Lowest-level import target within the
    kernel; MUST NOT import from models/, services/ or domain/.

Timestamps:
    Measurement timestamps are naive (the spreadsheet format has no zone),
    so ``datetime`` maps to ``DateTime(timezone=False)``. Columns that record
    system instants (audit ``occurred_at``) declare ``timezone=True``
    explicitly.
"""

from datetime import datetime
from typing import ClassVar

from sqlalchemy import BigInteger, DateTime, Integer, String
from sqlalchemy.orm import DeclarativeBase

# SQLite only autoincrements INTEGER PRIMARY KEY columns.
BigIntegerPK = BigInteger().with_variant(Integer(), "sqlite")


class Base(DeclarativeBase):
    """
    Declarative base for all models.

    Guarantees:
        - int maps to BigInteger (INTEGER on SQLite).
        - str maps to String(255) unless a column narrows it.
        - datetime maps to naive DateTime.
    """

    type_annotation_map: ClassVar[dict] = {
        int: BigIntegerPK,
        str: String(255),
        datetime: DateTime(timezone=False),
    }
