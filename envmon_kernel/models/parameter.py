"""
Module: envmon_kernel.models.parameter
Responsibility: ORM persistence for measured parameters.
Architecture position: Kernel > Models. May import from db/base.py and the
    pure domain helpers only.

``code`` is always stored trimmed and upper-cased, the form import rows
reference. ``category`` is always stored normalized ("air" or "water");
anything else written to it becomes "water".
"""

from sqlalchemy import Boolean, Float, String
from sqlalchemy.orm import Mapped, mapped_column, validates

from envmon_kernel.db.base import Base
from envmon_kernel.domain.reference_data import (
    DEFAULT_PARAMETER_CATEGORY,
    normalize_parameter_category,
    normalize_parameter_code,
)


class Parameter(Base):
    """A measured quantity (e.g. PM10, COD) with its default unit."""

    __tablename__ = "parameters"

    code: Mapped[str] = mapped_column(String(50), primary_key=True)

    name: Mapped[str] = mapped_column(String(100), nullable=False)

    unit: Mapped[str | None] = mapped_column(String(50), nullable=True)

    standard_value: Mapped[float | None] = mapped_column(Float, nullable=True)

    description: Mapped[str | None] = mapped_column(String(255), nullable=True)

    category: Mapped[str] = mapped_column(
        String(50),
        default=DEFAULT_PARAMETER_CATEGORY,
        nullable=False,
    )

    is_deleted: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    @validates("code")
    def _normalize_code(self, key: str, value: str) -> str:
        return normalize_parameter_code(value)

    @validates("category")
    def _normalize_category(self, key: str, value: str | None) -> str:
        return normalize_parameter_category(value)

    def __repr__(self) -> str:
        return f"<Parameter {self.code} ({self.category})>"
