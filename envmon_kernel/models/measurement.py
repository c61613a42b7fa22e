"""
Module: envmon_kernel.models.measurement
Responsibility: ORM persistence for measurement results.
Architecture position: Kernel > Models. May import from db/base.py only.

All timestamps on this table are naive. They are stored exactly as read
from the spreadsheet (or stamped from the UTC wall clock) with no zone
conversion.
"""

from datetime import datetime

from sqlalchemy import Boolean, DateTime, Float, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from envmon_kernel.db.base import Base


class MeasurementResult(Base):
    """One measured value of one parameter at one site and instant."""

    __tablename__ = "measurement_results"

    __table_args__ = (
        Index("ix_measurement_site_date", "site_id", "measurement_date"),
        Index("ix_measurement_parameter", "parameter_code"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)

    site_id: Mapped[int] = mapped_column(
        ForeignKey("monitoring_sites.id"),
        nullable=False,
    )

    parameter_code: Mapped[str] = mapped_column(
        String(50),
        ForeignKey("parameters.code"),
        nullable=False,
    )

    measurement_date: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False)

    value: Mapped[float] = mapped_column(Float, nullable=False)

    unit: Mapped[str | None] = mapped_column(String(50), nullable=True)

    entry_date: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False)

    remark: Mapped[str | None] = mapped_column(Text, nullable=True)

    is_approved: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    approved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=False), nullable=True)

    def __repr__(self) -> str:
        return (
            f"<MeasurementResult #{self.id} site={self.site_id} "
            f"{self.parameter_code}={self.value}>"
        )
