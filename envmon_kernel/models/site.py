"""
Module: envmon_kernel.models.site
Responsibility: ORM persistence for monitored sites (emission sources).
Architecture position: Kernel > Models. May import from db/base.py only.

Sites are soft-deleted: ``is_deleted`` rows are excluded from every
reference snapshot, so measurements can no longer be imported against them.
"""

from sqlalchemy import Boolean, String
from sqlalchemy.orm import Mapped, mapped_column

from envmon_kernel.db.base import Base


class MonitoringSite(Base):
    """A monitored site measurements are recorded against."""

    __tablename__ = "monitoring_sites"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)

    name: Mapped[str] = mapped_column(String(200), nullable=False)

    is_deleted: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    def __repr__(self) -> str:
        return f"<MonitoringSite #{self.id} {self.name!r}>"
