"""SQLAlchemy model for the preventive_logs lock table.

One row per (plan, calendar day). Inserting the row is what grants the
right to generate that plan's ticket for the day; the unique key makes a
second insert fail with a uniqueness violation.
"""

from datetime import datetime
from sqlalchemy import DateTime, String, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column
from pm_scheduler.models.asset import Base


class PreventiveLog(Base):
    __tablename__ = "preventive_logs"
    __table_args__ = (
        UniqueConstraint("plan_id", "execution_date", name="uq_preventive_logs_plan_day"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    plan_id: Mapped[str] = mapped_column(String(64), nullable=False)
    execution_date: Mapped[str] = mapped_column(String(10), nullable=False)  # YYYY-MM-DD
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )

    def __repr__(self) -> str:
        return f"<PreventiveLog {self.plan_id} @ {self.execution_date}>"
