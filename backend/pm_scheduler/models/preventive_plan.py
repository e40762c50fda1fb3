"""SQLAlchemy model for the preventive_plans table (schema reference only)."""

from datetime import datetime, timezone
from sqlalchemy import JSON, Boolean, DateTime, Integer, String, Text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column
from pm_scheduler.models.asset import Base

_JSON = JSON().with_variant(JSONB, "postgresql")


class PreventivePlan(Base):
    __tablename__ = "preventive_plans"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="active")
    auto_generate: Mapped[bool | None] = mapped_column(Boolean)
    asset_ids: Mapped[list] = mapped_column(_JSON, nullable=False, default=list)
    frequency_type: Mapped[str] = mapped_column(String(20), nullable=False, default="time")
    frequency_value: Mapped[int] = mapped_column(Integer, nullable=False)
    frequency_unit: Mapped[str | None] = mapped_column(String(20))
    tasks: Mapped[list] = mapped_column(_JSON, nullable=False, default=list)
    estimated_time: Mapped[int | None] = mapped_column(Integer)  # minutes
    last_execution: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    next_execution: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    def __repr__(self) -> str:
        return f"<PreventivePlan {self.id} {self.name} next={self.next_execution}>"
