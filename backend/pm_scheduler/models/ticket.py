"""SQLAlchemy model for the tickets table (schema reference only)."""

from datetime import datetime
from sqlalchemy import JSON, DateTime, Numeric, String, Text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column
from pm_scheduler.models.asset import Base

_JSON = JSON().with_variant(JSONB, "postgresql")


class Ticket(Base):
    __tablename__ = "tickets"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    type: Mapped[str] = mapped_column(String(20), nullable=False, default="other")
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="open")
    urgency: Mapped[str] = mapped_column(String(20), nullable=False, default="medium")
    priority: Mapped[str] = mapped_column(String(20), nullable=False, default="medium")
    asset_id: Mapped[str] = mapped_column(String(64), nullable=False)
    plan_id: Mapped[str | None] = mapped_column(String(64))
    requester: Mapped[str] = mapped_column(String(255), nullable=False)
    requester_id: Mapped[str | None] = mapped_column(String(64))
    requester_name: Mapped[str | None] = mapped_column(String(255))
    assignee_id: Mapped[str | None] = mapped_column(String(64))
    assignee_name: Mapped[str | None] = mapped_column(String(255))
    checklist: Mapped[list] = mapped_column(_JSON, nullable=False, default=list)
    activities: Mapped[list] = mapped_column(_JSON, nullable=False, default=list)
    used_parts: Mapped[list] = mapped_column(_JSON, nullable=False, default=list)
    time_logs: Mapped[list] = mapped_column(_JSON, nullable=False, default=list)
    total_cost: Mapped[float] = mapped_column(Numeric(12, 2), nullable=False, default=0)
    occurrence_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    def __repr__(self) -> str:
        return f"<Ticket {self.id} {self.title} status={self.status}>"
