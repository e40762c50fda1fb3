"""SQLAlchemy model for the technicians table (schema reference only)."""

from sqlalchemy import JSON, String
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column
from pm_scheduler.models.asset import Base


class Technician(Base):
    __tablename__ = "technicians"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str | None] = mapped_column(String(100))
    email: Mapped[str | None] = mapped_column(String(255))
    phone: Mapped[str | None] = mapped_column(String(50))
    # active | inactive | on-leave
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="active")
    skills: Mapped[list] = mapped_column(
        JSON().with_variant(JSONB, "postgresql"), nullable=False, default=list
    )
    shift: Mapped[str | None] = mapped_column(String(20))

    def __repr__(self) -> str:
        return f"<Technician {self.name} ({self.status})>"
