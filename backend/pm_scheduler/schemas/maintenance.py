"""Pydantic models for the records the scheduler reads and produces."""

from datetime import datetime, timezone
from typing import Literal

from pydantic import BaseModel, Field, field_validator


def _as_utc(value: datetime | None) -> datetime | None:
    """Naive timestamps coming from the store are read as UTC."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


# ── Inputs (snapshot) ───────────────────────────────


class Asset(BaseModel):
    """A piece of equipment. The scheduler only reads id and name."""
    id: str
    name: str
    code: str | None = None
    location: str | None = None
    status: str = "operational"
    criticality: str = "medium"


class Technician(BaseModel):
    """A maintenance worker eligible for auto-assignment when active."""
    id: str
    name: str
    status: Literal["active", "inactive", "on-leave"] = "active"
    role: str | None = None
    email: str | None = None
    phone: str | None = None
    skills: list[str] = Field(default_factory=list)
    shift: str | None = None


class PlanTask(BaseModel):
    """A richer task entry; only the text ends up in the checklist."""
    text: str
    category: str | None = None


class PreventivePlan(BaseModel):
    """A recurring maintenance definition."""
    id: str
    name: str
    description: str = ""
    status: Literal["active", "paused"] = "active"
    auto_generate: bool | None = Field(
        default=None, description="False = manual-only plan"
    )
    asset_ids: list[str] = Field(default_factory=list)
    frequency_type: Literal["time", "usage"] = "time"
    frequency_value: int = 0
    # Any string is accepted; only days | months | years advance the due date
    frequency_unit: str | None = None
    tasks: list[str | PlanTask] = Field(default_factory=list)
    estimated_time: int | None = Field(default=None, description="Minutes")
    last_execution: datetime | None = None
    next_execution: datetime | None = Field(
        default=None, description="Authoritative due date; missing = due now"
    )
    created_at: datetime | None = None

    @field_validator("last_execution", "next_execution", "created_at")
    @classmethod
    def utc_timestamps(cls, value: datetime | None) -> datetime | None:
        return _as_utc(value)


# ── Generated ticket ────────────────────────────────


class ChecklistItem(BaseModel):
    id: str
    text: str
    checked: bool = False
    category: Literal["safety", "execution", "verification"] = "execution"
    notes: str | None = None


class TicketActivity(BaseModel):
    id: str
    user_id: str
    user_name: str
    action: str
    timestamp: datetime
    type: Literal["comment", "status_change", "part_usage", "time_log"] = "comment"


class MaintenanceTicket(BaseModel):
    """A work order. Generated ones start open or assigned."""
    id: str
    title: str
    description: str
    type: Literal["electrical", "mechanical", "hydraulic", "purchase", "other"] = "other"
    status: Literal[
        "open", "analyzing", "assigned", "in-progress", "waiting-parts", "done", "cancelled"
    ] = "open"
    urgency: Literal["low", "medium", "high", "critical"] = "medium"
    priority: Literal["low", "medium", "high", "critical"] = "medium"
    asset_id: str
    plan_id: str | None = None
    requester: str
    requester_id: str | None = None
    requester_name: str | None = None
    assignee_id: str | None = None
    assignee_name: str | None = None
    created_at: datetime
    occurrence_date: datetime
    checklist: list[ChecklistItem] = Field(default_factory=list)
    activities: list[TicketActivity] = Field(default_factory=list)
    used_parts: list[dict] = Field(default_factory=list)
    time_logs: list[dict] = Field(default_factory=list)
    total_cost: float = 0
