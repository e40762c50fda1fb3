"""Pydantic schemas for the scheduler endpoints."""

from datetime import datetime

from pydantic import BaseModel, Field


# ── Auxiliary models ────────────────────────────────


class GeneratedTicketItem(BaseModel):
    """A ticket created by the cycle."""
    ticket_id: str
    plan_id: str
    asset_id: str
    status: str = Field(description="open | assigned")
    assignee_name: str | None = None
    saved: bool = Field(description="False when persisting the ticket failed")


class AdvancedPlanItem(BaseModel):
    """A plan whose due date moved forward."""
    plan_id: str
    last_execution: datetime
    next_execution: datetime | None


class SkippedPlanItem(BaseModel):
    plan_id: str
    reason: str = Field(
        description="inactive | manual | not_due | already_claimed | lock_error"
    )


# ── Response: run ───────────────────────────────────


class SchedulerRunResponse(BaseModel):
    """Response for POST /scheduler/run."""
    started_at: datetime
    finished_at: datetime | None
    generated: list[GeneratedTicketItem]
    advanced_plans: list[AdvancedPlanItem]
    skipped: list[SkippedPlanItem]
    failed_plan_ids: list[str] = Field(
        description="Plans whose ticket could not be built or saved"
    )
    notified: int = Field(description="Assignment messages delivered")


# ── Response: status ────────────────────────────────


class SchedulerStatusResponse(BaseModel):
    """Response for GET /scheduler/status."""
    enabled: bool
    interval_seconds: int
    timezone: str
    lock_backend: str
    auto_assign: bool
    assignment_policy: str
    last_run: SchedulerRunResponse | None = None
