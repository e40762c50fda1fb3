"""API routes for the preventive scheduler."""

import logging

from fastapi import APIRouter, HTTPException

logger = logging.getLogger(__name__)

from pm_scheduler.config import get_settings
from pm_scheduler.events import trigger
from pm_scheduler.schemas.scheduler import (
    AdvancedPlanItem,
    GeneratedTicketItem,
    SchedulerRunResponse,
    SchedulerStatusResponse,
    SkippedPlanItem,
)
from pm_scheduler.services import runner
from pm_scheduler.services.runner import CycleReport

router = APIRouter(prefix="/scheduler", tags=["Scheduler"])


def _to_response(report: CycleReport) -> SchedulerRunResponse:
    result = report.result
    saved = set(report.saved_ticket_ids)
    return SchedulerRunResponse(
        started_at=report.started_at,
        finished_at=report.finished_at,
        generated=[
            GeneratedTicketItem(
                ticket_id=t.id,
                plan_id=t.plan_id,
                asset_id=t.asset_id,
                status=t.status,
                assignee_name=t.assignee_name,
                saved=t.id in saved,
            )
            for t in result.new_tickets
        ],
        advanced_plans=[
            AdvancedPlanItem(
                plan_id=p.id,
                last_execution=p.last_execution,
                next_execution=p.next_execution,
            )
            for p in result.updated_plans
            if p.id not in report.unsaved_plan_ids
        ],
        skipped=[SkippedPlanItem(plan_id=s.plan_id, reason=s.reason) for s in result.skipped],
        failed_plan_ids=result.failed + report.unsaved_plan_ids,
        notified=report.notified,
    )


# ── POST /scheduler/run ─────────────────────────────


@router.post(
    "/run",
    response_model=SchedulerRunResponse,
    summary="Run one scheduler cycle now",
)
async def run_scheduler():
    """Evaluate every plan immediately and return what was generated."""
    try:
        report = await runner.run_cycle()
        return _to_response(report)
    except Exception:
        logger.exception("Manual scheduler run failed")
        raise HTTPException(status_code=500, detail="Internal server error")


# ── POST /scheduler/trigger ─────────────────────────


@router.post(
    "/trigger",
    status_code=202,
    summary="Wake the background scheduler",
)
async def trigger_scheduler():
    """
    Called by database webhooks when plans, assets or technicians change.
    The background loop runs a cycle as soon as it wakes up.
    """
    await trigger.notify()
    return {"status": "accepted"}


# ── GET /scheduler/status ───────────────────────────


@router.get(
    "/status",
    response_model=SchedulerStatusResponse,
    summary="Scheduler configuration and last run",
)
async def scheduler_status():
    settings = get_settings()
    last = runner.get_last_report()
    return SchedulerStatusResponse(
        enabled=settings.SCHEDULER_ENABLED,
        interval_seconds=settings.SCHEDULER_INTERVAL_SECONDS,
        timezone=settings.SCHEDULER_TIMEZONE,
        lock_backend=settings.LOCK_BACKEND,
        auto_assign=settings.AUTO_ASSIGN_ENABLED,
        assignment_policy=settings.ASSIGNMENT_POLICY,
        last_run=_to_response(last) if last else None,
    )
