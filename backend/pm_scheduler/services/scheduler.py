"""Preventive maintenance scheduler.

Given a snapshot of plans, assets and technicians plus the current time,
decides which plans are due, claims the day's execution lock for each,
and builds the resulting tickets and advanced plans. Nothing here writes
to the store except the lock claim; the caller persists the output.
"""

import asyncio
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Sequence
from zoneinfo import ZoneInfo

from dateutil.relativedelta import relativedelta

from pm_scheduler.schemas.maintenance import (
    Asset,
    ChecklistItem,
    MaintenanceTicket,
    PlanTask,
    PreventivePlan,
    Technician,
    TicketActivity,
)
from pm_scheduler.services.assignment import AssignmentStrategy, RandomAssignment
from pm_scheduler.services.locks import ClaimResult, LockGateway

logger = logging.getLogger(__name__)

TITLE_PREFIX = "[Preventiva] "
UNKNOWN_ASSET_ID = "unknown"
SYSTEM_USER_ID = "system"
SYSTEM_USER_NAME = "System Scheduler"

# Also the relativedelta keywords used to advance the due date
RECURRENCE_UNITS = ("days", "months", "years")

_DEFAULT_STRATEGY = object()


@dataclass
class SkippedPlan:
    plan_id: str
    reason: str  # inactive | manual | not_due | already_claimed | lock_error


@dataclass
class SchedulerResult:
    """Tickets and advanced plans, aligned 1:1, plus what was left out."""
    new_tickets: list[MaintenanceTicket] = field(default_factory=list)
    updated_plans: list[PreventivePlan] = field(default_factory=list)
    skipped: list[SkippedPlan] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)


def _aware(value: datetime) -> datetime:
    return value if value.tzinfo is not None else value.replace(tzinfo=timezone.utc)


def day_key(now: datetime, tz: str = "UTC") -> str:
    """Calendar day of ``now`` in the reference timezone, as YYYY-MM-DD."""
    return _aware(now).astimezone(ZoneInfo(tz)).date().isoformat()


def advance_due_date(plan: PreventivePlan, next_due: datetime) -> datetime:
    """Next due date, counted from the previous due date rather than from now.

    Only time-based plans in days, months or years move; anything else
    keeps ``next_due`` as is.
    """
    unit = plan.frequency_unit
    if plan.frequency_type != "time" or unit not in RECURRENCE_UNITS:
        return next_due
    return next_due + relativedelta(**{unit: plan.frequency_value})


def _task_text(task: str | PlanTask) -> str:
    return task if isinstance(task, str) else task.text


def build_checklist(plan: PreventivePlan) -> list[ChecklistItem]:
    suffix = uuid.uuid4().hex[:8]
    return [
        ChecklistItem(
            id=f"auto-chk-{plan.id}-{i}-{suffix}",
            text=_task_text(task),
            checked=False,
            category="execution",
        )
        for i, task in enumerate(plan.tasks)
    ]


def _system_activity(action: str, now: datetime) -> TicketActivity:
    return TicketActivity(
        id=f"act-{uuid.uuid4().hex[:12]}",
        user_id=SYSTEM_USER_ID,
        user_name=SYSTEM_USER_NAME,
        action=action,
        timestamp=now,
        type="status_change",
    )


def build_ticket(
    plan: PreventivePlan,
    asset: Asset | None,
    technician: Technician | None,
    now: datetime,
    day: str | None = None,
) -> MaintenanceTicket:
    """Work order for one due cycle of ``plan``.

    ``day`` is the claimed reference day (YYYY-MM-DD) and dates the id;
    it defaults to the UTC day of ``now``.
    """
    day = day or day_key(now)
    asset_name = asset.name if asset else "N/A"
    activities = [
        _system_activity(
            "Ticket gerado automaticamente por vencimento de plano preventivo.", now
        )
    ]
    if technician:
        activities.append(
            _system_activity(f"Atribuição Automática para: {technician.name}", now)
        )

    return MaintenanceTicket(
        id=f"TCK-AUTO-{day.replace('-', '')}-{uuid.uuid4().hex[:10].upper()}",
        title=f"{TITLE_PREFIX}{plan.name}",
        description=(
            f"ORDEM AUTOMÁTICA\n\nEquipamento: {asset_name}\n"
            f"Plano: {plan.name}\n\n{plan.description or ''}"
        ),
        type="other",
        status="assigned" if technician else "open",
        urgency="medium",
        priority="medium",
        asset_id=plan.asset_ids[0] if plan.asset_ids else UNKNOWN_ASSET_ID,
        plan_id=plan.id,
        requester=SYSTEM_USER_NAME,
        requester_id=SYSTEM_USER_ID,
        requester_name="Agendador Automático",
        assignee_id=technician.id if technician else None,
        assignee_name=technician.name if technician else None,
        created_at=now,
        occurrence_date=now,
        checklist=build_checklist(plan),
        activities=activities,
        used_parts=[],
        time_logs=[],
        total_cost=0,
    )


def _skip_reason(plan: PreventivePlan, now: datetime) -> str | None:
    if plan.status != "active":
        return "inactive"
    if plan.auto_generate is False:
        return "manual"
    next_due = _aware(plan.next_execution) if plan.next_execution else now
    if now < next_due:
        return "not_due"
    return None


async def _claim(lock_gateway: LockGateway, plan_id: str, key: str) -> ClaimResult:
    # Gateways report store errors as ERROR; one that raises is treated the same
    try:
        return await lock_gateway.claim(plan_id, key)
    except asyncio.CancelledError:
        raise
    except Exception:
        logger.exception("Lock gateway raised for plan %s on %s", plan_id, key)
        return ClaimResult.ERROR


async def evaluate(
    now: datetime,
    plans: Sequence[PreventivePlan],
    assets: Sequence[Asset],
    technicians: Sequence[Technician],
    lock_gateway: LockGateway,
    strategy: AssignmentStrategy | None = _DEFAULT_STRATEGY,
    tz: str = "UTC",
) -> SchedulerResult:
    """Generate tickets for every active, due plan whose lock we win.

    Plans are handled in input order. A lost or failed claim skips the plan
    for this cycle (fail-closed). ``strategy=None`` turns auto-assignment off.
    """
    if strategy is _DEFAULT_STRATEGY:
        strategy = RandomAssignment()
    now = _aware(now)
    key = day_key(now, tz)
    assets_by_id = {a.id: a for a in assets}
    result = SchedulerResult()

    for plan in plans:
        reason = _skip_reason(plan, now)
        if reason:
            result.skipped.append(SkippedPlan(plan.id, reason))
            continue

        claim = await _claim(lock_gateway, plan.id, key)
        if claim is not ClaimResult.OK:
            logger.warning(
                "[Scheduler] Skipping plan %s (%s) for %s: %s",
                plan.id, plan.name, key, claim.value,
            )
            result.skipped.append(
                SkippedPlan(
                    plan.id,
                    "already_claimed" if claim is ClaimResult.ALREADY_CLAIMED else "lock_error",
                )
            )
            continue

        try:
            next_due = _aware(plan.next_execution) if plan.next_execution else now
            asset = assets_by_id.get(plan.asset_ids[0]) if plan.asset_ids else None
            technician = strategy.select(asset, technicians) if strategy else None
            ticket = build_ticket(plan, asset, technician, now, day=key)
            updated = plan.model_copy(
                update={
                    "last_execution": now,
                    "next_execution": advance_due_date(plan, next_due),
                }
            )
        except Exception:
            # Lock already taken: this plan's cycle is lost for today
            logger.exception("Ticket generation failed for plan %s after claiming %s", plan.id, key)
            result.failed.append(plan.id)
            continue

        result.new_tickets.append(ticket)
        result.updated_plans.append(updated)
        logger.info(
            "[Scheduler] Plan %s generated %s (%s), next due %s",
            plan.id, ticket.id, ticket.status, updated.next_execution.isoformat(),
        )

    return result
