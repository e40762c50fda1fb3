"""
One scheduler cycle end to end: snapshot, evaluate, persist, notify.

Usage:
    cd backend
    python -m pm_scheduler.services.runner
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone

import asyncpg

from pm_scheduler.config import get_settings
from pm_scheduler.database import close_pool, ensure_lock_table, get_pool
from pm_scheduler.services.assignment import AssignmentStrategy, get_assignment_strategy
from pm_scheduler.services.locks import get_lock_gateway
from pm_scheduler.services.notifications import notify_assignment
from pm_scheduler.services.repository import fetch_snapshot, save_generation
from pm_scheduler.services.scheduler import SchedulerResult, evaluate

logger = logging.getLogger(__name__)


@dataclass
class CycleReport:
    started_at: datetime
    result: SchedulerResult
    saved_ticket_ids: list[str] = field(default_factory=list)
    unsaved_plan_ids: list[str] = field(default_factory=list)
    notified: int = 0
    finished_at: datetime | None = None


_last_report: CycleReport | None = None
# Kept across cycles so round-robin assignment keeps its place
_strategy: AssignmentStrategy | None = None
_strategy_ready = False


def get_last_report() -> CycleReport | None:
    return _last_report


def _get_strategy() -> AssignmentStrategy | None:
    global _strategy, _strategy_ready
    if not _strategy_ready:
        _strategy = get_assignment_strategy(get_settings())
        _strategy_ready = True
    return _strategy


async def run_cycle(
    now: datetime | None = None, pool: asyncpg.Pool | None = None
) -> CycleReport:
    """Run the scheduler once against the current database snapshot.

    Each generated ticket is saved on its own; a failed save is logged and
    does not stop the rest. The lock for that plan and day stays claimed.
    Notifications are best-effort: a failing notifier never blocks a save.
    """
    global _last_report
    settings = get_settings()
    if pool is None:
        pool = await get_pool()
    now = now or datetime.now(timezone.utc)

    snapshot = await fetch_snapshot(pool)
    result = await evaluate(
        now,
        snapshot.plans,
        snapshot.assets,
        snapshot.technicians,
        lock_gateway=get_lock_gateway(settings, pool),
        strategy=_get_strategy(),
        tz=settings.SCHEDULER_TIMEZONE,
    )
    report = CycleReport(started_at=now, result=result)
    technicians = {t.id: t for t in snapshot.technicians}

    for ticket, plan in zip(result.new_tickets, result.updated_plans):
        try:
            await save_generation(pool, ticket, plan)
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception("Persisting ticket %s for plan %s failed", ticket.id, plan.id)
            report.unsaved_plan_ids.append(plan.id)
            continue
        report.saved_ticket_ids.append(ticket.id)

        technician = technicians.get(ticket.assignee_id) if ticket.assignee_id else None
        if technician:
            try:
                delivery = await notify_assignment(technician, ticket)
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.warning(
                    "Assignment notice for ticket %s failed", ticket.id, exc_info=True
                )
                continue
            if delivery and delivery.success:
                report.notified += 1

    report.finished_at = datetime.now(timezone.utc)
    _last_report = report
    logger.info(
        "Scheduler cycle: %d generated, %d saved, %d skipped, %d failed",
        len(result.new_tickets),
        len(report.saved_ticket_ids),
        len(result.skipped),
        len(result.failed) + len(report.unsaved_plan_ids),
    )
    return report


async def main():
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    print("=" * 50)
    print("PREVENTIVE SCHEDULER - single cycle")
    print("=" * 50)
    try:
        pool = await get_pool()
        await ensure_lock_table(pool)
        report = await run_cycle(pool=pool)
    finally:
        await close_pool()

    print(f"  Tickets generated: {len(report.result.new_tickets)}")
    print(f"  Tickets saved:     {len(report.saved_ticket_ids)}")
    for ticket_id in report.saved_ticket_ids:
        print(f"    [OK] {ticket_id}")
    print(f"  Plans skipped:     {len(report.result.skipped)}")
    for skipped in report.result.skipped:
        print(f"    [--] {skipped.plan_id}: {skipped.reason}")
    if report.result.failed or report.unsaved_plan_ids:
        print(f"  Failed plans:      {report.result.failed + report.unsaved_plan_ids}")


if __name__ == "__main__":
    asyncio.run(main())
