"""Service layer — snapshot reads and generation writes for the scheduler.

Uses asyncpg directly (pool) with raw SQL. JSONB columns come back as
text (no codec is registered on the pool), so they are decoded here.
"""

import json
import logging
from dataclasses import dataclass, field
from decimal import Decimal

import asyncpg
from pydantic import BaseModel, ValidationError

from pm_scheduler.schemas.maintenance import (
    Asset,
    MaintenanceTicket,
    PreventivePlan,
    Technician,
)

logger = logging.getLogger(__name__)

_JSON_COLUMNS = ("asset_ids", "tasks", "skills")


@dataclass
class Snapshot:
    plans: list[PreventivePlan] = field(default_factory=list)
    assets: list[Asset] = field(default_factory=list)
    technicians: list[Technician] = field(default_factory=list)


def _decode_json(data: dict) -> dict:
    for column in _JSON_COLUMNS:
        if isinstance(data.get(column), str):
            data[column] = json.loads(data[column])
    return data


def parse_rows(model: type[BaseModel], rows, kind: str) -> list:
    """Validate rows one by one; a malformed row is logged and dropped."""
    parsed = []
    for row in rows:
        data = dict(row)
        try:
            parsed.append(model.model_validate(_decode_json(data)))
        except (ValidationError, ValueError) as exc:
            logger.warning("Ignoring malformed %s %s: %s", kind, data.get("id"), exc)
    return parsed


async def fetch_snapshot(pool: asyncpg.Pool) -> Snapshot:
    """Load plans, assets and technicians for one scheduler cycle."""
    plan_rows = await pool.fetch("""
        SELECT
            id, name, description, status, auto_generate, asset_ids,
            frequency_type, frequency_value, frequency_unit, tasks,
            estimated_time, last_execution, next_execution, created_at
        FROM preventive_plans
        ORDER BY created_at, id
    """)
    asset_rows = await pool.fetch(
        "SELECT id, name, code, location, status, criticality FROM assets"
    )
    technician_rows = await pool.fetch("""
        SELECT id, name, status, role, email, phone, skills, shift
        FROM technicians
        ORDER BY id
    """)
    return Snapshot(
        plans=parse_rows(PreventivePlan, plan_rows, "plan"),
        assets=parse_rows(Asset, asset_rows, "asset"),
        technicians=parse_rows(Technician, technician_rows, "technician"),
    )


def _jsonb(items: list) -> str:
    return json.dumps(
        [i.model_dump(mode="json") if isinstance(i, BaseModel) else i for i in items]
    )


async def save_generation(
    pool: asyncpg.Pool, ticket: MaintenanceTicket, plan: PreventivePlan
) -> None:
    """Insert the ticket and advance the plan in one transaction."""
    async with pool.acquire() as conn:
        async with conn.transaction():
            await conn.execute(
                """
                INSERT INTO tickets (
                    id, title, description, type, status, urgency, priority,
                    asset_id, plan_id, requester, requester_id, requester_name,
                    assignee_id, assignee_name, checklist, activities,
                    used_parts, time_logs, total_cost, occurrence_date, created_at
                ) VALUES (
                    $1, $2, $3, $4, $5, $6, $7, $8, $9, $10, $11, $12, $13, $14,
                    $15::jsonb, $16::jsonb, $17::jsonb, $18::jsonb, $19, $20, $21
                )
                """,
                ticket.id, ticket.title, ticket.description, ticket.type,
                ticket.status, ticket.urgency, ticket.priority,
                ticket.asset_id, ticket.plan_id, ticket.requester,
                ticket.requester_id, ticket.requester_name,
                ticket.assignee_id, ticket.assignee_name,
                _jsonb(ticket.checklist), _jsonb(ticket.activities),
                _jsonb(ticket.used_parts), _jsonb(ticket.time_logs),
                Decimal(str(ticket.total_cost)),
                ticket.occurrence_date, ticket.created_at,
            )
            await conn.execute(
                """
                UPDATE preventive_plans
                SET last_execution = $1, next_execution = $2
                WHERE id = $3
                """,
                plan.last_execution, plan.next_execution, plan.id,
            )
