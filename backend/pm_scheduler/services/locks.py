"""Execution lock gateways.

A claim is an INSERT of the row (plan_id, execution_date) into
preventive_logs. The table's unique key is the only serialization point
between scheduler instances, so every gateway here inserts and reads the
outcome; none of them checks for the row first.
"""

import asyncio
import logging
from enum import Enum
from typing import Protocol

import asyncpg
from postgrest import AsyncPostgrestClient
from postgrest.exceptions import APIError

from pm_scheduler.config import Settings
from pm_scheduler.database import get_postgrest
from pm_scheduler.models.preventive_log import PreventiveLog

logger = logging.getLogger(__name__)

LOCK_TABLE = PreventiveLog.__tablename__
UNIQUE_VIOLATION = "23505"


class ClaimResult(str, Enum):
    OK = "ok"
    ALREADY_CLAIMED = "already_claimed"
    ERROR = "error"


class LockGateway(Protocol):
    async def claim(self, plan_id: str, day_key: str) -> ClaimResult: ...


class PostgresLockGateway:
    """Claims through a direct asyncpg connection."""

    def __init__(self, pool: asyncpg.Pool):
        self._pool = pool

    async def claim(self, plan_id: str, day_key: str) -> ClaimResult:
        try:
            await self._pool.execute(
                f"INSERT INTO {LOCK_TABLE} (plan_id, execution_date) VALUES ($1, $2)",
                plan_id,
                day_key,
            )
        except asyncpg.UniqueViolationError:
            return ClaimResult.ALREADY_CLAIMED
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            logger.warning("Lock claim failed for plan %s on %s: %s", plan_id, day_key, exc)
            return ClaimResult.ERROR
        return ClaimResult.OK


class PostgrestLockGateway:
    """Claims through the Supabase REST API (PostgREST)."""

    def __init__(self, client: AsyncPostgrestClient):
        self._client = client

    async def claim(self, plan_id: str, day_key: str) -> ClaimResult:
        try:
            await self._client.from_(LOCK_TABLE).insert(
                {"plan_id": plan_id, "execution_date": day_key}
            ).execute()
        except APIError as exc:
            if exc.code == UNIQUE_VIOLATION:
                return ClaimResult.ALREADY_CLAIMED
            logger.warning("Lock claim rejected for plan %s on %s: %s", plan_id, day_key, exc.message)
            return ClaimResult.ERROR
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            logger.warning("Lock claim failed for plan %s on %s: %s", plan_id, day_key, exc)
            return ClaimResult.ERROR
        return ClaimResult.OK


class MemoryLockGateway:
    """Process-local claims. Only safe when a single scheduler instance runs."""

    def __init__(self):
        self.claims: set[tuple[str, str]] = set()

    async def claim(self, plan_id: str, day_key: str) -> ClaimResult:
        key = (plan_id, day_key)
        if key in self.claims:
            return ClaimResult.ALREADY_CLAIMED
        self.claims.add(key)
        return ClaimResult.OK


def get_lock_gateway(
    settings: Settings,
    pool: asyncpg.Pool,
    postgrest_client: AsyncPostgrestClient | None = None,
) -> LockGateway:
    """Build the configured gateway (LOCK_BACKEND)."""
    if settings.LOCK_BACKEND == "postgrest":
        if postgrest_client is None:
            postgrest_client = get_postgrest()
        return PostgrestLockGateway(postgrest_client)
    return PostgresLockGateway(pool)
