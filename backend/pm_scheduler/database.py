import logging

import asyncpg
from postgrest import AsyncPostgrestClient
from sqlalchemy.dialects import postgresql
from sqlalchemy.schema import CreateTable

from pm_scheduler.config import get_settings
from pm_scheduler.models.asset import Base
from pm_scheduler.models.preventive_log import PreventiveLog
# Register the remaining tables on Base.metadata
from pm_scheduler.models import preventive_plan, technician, ticket  # noqa: F401

logger = logging.getLogger(__name__)

# ---------- Supabase PostgREST client ----------

_postgrest_client: AsyncPostgrestClient | None = None


def get_postgrest() -> AsyncPostgrestClient:
    """Get or create the PostgREST client (uses Supabase REST API with service_role key)."""
    global _postgrest_client
    if _postgrest_client is None:
        settings = get_settings()
        _postgrest_client = AsyncPostgrestClient(
            f"{settings.SUPABASE_URL}/rest/v1",
            headers={
                "apikey": settings.SUPABASE_SERVICE_KEY,
                "Authorization": f"Bearer {settings.SUPABASE_SERVICE_KEY}",
            },
        )
    return _postgrest_client


# ---------- Direct asyncpg connection pool ----------

_pool: asyncpg.Pool | None = None


def _get_raw_pg_url() -> str:
    """Convert SQLAlchemy-style URL to plain postgres:// for asyncpg."""
    settings = get_settings()
    url = settings.SUPABASE_DB_URL
    # asyncpg needs postgresql:// not postgresql+asyncpg://
    return url.replace("postgresql+asyncpg://", "postgresql://")


async def get_pool() -> asyncpg.Pool:
    """Get or create the asyncpg connection pool."""
    global _pool
    if _pool is None:
        _pool = await asyncpg.create_pool(
            _get_raw_pg_url(),
            min_size=1,
            max_size=5,  # Stay within Supabase free-tier connection limits
            # Supabase uses PgBouncer in transaction mode, which does not
            # support prepared statements. Disable the statement cache.
            statement_cache_size=0,
        )
    return _pool


async def close_pool() -> None:
    """Close the asyncpg pool (call on app shutdown)."""
    global _pool
    if _pool is not None:
        await _pool.close()
        _pool = None


# ---------- Schema DDL (compiled from the SQLAlchemy models) ----------


def table_ddl(table) -> str:
    """CREATE TABLE IF NOT EXISTS statement for ``table``, compiled for PostgreSQL."""
    stmt = CreateTable(table, if_not_exists=True)
    return str(stmt.compile(dialect=postgresql.dialect())).strip()


def lock_table_ddl() -> str:
    return table_ddl(PreventiveLog.__table__)


async def ensure_lock_table(pool: asyncpg.Pool) -> None:
    """Create the execution lock table (and its unique key) if missing."""
    await pool.execute(lock_table_ddl())
    logger.info("Lock table preventive_logs ready")


async def ensure_schema(conn) -> None:
    """Create every table the scheduler reads or writes, if missing."""
    for table in Base.metadata.sorted_tables:
        await conn.execute(table_ddl(table))
