"""FastAPI application entry point."""

import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from pm_scheduler.config import get_settings
from pm_scheduler.database import close_pool, ensure_lock_table, get_pool
from pm_scheduler.events import trigger
from pm_scheduler.services import runner

logger = logging.getLogger("pm_scheduler.loop")

# ── Background task: one scheduler cycle per interval, or sooner when triggered ──

_scheduler_task: asyncio.Task | None = None


async def _scheduler_loop(interval_seconds: int):
    """Infinite loop that runs the preventive scheduler."""
    while True:
        try:
            report = await runner.run_cycle()
            logger.info(
                "Cycle done: %d tickets saved, %d plans skipped",
                len(report.saved_ticket_ids),
                len(report.result.skipped),
            )
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception("Scheduler cycle failed")

        if await trigger.wait(timeout=interval_seconds):
            logger.info("Scheduler woken up by a data-change trigger")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup / shutdown lifecycle."""
    global _scheduler_task
    settings = get_settings()
    if settings.SCHEDULER_ENABLED:
        try:
            await ensure_lock_table(await get_pool())
        except Exception:
            logger.exception("Could not ensure the lock table; cycles will fail closed")
        _scheduler_task = asyncio.create_task(
            _scheduler_loop(settings.SCHEDULER_INTERVAL_SECONDS)
        )
        logger.info(
            "Background scheduler started (every %ds, tz=%s)",
            settings.SCHEDULER_INTERVAL_SECONDS,
            settings.SCHEDULER_TIMEZONE,
        )
    yield
    # Shutdown: cancel the loop and close the pool
    if _scheduler_task:
        _scheduler_task.cancel()
        try:
            await _scheduler_task
        except asyncio.CancelledError:
            pass
        _scheduler_task = None
    await close_pool()


settings = get_settings()

app = FastAPI(
    title=settings.APP_NAME,
    version="0.1.0",
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health")
async def health_check():
    return {"status": "ok"}


# ── API routers ──
from pm_scheduler.api.scheduler import router as scheduler_router

app.include_router(scheduler_router, prefix="/api/v1")
