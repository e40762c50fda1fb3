"""
Tests for the HTTP API and the background trigger.
"""

import asyncio
from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from pm_scheduler.events import SchedulerTrigger
from pm_scheduler.main import app
from pm_scheduler.services import runner
from pm_scheduler.services.locks import MemoryLockGateway
from pm_scheduler.services.runner import CycleReport
from pm_scheduler.services.scheduler import evaluate
from pm_scheduler.seed import ASSETS, TECHNICIANS, build_demo_plans


@pytest.fixture
def client():
    # No context manager: the lifespan (database + background loop) stays off
    return TestClient(app)


@pytest.fixture
def demo_report(now):
    plans = build_demo_plans(now)
    result = asyncio.run(
        evaluate(now, plans, ASSETS, TECHNICIANS, MemoryLockGateway(), strategy=None)
    )
    return CycleReport(
        started_at=now,
        result=result,
        saved_ticket_ids=[t.id for t in result.new_tickets],
        finished_at=now + timedelta(seconds=1),
    )


class TestEndpoints:

    def test_health(self, client):
        assert client.get("/health").json() == {"status": "ok"}

    def test_run(self, client, monkeypatch, demo_report):
        async def fake_run_cycle():
            return demo_report

        monkeypatch.setattr(runner, "run_cycle", fake_run_cycle)

        r = client.post("/api/v1/scheduler/run")

        assert r.status_code == 200
        body = r.json()
        assert [g["plan_id"] for g in body["generated"]] == ["PLN-01"]
        assert body["generated"][0]["status"] == "open"
        assert body["generated"][0]["saved"] is True
        assert [p["plan_id"] for p in body["advanced_plans"]] == ["PLN-01"]
        assert {s["plan_id"]: s["reason"] for s in body["skipped"]} == {
            "PLN-02": "not_due",
            "PLN-03": "manual",
        }
        assert body["failed_plan_ids"] == []

    def test_run_failure_is_500(self, client, monkeypatch):
        async def broken_run_cycle():
            raise ConnectionError("database down")

        monkeypatch.setattr(runner, "run_cycle", broken_run_cycle)

        r = client.post("/api/v1/scheduler/run")

        assert r.status_code == 500
        assert r.json() == {"detail": "Internal server error"}

    def test_trigger(self, client):
        r = client.post("/api/v1/scheduler/trigger")

        assert r.status_code == 202
        assert r.json() == {"status": "accepted"}

    def test_status(self, client, monkeypatch, demo_report):
        monkeypatch.setattr(runner, "_last_report", demo_report)

        body = client.get("/api/v1/scheduler/status").json()

        assert body["enabled"] is False
        assert body["timezone"] == "UTC"
        assert body["lock_backend"] == "postgres"
        assert len(body["last_run"]["generated"]) == 1

    def test_status_before_first_run(self, client, monkeypatch):
        monkeypatch.setattr(runner, "_last_report", None)

        assert client.get("/api/v1/scheduler/status").json()["last_run"] is None


class TestSchedulerTrigger:

    @pytest.mark.asyncio
    async def test_timeout(self):
        assert await SchedulerTrigger().wait(timeout=0.01) is False

    @pytest.mark.asyncio
    async def test_notify_wakes_waiter(self):
        trigger = SchedulerTrigger()
        waiter = asyncio.create_task(trigger.wait(timeout=5))
        await asyncio.sleep(0)

        await trigger.notify()

        assert await waiter is True

    @pytest.mark.asyncio
    async def test_notify_before_wait_not_lost(self):
        trigger = SchedulerTrigger()

        await trigger.notify()

        assert await trigger.wait(timeout=0.01) is True
        assert await trigger.wait(timeout=0.01) is False


class TestDemoData:

    def test_only_first_plan_due(self):
        now = datetime(2024, 5, 20, tzinfo=timezone.utc)
        plans = build_demo_plans(now)

        due = [p.id for p in plans if p.next_execution <= now]

        assert due == ["PLN-01"]
        assert plans[2].auto_generate is False
