"""
Tests for technician assignment notifications.
"""

import json
import logging
from datetime import datetime, timezone

import httpx
import pytest

from pm_scheduler.config import Settings
from pm_scheduler.schemas.maintenance import MaintenanceTicket, Technician
from pm_scheduler.services import notifications
from pm_scheduler.services.notifications import format_assignment_message, notify_assignment


@pytest.fixture
def ticket():
    moment = datetime(2024, 5, 20, 14, 30, tzinfo=timezone.utc)
    return MaintenanceTicket(
        id="TCK-AUTO-20240520-ABC",
        title="[Preventiva] Lubrificação Esteira",
        description="ORDEM AUTOMÁTICA",
        status="assigned",
        urgency="medium",
        asset_id="CNV-01",
        requester="System Scheduler",
        assignee_id="TEC-01",
        assignee_name="Carlos Silva",
        created_at=moment,
        occurrence_date=moment,
    )


@pytest.fixture
def technician():
    return Technician(id="TEC-01", name="Carlos Silva", phone="+5511990000001")


def use_settings(monkeypatch, **overrides):
    monkeypatch.setattr(notifications, "get_settings", lambda: Settings(**overrides))


class TestMessage:

    def test_contains_ticket_details(self, technician, ticket):
        message = format_assignment_message(technician, ticket)

        assert "Olá *Carlos Silva*" in message
        assert "TCK-AUTO-20240520-ABC" in message
        assert "[Preventiva] Lubrificação Esteira" in message
        assert "CNV-01" in message
        assert "MEDIUM" in message


class TestNotifyAssignment:

    @pytest.mark.asyncio
    async def test_no_phone_is_noop(self, ticket, caplog):
        tech = Technician(id="TEC-02", name="Ana Souza")

        with caplog.at_level(logging.WARNING):
            result = await notify_assignment(tech, ticket)

        assert result is None
        assert "has no phone number" in caplog.text

    @pytest.mark.asyncio
    async def test_dry_run_without_webhook(self, monkeypatch, technician, ticket):
        use_settings(monkeypatch, NOTIFY_WEBHOOK_URL="")

        result = await notify_assignment(technician, ticket)

        assert result.success is True
        assert result.detail == "dry-run"

    @pytest.mark.asyncio
    async def test_posts_to_webhook(self, monkeypatch, technician, ticket):
        use_settings(monkeypatch, NOTIFY_WEBHOOK_URL="https://gateway.test/send", NOTIFY_WEBHOOK_TOKEN="tok")
        requests = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(200, json={"queued": True})

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            result = await notify_assignment(technician, ticket, client=client)

        assert result.success is True
        assert requests[0].headers["Authorization"] == "Bearer tok"
        body = json.loads(requests[0].content)
        assert body["to"] == "+5511990000001"
        assert "TCK-AUTO-20240520-ABC" in body["message"]

    @pytest.mark.asyncio
    async def test_gateway_failure_reported(self, monkeypatch, technician, ticket):
        use_settings(monkeypatch, NOTIFY_WEBHOOK_URL="https://gateway.test/send")
        transport = httpx.MockTransport(lambda request: httpx.Response(503))

        async with httpx.AsyncClient(transport=transport) as client:
            result = await notify_assignment(technician, ticket, client=client)

        assert result.success is False
        assert "503" in result.detail

    @pytest.mark.asyncio
    async def test_invalid_webhook_url_reported(self, monkeypatch, technician, ticket):
        """httpx.InvalidURL is not an httpx.HTTPError; it still ends as a failed delivery."""
        use_settings(monkeypatch, NOTIFY_WEBHOOK_URL="https://gate\x7fway.test/send")
        transport = httpx.MockTransport(lambda request: httpx.Response(200))

        async with httpx.AsyncClient(transport=transport) as client:
            result = await notify_assignment(technician, ticket, client=client)

        assert result.success is False

    @pytest.mark.asyncio
    async def test_unexpected_transport_error_reported(self, monkeypatch, technician, ticket):
        use_settings(monkeypatch, NOTIFY_WEBHOOK_URL="https://gateway.test/send")

        def handler(request: httpx.Request) -> httpx.Response:
            raise RuntimeError("unhandled errors in a TaskGroup")

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            result = await notify_assignment(technician, ticket, client=client)

        assert result.success is False
        assert "TaskGroup" in result.detail
