"""Assignment notifications sent to technicians over a WhatsApp-style gateway."""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timezone

import httpx

from pm_scheduler.config import get_settings
from pm_scheduler.schemas.maintenance import MaintenanceTicket, Technician

logger = logging.getLogger(__name__)

SEND_TIMEOUT_SECONDS = 10


@dataclass
class DeliveryResult:
    success: bool
    timestamp: datetime
    detail: str = ""


def format_assignment_message(technician: Technician, ticket: MaintenanceTicket) -> str:
    return (
        "🔧 *Nova Ordem de Serviço Atribuída!*\n\n"
        f"Olá *{technician.name}*, uma nova tarefa requer sua atenção:\n\n"
        f"🆔 *ID:* {ticket.id}\n"
        f"📌 *Título:* {ticket.title}\n"
        f"🏭 *Equipamento:* {ticket.asset_id}\n"
        f"⚠️ *Urgência:* {ticket.urgency.upper()}\n"
        f"📝 *Descrição:* {ticket.description}\n\n"
        "Acesse o app para iniciar o atendimento."
    )


async def send_whatsapp(
    to: str, message: str, client: httpx.AsyncClient | None = None
) -> DeliveryResult:
    """POST the message to the configured gateway.

    With no NOTIFY_WEBHOOK_URL the message is only logged. Delivery
    failures come back as ``success=False``.
    """
    settings = get_settings()
    now = datetime.now(timezone.utc)
    if not settings.NOTIFY_WEBHOOK_URL:
        logger.info("[WhatsApp] (dry run) to %s:\n%s", to, message)
        return DeliveryResult(success=True, timestamp=now, detail="dry-run")

    headers = {}
    if settings.NOTIFY_WEBHOOK_TOKEN:
        headers["Authorization"] = f"Bearer {settings.NOTIFY_WEBHOOK_TOKEN}"

    owns_client = client is None
    if owns_client:
        client = httpx.AsyncClient(timeout=SEND_TIMEOUT_SECONDS)
    try:
        r = await client.post(
            settings.NOTIFY_WEBHOOK_URL,
            json={"to": to, "message": message},
            headers=headers,
        )
        r.raise_for_status()
    except httpx.HTTPError as exc:
        logger.warning("[WhatsApp] Delivery to %s failed: %s", to, exc)
        return DeliveryResult(success=False, timestamp=now, detail=str(exc))
    except asyncio.CancelledError:
        raise
    except Exception as exc:
        # Connection setup can fail outside httpx's hierarchy (e.g. ExceptionGroup)
        logger.warning("[WhatsApp] Delivery to %s failed: %r", to, exc)
        return DeliveryResult(success=False, timestamp=now, detail=repr(exc))
    finally:
        if owns_client:
            await client.aclose()

    logger.info("[WhatsApp] Sent to %s → %d", to, r.status_code)
    return DeliveryResult(success=True, timestamp=now, detail=str(r.status_code))


async def notify_assignment(
    technician: Technician,
    ticket: MaintenanceTicket,
    client: httpx.AsyncClient | None = None,
) -> DeliveryResult | None:
    """Tell the technician about a newly assigned ticket. No-op without a phone."""
    if not technician.phone:
        logger.warning(
            "[Notification] Technician %s has no phone number registered.", technician.name
        )
        return None
    message = format_assignment_message(technician, ticket)
    return await send_whatsapp(technician.phone, message, client=client)
