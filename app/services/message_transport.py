import asyncio
import logging

from jinja2 import Template
from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlalchemy.orm import Session
from typing import Callable, Protocol
from uuid import UUID

from app.core.exceptions import TransientSourceError
from app.models.outbound_messages import MessageStatus, OutboundMessage
from app.schemas.notification import OutboundMessageTask

logger = logging.getLogger(__name__)
LOG_MSG = "Service:"

MESSAGE_TEMPLATES = {
    "EMERGENCY_CONTACT": """EMERGENCY NOTIFICATION

Your family member {{ user_name }} has activated an emergency alert.

Message: {{ message }}
Location: {{ "%.4f"|format(latitude) }}, {{ "%.4f"|format(longitude) }}
Time: {{ triggered_at }} UTC
{% if boat_name %}Boat: {{ boat_name }}
{% endif %}
Coast Guard and nearby boats have been notified.
Please stay calm and wait for updates.""",
    "NEARBY_DISTRESS": """URGENT: Nearby Fisherman Needs Help

Fisherman {{ user_name }} needs assistance {{ distance_km }} km from you.
Location: {{ "%.4f"|format(latitude) }}, {{ "%.4f"|format(longitude) }}
Time: {{ triggered_at }} UTC

If you are nearby, please respond and provide assistance.
Contact Coast Guard if you cannot help directly.""",
    "AUTHORITY": """MARINE EMERGENCY ALERT

Fisherman: {{ user_name }}
Boat: {{ boat_name or "Unknown" }}
Location: {{ "%.4f"|format(latitude) }}, {{ "%.4f"|format(longitude) }}
Message: {{ message }}
Time: {{ triggered_at }} UTC
Alert ID: {{ alert_id }}

IMMEDIATE ASSISTANCE REQUIRED""",
    "OFFSHORE_CONTACT": """SAFETY NOTICE

{{ user_name }} has travelled beyond their safe distance from port.
{{ description }}
Last position: {{ "%.4f"|format(latitude) }}, {{ "%.4f"|format(longitude) }}
Time: {{ triggered_at }} UTC""",
}


def render_message(kind: str, **template_vars) -> str:
    return Template(MESSAGE_TEMPLATES[kind]).render(**template_vars)


class MessageTransport(Protocol):
    async def enqueue(self, task: OutboundMessageTask) -> None: ...


class QueuedMessageTransport:
    """
    Hands messages to the delivery workers by writing PENDING rows to
    ``outbound_messages``. Each enqueue uses its own session on a worker
    thread, so concurrent enqueues never share one.
    """

    def __init__(self, session_factory: Callable[[], Session]):
        self.session_factory = session_factory

    def _persist(self, task: OutboundMessageTask) -> UUID:
        db = self.session_factory()
        try:
            message = OutboundMessage(
                recipient=task.recipient,
                channel=task.channel.value,
                body=task.body,
                priority=task.priority.value,
                status=MessageStatus.PENDING.value,
                kind=task.kind,
                alert_id=task.alert_id,
                payload=task.payload,
            )
            db.add(message)
            db.commit()
            return message.id
        except OperationalError as e:
            db.rollback()
            raise TransientSourceError(
                f"message queue unavailable: {str(e)}", source_id=task.recipient
            ) from e
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"{LOG_MSG} error queueing message to {task.recipient}: {str(e)}")
            raise
        finally:
            db.close()

    async def enqueue(self, task: OutboundMessageTask) -> None:
        message_id = await asyncio.to_thread(self._persist, task)
        logger.debug(f"{LOG_MSG} queued {task.kind} message {message_id}")
