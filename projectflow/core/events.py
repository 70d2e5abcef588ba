"""
Workflow event publishing.

The workflow core emits structured events that an external channel
(push, WebSocket, email) delivers to affected users. Events are sent after
the surrounding transaction commits; delivery failures never reach the core.
"""

import logging

from django.db import transaction
from django.dispatch import Signal

logger = logging.getLogger(__name__)

# Receivers get `event` (one of the names below) and `payload` (dict).
workflow_event = Signal()

INVITATION_CREATED = "invitation_created"
INVITATION_AUTO_REJECTED = "invitation_auto_rejected"
GROUP_FINALIZED = "group_finalized"
GROUP_LOCKED = "group_locked"
GROUP_DISBANDED = "group_disbanded"
FACULTY_ALLOCATED = "faculty_allocated"
PROMOTION_COMPLETED = "promotion_completed"


def _deliver(event: str, payload: dict) -> None:
    logger.info("NOTIFICATION: %s %s", event, payload)
    responses = workflow_event.send_robust(sender=None, event=event, payload=payload)
    for receiver, response in responses:
        if isinstance(response, Exception):
            logger.error(
                "Event receiver %r failed for %s: %s",
                receiver,
                event,
                response,
            )


def publish(event: str, **payload) -> None:
    """
    Publish a workflow event once the current transaction commits.

    Outside a transaction the event is delivered immediately.
    """
    transaction.on_commit(lambda: _deliver(event, payload))
