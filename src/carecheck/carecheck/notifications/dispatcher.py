from __future__ import annotations

import logging
from typing import Protocol, Sequence

from ..common.logging_utils import mask_name
from .model import CheckNotification, Recipient

logger = logging.getLogger(__name__)


class NotificationDispatcher(Protocol):
    """Delivery collaborator (push/email/SMS); fire-and-forget for the core."""

    def dispatch(self, notification: CheckNotification, recipients: Sequence[Recipient]) -> None:
        raise NotImplementedError


class LoggingNotificationDispatcher(NotificationDispatcher):
    """Default dispatcher when no transport is wired: records what would be sent."""

    def dispatch(self, notification: CheckNotification, recipients: Sequence[Recipient]) -> None:
        for recipient in recipients:
            logger.info(
                "Notify member %s via %s: %s %s at %s",
                recipient.recipient_id,
                ",".join(recipient.preferences.channels()),
                mask_name(notification.caregiver_name),
                notification.action.value,
                notification.local_time,
            )
