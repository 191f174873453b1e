from __future__ import annotations

import logging

from ..attendance.model import CheckEvent
from ..beneficiaries.model import Beneficiary
from ..common.datetime_utils import to_local
from .dispatcher import NotificationDispatcher
from .model import CheckNotification
from .repository import RecipientRepository

logger = logging.getLogger(__name__)


class CheckNotificationService:
    """Tells family members about accepted check-ins/outs.

    Never raises: the event is already recorded when this runs, and a
    delivery problem must not undo it.
    """

    def __init__(self, recipients: RecipientRepository, dispatcher: NotificationDispatcher):
        self._recipients = recipients
        self._dispatcher = dispatcher

    def notify(self, beneficiary: Beneficiary, event: CheckEvent) -> int:
        """Returns how many recipients the notification was handed to."""
        try:
            local = to_local(event.tap_timestamp, beneficiary.timezone)
            targets = [
                r
                for r in self._recipients.list_for_beneficiary(beneficiary.beneficiary_id)
                if r.preferences.wants(event.action, local.time())
            ]
            if not targets:
                return 0

            notification = CheckNotification(
                caregiver_name=event.caregiver_name,
                action=event.action,
                beneficiary_name=beneficiary.name,
                timestamp=event.tap_timestamp,
                local_time=local.strftime("%H:%M"),
            )
            self._dispatcher.dispatch(notification, targets)
            return len(targets)
        except Exception:
            logger.exception(
                "Failed to send %s notifications for beneficiary %s",
                event.action.value,
                beneficiary.beneficiary_id,
            )
            return 0
