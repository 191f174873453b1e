from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from .model import CheckEvent


class CheckEventRepository(Protocol):
    def append_with_token(self, event: CheckEvent, *, challenge_token: str) -> Optional[int]:
        """Consume ``challenge_token`` and append ``event`` in one transaction.

        Returns the new event id, or None when the token had already been
        consumed (nothing is written in that case).
        """

        raise NotImplementedError

    def list_events(self, *, beneficiary_id: int, start: datetime, end: datetime) -> Sequence[CheckEvent]:
        """Accepted events with start <= accepted_at < end, oldest first."""

        raise NotImplementedError
