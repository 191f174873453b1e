from __future__ import annotations

from typing import Protocol, Sequence

from .model import RateHistoryEntry


class RateHistoryRepository(Protocol):
    def list_rate_history(self, beneficiary_id: int) -> Sequence[RateHistoryEntry]:
        raise NotImplementedError
