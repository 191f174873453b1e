from __future__ import annotations

from typing import Protocol, Sequence

from .model import Recipient


class RecipientRepository(Protocol):
    def list_for_beneficiary(self, beneficiary_id: int) -> Sequence[Recipient]:
        """Family members attached to a beneficiary, with their preferences."""

        raise NotImplementedError
