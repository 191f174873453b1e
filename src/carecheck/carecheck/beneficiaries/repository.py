from __future__ import annotations

from typing import Optional, Protocol

from .model import Beneficiary


class BeneficiaryRepository(Protocol):
    """Repository interface for beneficiaries.

    Services depend on this interface, not on a concrete database.
    """

    def find_by_public_code(self, code: str) -> Optional[Beneficiary]:
        raise NotImplementedError

    def get_by_id(self, beneficiary_id: int) -> Optional[Beneficiary]:
        raise NotImplementedError
