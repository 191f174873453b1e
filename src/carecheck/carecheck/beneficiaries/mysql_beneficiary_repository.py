from __future__ import annotations

from typing import Any, Dict, Optional

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone
from .model import Beneficiary
from .repository import BeneficiaryRepository

_COLUMNS = "beneficiary_id, name, country, timezone, currency, qr_code, tap_secret, regular_rate, copay_percentage"


def _to_beneficiary(r: Dict[str, Any]) -> Beneficiary:
    return Beneficiary(
        beneficiary_id=int(r["beneficiary_id"]),
        name=r["name"],
        country=r["country"],
        timezone=r["timezone"],
        currency=r["currency"],
        qr_code=r["qr_code"],
        tap_secret=r["tap_secret"],
        regular_rate=float(r["regular_rate"]),
        copay_percentage=float(r.get("copay_percentage") or 0),
    )


class MySQLBeneficiaryRepository(BeneficiaryRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def find_by_public_code(self, code: str) -> Optional[Beneficiary]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM beneficiaries WHERE qr_code=%s", (code,))
            r = fetchone(cur)
            return _to_beneficiary(r) if r else None

    def get_by_id(self, beneficiary_id: int) -> Optional[Beneficiary]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM beneficiaries WHERE beneficiary_id=%s", (int(beneficiary_id),))
            r = fetchone(cur)
            return _to_beneficiary(r) if r else None
