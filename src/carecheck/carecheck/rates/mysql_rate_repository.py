from __future__ import annotations

from typing import Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall
from .model import RateHistoryEntry
from .repository import RateHistoryRepository


class MySQLRateHistoryRepository(RateHistoryRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_rate_history(self, beneficiary_id: int) -> Sequence[RateHistoryEntry]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT beneficiary_id, rate, conventioned_rate, allowance_monthly_hours, effective_date
                FROM beneficiary_rate_history
                WHERE beneficiary_id=%s
                ORDER BY effective_date ASC
                """,
                (int(beneficiary_id),),
            )
            return [
                RateHistoryEntry(
                    beneficiary_id=int(r["beneficiary_id"]),
                    rate=float(r["rate"]),
                    effective_date=r["effective_date"],
                    conventioned_rate=float(r["conventioned_rate"]) if r.get("conventioned_rate") is not None else None,
                    allowance_monthly_hours=(
                        float(r["allowance_monthly_hours"]) if r.get("allowance_monthly_hours") is not None else None
                    ),
                )
                for r in fetchall(cur)
            ]
