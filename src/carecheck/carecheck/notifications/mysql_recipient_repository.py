from __future__ import annotations

import json
from typing import Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall
from .model import NotificationPreferences, Recipient
from .repository import RecipientRepository


class MySQLRecipientRepository(RecipientRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_for_beneficiary(self, beneficiary_id: int) -> Sequence[Recipient]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT member_id, beneficiary_id, name, notification_preferences
                FROM family_members
                WHERE beneficiary_id=%s
                ORDER BY member_id ASC
                """,
                (int(beneficiary_id),),
            )
            out: list[Recipient] = []
            for r in fetchall(cur):
                prefs = r.get("notification_preferences")
                if isinstance(prefs, (str, bytes)):
                    prefs = json.loads(prefs)
                out.append(
                    Recipient(
                        recipient_id=int(r["member_id"]),
                        beneficiary_id=int(r["beneficiary_id"]),
                        name=r["name"],
                        preferences=NotificationPreferences.from_dict(prefs),
                    )
                )
            return out
