from __future__ import annotations

from datetime import datetime

import mysql.connector

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone, to_db_datetime
from .model import ChallengeToken
from .repository import ChallengeTokenRepository


def consume_token(cur, *, token: str, beneficiary_id: int, consumed_at: datetime) -> bool:
    """Conditional consume inside the caller's transaction.

    The UPDATE only matches an unconsumed row, so concurrent callers serialize
    on the row lock and exactly one sees rowcount == 1. Unknown tokens are
    inserted as consumed; the primary key rejects a second insert.
    """

    cur.execute(
        """
        UPDATE challenge_tokens
        SET consumed_at=%s
        WHERE token=%s AND beneficiary_id=%s AND consumed_at IS NULL
        """,
        (to_db_datetime(consumed_at), token, int(beneficiary_id)),
    )
    if cur.rowcount == 1:
        return True

    try:
        cur.execute(
            """
            INSERT INTO challenge_tokens(token, beneficiary_id, consumed_at)
            VALUES(%s,%s,%s)
            """,
            (token, int(beneficiary_id), to_db_datetime(consumed_at)),
        )
    except mysql.connector.IntegrityError:
        return False
    return True


class MySQLChallengeTokenRepository(ChallengeTokenRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def register(self, token: ChallengeToken) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO challenge_tokens(token, beneficiary_id, issued_at, expires_at)
                VALUES(%s,%s,%s,%s)
                """,
                (
                    token.token,
                    int(token.beneficiary_id),
                    to_db_datetime(token.issued_at),
                    to_db_datetime(token.expires_at),
                ),
            )

    def is_consumed(self, token: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT consumed_at FROM challenge_tokens WHERE token=%s", (token,))
            r = fetchone(cur)
            return bool(r and r.get("consumed_at") is not None)
