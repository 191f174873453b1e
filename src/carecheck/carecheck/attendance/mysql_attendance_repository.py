from __future__ import annotations

import json
from datetime import datetime
from typing import Any, Dict, Optional, Sequence

from ..challenges.mysql_challenge_repository import consume_token
from ..core.enums import CheckAction, VerificationMethod
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, from_db_datetime, to_db_datetime
from .model import CheckEvent, VerificationFlags
from .repository import CheckEventRepository


def _to_event(r: Dict[str, Any]) -> CheckEvent:
    flags = r.get("verification_flags") or "{}"
    if isinstance(flags, (str, bytes)):
        flags = json.loads(flags)
    return CheckEvent(
        event_id=int(r["event_id"]),
        beneficiary_id=int(r["beneficiary_id"]),
        caregiver_name=r["caregiver_name"],
        action=CheckAction(r["action"]),
        tap_timestamp=from_db_datetime(r["tap_timestamp"]),
        accepted_at=from_db_datetime(r["accepted_at"]),
        method=VerificationMethod(r["verification_method"]),
        flags=VerificationFlags.from_dict(flags),
        challenge_token=r.get("challenge_token"),
        latitude=float(r["latitude"]) if r.get("latitude") is not None else None,
        longitude=float(r["longitude"]) if r.get("longitude") is not None else None,
        photo_url=r.get("photo_url"),
        is_training=bool(r.get("is_training")),
    )


class MySQLCheckEventRepository(CheckEventRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def append_with_token(self, event: CheckEvent, *, challenge_token: str) -> Optional[int]:
        with db_cursor(self._conn_factory) as (_, cur):
            consumed = consume_token(
                cur,
                token=challenge_token,
                beneficiary_id=event.beneficiary_id,
                consumed_at=event.accepted_at,
            )
            if not consumed:
                return None

            cur.execute(
                """
                INSERT INTO check_events(
                    beneficiary_id, caregiver_name, action, tap_timestamp, accepted_at,
                    verification_method, latitude, longitude, photo_url, is_training, challenge_token, verification_flags
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    int(event.beneficiary_id),
                    event.caregiver_name,
                    event.action.value,
                    to_db_datetime(event.tap_timestamp),
                    to_db_datetime(event.accepted_at),
                    event.method.value,
                    event.latitude,
                    event.longitude,
                    event.photo_url,
                    int(event.is_training),
                    challenge_token,
                    json.dumps(event.flags.to_dict()),
                ),
            )
            return int(cur.lastrowid)

    def list_events(self, *, beneficiary_id: int, start: datetime, end: datetime) -> Sequence[CheckEvent]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT event_id, beneficiary_id, caregiver_name, action, tap_timestamp, accepted_at,
                       verification_method, latitude, longitude, photo_url, is_training, challenge_token, verification_flags
                FROM check_events
                WHERE beneficiary_id=%s AND accepted_at >= %s AND accepted_at < %s
                ORDER BY accepted_at ASC, event_id ASC
                """,
                (int(beneficiary_id), to_db_datetime(start), to_db_datetime(end)),
            )
            return [_to_event(r) for r in fetchall(cur)]
