from __future__ import annotations

from datetime import datetime, timezone

import mysql.connector
import pytest

from src.carecheck.carecheck.attendance.model import CheckEvent, VerificationFlags
from src.carecheck.carecheck.attendance.mysql_attendance_repository import MySQLCheckEventRepository
from src.carecheck.carecheck.challenges.mysql_challenge_repository import consume_token
from src.carecheck.carecheck.core.enums import CheckAction, VerificationMethod
from src.carecheck.carecheck.core.exceptions import TransientStoreFailure

NOW = datetime(2025, 6, 2, 8, 0, tzinfo=timezone.utc)


class FakeCursor:
    """Just enough of a MySQL cursor for the challenge_tokens/check_events statements."""

    def __init__(self, tokens=None, *, fail_event_insert=False):
        self.tokens: dict[str, dict] = dict(tokens or {})
        self.events: list[tuple] = []
        self.statements: list[str] = []
        self.rowcount = 0
        self.lastrowid = None
        self.fail_event_insert = fail_event_insert

    def execute(self, sql, params=()):
        stmt = " ".join(sql.split())
        self.statements.append(stmt.split("(")[0].split(" SET")[0])
        if stmt.startswith("UPDATE challenge_tokens"):
            consumed_at, token, beneficiary_id = params
            row = self.tokens.get(token)
            if row and row["beneficiary_id"] == beneficiary_id and row["consumed_at"] is None:
                row["consumed_at"] = consumed_at
                self.rowcount = 1
            else:
                self.rowcount = 0
        elif stmt.startswith("INSERT INTO challenge_tokens"):
            token, beneficiary_id, consumed_at = params
            if token in self.tokens:
                raise mysql.connector.IntegrityError(msg=f"Duplicate entry '{token}' for key 'PRIMARY'")
            self.tokens[token] = {"beneficiary_id": beneficiary_id, "consumed_at": consumed_at}
            self.rowcount = 1
        elif stmt.startswith("INSERT INTO check_events"):
            if self.fail_event_insert:
                raise mysql.connector.DatabaseError(msg="Lock wait timeout exceeded")
            self.events.append(params)
            self.lastrowid = len(self.events)
            self.rowcount = 1

    def close(self):
        pass


class FakeConnection:
    def __init__(self, cursor: FakeCursor):
        self._cursor = cursor
        self.commits = 0
        self.rollbacks = 0

    def cursor(self, dictionary=False):
        return self._cursor

    def commit(self):
        self.commits += 1

    def rollback(self):
        self.rollbacks += 1

    def close(self):
        pass


class FakeConnFactory:
    def __init__(self, cursor: FakeCursor):
        self.conn = FakeConnection(cursor)

    def connect(self):
        return self.conn


def _issued(beneficiary_id=1):
    return {"beneficiary_id": beneficiary_id, "consumed_at": None}


def _event():
    return CheckEvent(
        beneficiary_id=1,
        caregiver_name="Alice",
        action=CheckAction.CHECK_IN,
        tap_timestamp=NOW,
        accepted_at=NOW,
        method=VerificationMethod.NFC,
        flags=VerificationFlags(True, False, False, False),
        challenge_token="tok-1",
    )


def test_registered_token_is_consumed_by_the_conditional_update():
    cur = FakeCursor({"tok-1": _issued()})

    assert consume_token(cur, token="tok-1", beneficiary_id=1, consumed_at=NOW) is True
    assert cur.statements == ["UPDATE challenge_tokens"]
    assert cur.tokens["tok-1"]["consumed_at"] is not None


def test_unknown_token_is_inserted_as_consumed():
    cur = FakeCursor()

    assert consume_token(cur, token="tok-1", beneficiary_id=1, consumed_at=NOW) is True
    assert cur.statements == ["UPDATE challenge_tokens", "INSERT INTO challenge_tokens"]
    assert cur.tokens["tok-1"]["consumed_at"] is not None


def test_second_consumption_hits_the_primary_key_and_fails():
    cur = FakeCursor({"tok-1": _issued()})

    assert consume_token(cur, token="tok-1", beneficiary_id=1, consumed_at=NOW) is True
    assert consume_token(cur, token="tok-1", beneficiary_id=1, consumed_at=NOW) is False


def test_token_of_another_beneficiary_is_not_consumed():
    cur = FakeCursor({"tok-1": _issued(beneficiary_id=2)})

    assert consume_token(cur, token="tok-1", beneficiary_id=1, consumed_at=NOW) is False
    assert cur.tokens["tok-1"]["consumed_at"] is None


def test_append_consumes_token_and_inserts_event_in_one_transaction():
    cur = FakeCursor({"tok-1": _issued()})
    factory = FakeConnFactory(cur)

    event_id = MySQLCheckEventRepository(factory).append_with_token(_event(), challenge_token="tok-1")

    assert event_id == 1
    assert cur.statements == ["UPDATE challenge_tokens", "INSERT INTO check_events"]
    assert factory.conn.commits == 1


def test_append_with_consumed_token_skips_the_event_insert():
    cur = FakeCursor({"tok-1": {"beneficiary_id": 1, "consumed_at": NOW}})
    factory = FakeConnFactory(cur)

    event_id = MySQLCheckEventRepository(factory).append_with_token(_event(), challenge_token="tok-1")

    assert event_id is None
    assert "INSERT INTO check_events" not in cur.statements
    assert cur.events == []


def test_failed_event_insert_rolls_back_the_consumption():
    cur = FakeCursor({"tok-1": _issued()}, fail_event_insert=True)
    factory = FakeConnFactory(cur)

    with pytest.raises(TransientStoreFailure):
        MySQLCheckEventRepository(factory).append_with_token(_event(), challenge_token="tok-1")
    assert factory.conn.rollbacks == 1
    assert factory.conn.commits == 0
