from __future__ import annotations

import logging
import re
import secrets
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

import mysql.connector

from ..core.constants import DEFAULT_COUNTRY, DEFAULT_CURRENCY, DEFAULT_FALLBACK_RATE, DEFAULT_TIMEZONE

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DBTarget:
    host: str
    port: int
    user: str
    password: str
    database: str


def _as_target(db_config: dict) -> DBTarget:
    return DBTarget(
        host=str(db_config.get("host", "localhost")),
        port=int(db_config.get("port", 3306)),
        user=str(db_config.get("user", "root")),
        password=str(db_config.get("password", "")),
        database=str(db_config.get("database", "carecheck_db")),
    )


def _connect(target: DBTarget, *, with_database: bool = True):
    kwargs = dict(host=target.host, port=target.port, user=target.user, password=target.password, use_pure=True)
    if with_database:
        kwargs["database"] = target.database
    return mysql.connector.connect(**kwargs)


def _strip_create_db_and_use(sql: str) -> str:
    # schema.sql must not pin a database name; the target comes from settings.
    sql = re.sub(r"(?im)^\s*CREATE\s+DATABASE\b.*?;\s*$", "", sql)
    sql = re.sub(r"(?im)^\s*USE\b.*?;\s*$", "", sql)
    return sql


def _iter_sql_statements(sql: str) -> Iterable[str]:
    # Splits on ';' outside quoted strings; enough for our schema/seed files.
    buf: list[str] = []
    quote: str | None = None
    escape = False

    for ch in sql:
        buf.append(ch)
        if escape:
            escape = False
        elif ch == "\\":
            escape = True
        elif quote:
            if ch == quote:
                quote = None
        elif ch in ("'", '"'):
            quote = ch
        elif ch == ";":
            stmt = "".join(buf[:-1]).strip()
            buf.clear()
            if stmt:
                yield stmt

    tail = "".join(buf).strip()
    if tail:
        yield tail


def _run_script(db_config: dict, path: str | Path) -> None:
    sql = _strip_create_db_and_use(Path(path).read_text(encoding="utf-8"))
    conn = _connect(_as_target(db_config))
    try:
        cur = conn.cursor()
        for stmt in _iter_sql_statements(sql):
            cur.execute(stmt)
        conn.commit()
    finally:
        conn.close()


def ensure_database_exists(db_config: dict) -> None:
    target = _as_target(db_config)
    conn = _connect(target, with_database=False)
    try:
        cur = conn.cursor()
        cur.execute(
            f"CREATE DATABASE IF NOT EXISTS `{target.database}` CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci;"
        )
        conn.commit()
    finally:
        conn.close()


def apply_schema(db_config: dict, *, schema_path: str | Path) -> None:
    ensure_database_exists(db_config)
    _run_script(db_config, schema_path)
    logger.info("Applied schema %s", schema_path)


def apply_seed_sql(db_config: dict, *, seed_path: str | Path) -> None:
    _run_script(db_config, seed_path)
    logger.info("Applied seed %s", seed_path)


def ensure_demo_beneficiary(db_config: dict, *, qr_code: str = "DEMO-B1") -> str:
    """Create the demo beneficiary if missing and return its tap secret."""

    conn = _connect(_as_target(db_config))
    try:
        cur = conn.cursor(dictionary=True)
        cur.execute("SELECT tap_secret FROM beneficiaries WHERE qr_code=%s", (qr_code,))
        existing = cur.fetchone()
        if existing:
            return str(existing["tap_secret"])

        tap_secret = secrets.token_urlsafe(24)
        cur.execute(
            """
            INSERT INTO beneficiaries (name, country, timezone, currency, qr_code, tap_secret, regular_rate, copay_percentage)
            VALUES (%s, %s, %s, %s, %s, %s, %s, %s)
            """,
            ("Demo Beneficiary", DEFAULT_COUNTRY, DEFAULT_TIMEZONE, DEFAULT_CURRENCY, qr_code, tap_secret, DEFAULT_FALLBACK_RATE, 0),
        )
        beneficiary_id = int(cur.lastrowid)
        cur.execute(
            """
            INSERT INTO beneficiary_rate_history (beneficiary_id, rate, conventioned_rate, allowance_monthly_hours, effective_date)
            VALUES (%s, %s, %s, %s, %s)
            """,
            (beneficiary_id, DEFAULT_FALLBACK_RATE, None, None, "2025-01-01"),
        )
        conn.commit()
        logger.info("Created demo beneficiary %s (id=%s)", qr_code, beneficiary_id)
        return tap_secret
    finally:
        conn.close()


def list_tables(db_config: dict) -> list[str]:
    conn = _connect(_as_target(db_config))
    try:
        cur = conn.cursor()
        cur.execute("SHOW TABLES")
        return [row[0] for row in cur.fetchall()]
    finally:
        conn.close()
