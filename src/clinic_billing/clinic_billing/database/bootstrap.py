"""Schema and demo-account setup for a fresh MySQL database."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional

import mysql.connector
from werkzeug.security import generate_password_hash

from ..core.enums import Role, Sector

logger = logging.getLogger(__name__)

# (name, email, password, role, sector, hourly_rate)
DEMO_USERS = (
    ("General Admin", "admin@clinic.local", "admin123", Role.GENERAL_ADMIN, None, None),
    ("ABA Admin", "adm.aba@clinic.local", "admin123", Role.SECTOR_ADMIN, Sector.ABA, None),
    ("ABA Front Desk", "coord.aba@clinic.local", "coord123", Role.COORDINATOR, Sector.ABA, None),
    ("ABA Therapist", "at.aba@clinic.local", "staff123", Role.STAFF, Sector.ABA, 40.0),
    ("Guardian Billing", "fin.pct@clinic.local", "billing123", Role.BILLING_GUARDIANS, None, None),
    ("Staff Billing", "fin.ats@clinic.local", "billing123", Role.BILLING_STAFF, None, None),
)


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
        database=str(db_config.get("database", "clinic_billing")),
    )


def _connect(target: DBTarget, *, database: Optional[str] = None):
    kwargs = dict(host=target.host, port=target.port, user=target.user, password=target.password, use_pure=True)
    if database:
        kwargs["database"] = database
    return mysql.connector.connect(**kwargs)


def _strip_create_db_and_use(sql: str) -> str:
    # Keep schema.sql usable regardless of the configured DB name.
    sql = re.sub(r"(?im)^\s*CREATE\s+DATABASE\b.*?;\s*$", "", sql)
    sql = re.sub(r"(?im)^\s*USE\b.*?;\s*$", "", sql)
    return sql


def _iter_sql_statements(sql: str) -> Iterable[str]:
    """Split on ';' outside quotes; ``--`` line comments are dropped."""

    buf: list[str] = []
    quote: Optional[str] = None
    escape = False

    for line in sql.splitlines(keepends=True):
        if quote is None and line.lstrip().startswith("--"):
            continue

        for ch in line:
            if escape:
                escape = False
            elif ch == "\\":
                escape = True
            elif quote is not None:
                if ch == quote:
                    quote = None
            elif ch in ("'", '"'):
                quote = ch
            elif ch == ";":
                stmt = "".join(buf).strip()
                buf.clear()
                if stmt:
                    yield stmt
                continue
            buf.append(ch)

    tail = "".join(buf).strip()
    if tail:
        yield tail


def ensure_database_exists(db_config: dict) -> None:
    target = _as_target(db_config)
    conn = _connect(target)
    try:
        cur = conn.cursor()
        cur.execute(
            f"CREATE DATABASE IF NOT EXISTS `{target.database}` CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci"
        )
        conn.commit()
    finally:
        conn.close()


def apply_schema(db_config: dict, *, schema_path: str | Path) -> None:
    target = _as_target(db_config)
    ensure_database_exists(db_config)

    sql = _strip_create_db_and_use(Path(schema_path).read_text(encoding="utf-8"))

    conn = _connect(target, database=target.database)
    try:
        cur = conn.cursor()
        for stmt in _iter_sql_statements(sql):
            cur.execute(stmt)
        conn.commit()
    finally:
        conn.close()
    logger.info("Schema applied to %s", target.database)


def ensure_demo_users(db_config: dict) -> list[str]:
    """Create (or reset) one account per role; returns the emails touched."""

    target = _as_target(db_config)
    conn = _connect(target, database=target.database)
    touched: list[str] = []
    try:
        cur = conn.cursor(dictionary=True)

        for name, email, password, role, sector, hourly_rate in DEMO_USERS:
            password_hash = generate_password_hash(password)
            sector_value = sector.value if sector else None

            cur.execute("SELECT user_id FROM users WHERE email=%s", (email,))
            if cur.fetchone():
                cur.execute(
                    """
                    UPDATE users
                    SET name=%s, password_hash=%s, role=%s, sector=%s, hourly_rate=%s, is_active=1
                    WHERE email=%s
                    """,
                    (name, password_hash, role.value, sector_value, hourly_rate, email),
                )
            else:
                cur.execute(
                    """
                    INSERT INTO users (name, email, password_hash, role, sector, hourly_rate, is_active)
                    VALUES (%s, %s, %s, %s, %s, %s, 1)
                    """,
                    (name, email, password_hash, role.value, sector_value, hourly_rate),
                )
            touched.append(email)

        cur.execute("INSERT IGNORE INTO supervision_rates (id, version) VALUES (1, 0)")
        conn.commit()
    finally:
        conn.close()

    logger.info("Demo accounts ready: %s", ", ".join(touched))
    return touched


def list_tables(db_config: dict) -> list[str]:
    target = _as_target(db_config)
    conn = _connect(target, database=target.database)
    try:
        cur = conn.cursor()
        cur.execute("SHOW TABLES")
        return [row[0] for row in cur.fetchall()]
    finally:
        conn.close()
