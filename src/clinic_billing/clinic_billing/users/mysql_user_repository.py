from __future__ import annotations

from typing import Any, Optional, Sequence

from ..core.enums import Role, Sector
from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_float, db_cursor, fetchall, fetchone
from .model import User
from .repository import UserRepository

_COLUMNS = "user_id, name, email, password_hash, role, sector, hourly_rate, is_active"


def _to_user(row: dict[str, Any]) -> User:
    return User(
        user_id=int(row["user_id"]),
        name=row["name"],
        email=row["email"],
        password_hash=row["password_hash"],
        role=Role(row["role"]),
        sector=Sector(row["sector"]) if row.get("sector") else None,
        hourly_rate=as_float(row.get("hourly_rate")),
        is_active=bool(row.get("is_active", True)),
    )


class MySQLUserRepository(UserRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, user_id: int) -> Optional[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM users WHERE user_id=%s", (int(user_id),))
            row = fetchone(cur)
            return _to_user(row) if row else None

    def get_by_email(self, email: str) -> Optional[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM users WHERE email=%s", (email,))
            row = fetchone(cur)
            return _to_user(row) if row else None

    def create_user(
        self,
        *,
        name: str,
        email: str,
        password_hash: str,
        role: Role,
        sector: Optional[Sector],
        hourly_rate: Optional[float] = None,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO users(name, email, password_hash, role, sector, hourly_rate, is_active)
                VALUES(%s,%s,%s,%s,%s,%s,1)
                """,
                (name, email, password_hash, role.value, sector.value if sector else None, hourly_rate),
            )
            return int(cur.lastrowid)

    def set_hourly_rate(self, user_id: int, hourly_rate: Optional[float]) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE users SET hourly_rate=%s WHERE user_id=%s", (hourly_rate, int(user_id)))
            return cur.rowcount > 0

    def delete_by_id(self, user_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM users WHERE user_id=%s", (int(user_id),))
            return cur.rowcount > 0

    def delete_guardian_by_email(self, email: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM users WHERE email=%s AND role=%s", (email, Role.GUARDIAN.value))
            return cur.rowcount > 0

    def list_users(
        self,
        *,
        role: Optional[Role] = None,
        sector: Optional[Sector] = None,
    ) -> Sequence[User]:
        clauses: list[str] = []
        params: list[object] = []

        if role is not None:
            clauses.append("role=%s")
            params.append(role.value)
        if sector is not None:
            clauses.append("sector=%s")
            params.append(sector.value)

        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM users {where} ORDER BY name", tuple(params))
            return [_to_user(r) for r in fetchall(cur)]
