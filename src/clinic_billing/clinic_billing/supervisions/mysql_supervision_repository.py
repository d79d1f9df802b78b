from __future__ import annotations

from datetime import date, time
from typing import Any, Mapping, Optional, Sequence

from ..core.enums import Sector
from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_float, db_cursor, fetchall, fetchone, normalize_mysql_time
from .model import Supervision, SupervisionRates
from .repository import SupervisionRateRepository, SupervisionRepository

_COLUMNS = """
    supervision_id, staff_id, coordinator_id, supervision_date, start_time, end_time,
    hours, sector, observations
"""

# Column per sector in supervision_rates
_RATE_COLUMNS = {
    Sector.ABA: "rate_aba",
    Sector.DENVER: "rate_denver",
    Sector.GRUPO: "rate_grupo",
    Sector.ESCOLAR: "rate_escolar",
}


def _to_supervision(r: dict[str, Any]) -> Supervision:
    return Supervision(
        supervision_id=int(r["supervision_id"]),
        staff_id=int(r["staff_id"]),
        coordinator_id=int(r["coordinator_id"]),
        supervision_date=r["supervision_date"],
        start_time=normalize_mysql_time(r["start_time"]),
        end_time=normalize_mysql_time(r["end_time"]),
        hours=as_float(r["hours"]) or 0.0,
        sector=Sector(r["sector"]),
        observations=r.get("observations"),
    )


class MySQLSupervisionRepository(SupervisionRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, supervision_id: int) -> Optional[Supervision]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM supervisions WHERE supervision_id=%s", (int(supervision_id),))
            r = fetchone(cur)
            return _to_supervision(r) if r else None

    def find_duplicate(
        self, *, staff_id: int, supervision_date: date, start_time: time, end_time: time
    ) -> Optional[Supervision]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS} FROM supervisions
                WHERE staff_id=%s AND supervision_date=%s AND start_time=%s AND end_time=%s
                LIMIT 1
                """,
                (int(staff_id), supervision_date, start_time, end_time),
            )
            r = fetchone(cur)
            return _to_supervision(r) if r else None

    def create_supervision(
        self,
        *,
        staff_id: int,
        coordinator_id: int,
        supervision_date: date,
        start_time: time,
        end_time: time,
        hours: float,
        sector: Sector,
        observations: Optional[str],
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO supervisions(
                    staff_id, coordinator_id, supervision_date, start_time, end_time,
                    hours, sector, observations
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    int(staff_id),
                    int(coordinator_id),
                    supervision_date,
                    start_time,
                    end_time,
                    float(hours),
                    sector.value,
                    observations,
                ),
            )
            return int(cur.lastrowid)

    def delete_by_id(self, supervision_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM supervisions WHERE supervision_id=%s", (int(supervision_id),))
            return cur.rowcount > 0

    def delete_for_staff(self, staff_id: int) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM supervisions WHERE staff_id=%s", (int(staff_id),))
            return int(cur.rowcount)

    def list_in_period(
        self,
        start_date: date,
        end_date: date,
        *,
        staff_id: Optional[int] = None,
        coordinator_id: Optional[int] = None,
        sector: Optional[Sector] = None,
    ) -> Sequence[Supervision]:
        clauses = ["supervision_date BETWEEN %s AND %s"]
        params: list[object] = [start_date, end_date]

        if staff_id is not None:
            clauses.append("staff_id=%s")
            params.append(int(staff_id))
        if coordinator_id is not None:
            clauses.append("coordinator_id=%s")
            params.append(int(coordinator_id))
        if sector is not None:
            clauses.append("sector=%s")
            params.append(sector.value)

        where = " AND ".join(clauses)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM supervisions WHERE {where} ORDER BY supervision_date DESC",
                tuple(params),
            )
            return [_to_supervision(r) for r in fetchall(cur)]


class MySQLSupervisionRateRepository(SupervisionRateRepository):
    """Rates live in a single row (id=1)."""

    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_rates(self) -> SupervisionRates:
        cols = ", ".join(_RATE_COLUMNS.values())
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {cols}, version FROM supervision_rates WHERE id=1")
            r = fetchone(cur)

        if not r:
            return SupervisionRates()
        return SupervisionRates(
            rates={sector: as_float(r.get(col)) for sector, col in _RATE_COLUMNS.items()},
            version=int(r.get("version") or 0),
        )

    def save_rates(self, rates: Mapping[Sector, float], *, expected_version: int) -> bool:
        assignments = ", ".join(f"{col}=%s" for col in _RATE_COLUMNS.values())
        values = [float(rates[sector]) for sector in _RATE_COLUMNS]

        with db_cursor(self._conn_factory) as (_, cur):
            if int(expected_version) == 0:
                # first save creates the row; a concurrent insert hits the PK
                cur.execute("SELECT id FROM supervision_rates WHERE id=1")
                if fetchone(cur) is None:
                    cols = ", ".join(_RATE_COLUMNS.values())
                    cur.execute(
                        f"INSERT INTO supervision_rates(id, {cols}, version) VALUES(1,%s,%s,%s,%s,1)",
                        tuple(values),
                    )
                    return True

            cur.execute(
                f"UPDATE supervision_rates SET {assignments}, version=version+1 WHERE id=1 AND version=%s",
                (*values, int(expected_version)),
            )
            return cur.rowcount > 0
