from __future__ import annotations

from datetime import date, datetime, time
from typing import Any, Iterable, Optional, Sequence

from ..core.enums import AttendanceStage
from ..core.exceptions import ValidationError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, normalize_mysql_time
from .model import Attendance
from .repository import AttendanceRepository

_COLUMNS = """
    attendance_id, patient_id, staff_id, performed_by, session_date, start_time, end_time,
    duration_minutes, observations, is_substitution, confirmed_at, confirmed_by, approved_at,
    approved_by, launched_at, launched_by, version
"""

_STAGE_COLUMNS = {
    AttendanceStage.CONFIRMED: ("confirmed_at", "confirmed_by"),
    AttendanceStage.APPROVED: ("approved_at", "approved_by"),
    AttendanceStage.LAUNCHED: ("launched_at", "launched_by"),
}


def _to_attendance(r: dict[str, Any]) -> Attendance:
    return Attendance(
        attendance_id=int(r["attendance_id"]),
        patient_id=int(r["patient_id"]),
        staff_id=int(r["staff_id"]),
        performed_by=int(r["performed_by"]),
        session_date=r["session_date"],
        start_time=normalize_mysql_time(r["start_time"]),
        end_time=normalize_mysql_time(r["end_time"]),
        hours=int(r["duration_minutes"]) / 60,
        observations=r.get("observations"),
        is_substitution=bool(r.get("is_substitution")),
        confirmed_at=r.get("confirmed_at"),
        confirmed_by=r.get("confirmed_by"),
        approved_at=r.get("approved_at"),
        approved_by=r.get("approved_by"),
        launched_at=r.get("launched_at"),
        launched_by=r.get("launched_by"),
        version=int(r.get("version") or 0),
    )


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, attendance_id: int) -> Optional[Attendance]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM attendances WHERE attendance_id=%s", (int(attendance_id),))
            r = fetchone(cur)
            return _to_attendance(r) if r else None

    def create_attendance(
        self,
        *,
        patient_id: int,
        staff_id: int,
        performed_by: int,
        session_date: date,
        start_time: time,
        end_time: time,
        hours: float,
        observations: Optional[str],
        is_substitution: bool,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO attendances(
                    patient_id, staff_id, performed_by, session_date, start_time, end_time,
                    duration_minutes, observations, is_substitution, version
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,0)
                """,
                (
                    int(patient_id),
                    int(staff_id),
                    int(performed_by),
                    session_date,
                    start_time,
                    end_time,
                    int(round(float(hours) * 60)),
                    observations,
                    1 if is_substitution else 0,
                ),
            )
            return int(cur.lastrowid)

    def mark_stage(
        self,
        *,
        attendance_id: int,
        stage: AttendanceStage,
        actor_id: int,
        at: datetime,
        expected_version: int,
    ) -> bool:
        if stage not in _STAGE_COLUMNS:
            raise ValidationError(f"Stage cannot be stamped: {stage.label}")
        at_col, by_col = _STAGE_COLUMNS[stage]

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                UPDATE attendances
                SET {at_col}=%s, {by_col}=%s, version=version+1
                WHERE attendance_id=%s AND version=%s
                """,
                (at, int(actor_id), int(attendance_id), int(expected_version)),
            )
            return cur.rowcount > 0

    def delete_by_id(self, attendance_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM attendances WHERE attendance_id=%s", (int(attendance_id),))
            return cur.rowcount > 0

    def delete_for_patient(self, patient_id: int) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM attendances WHERE patient_id=%s", (int(patient_id),))
            return int(cur.rowcount)

    def delete_for_staff(self, staff_id: int) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM attendances WHERE staff_id=%s", (int(staff_id),))
            return int(cur.rowcount)

    def list_in_period(
        self,
        start_date: date,
        end_date: date,
        *,
        patient_ids: Optional[Iterable[int]] = None,
        staff_id: Optional[int] = None,
        involving_user_id: Optional[int] = None,
    ) -> Sequence[Attendance]:
        clauses = ["session_date BETWEEN %s AND %s"]
        params: list[object] = [start_date, end_date]

        if patient_ids is not None:
            ids = [int(i) for i in patient_ids]
            if not ids:
                return []
            clauses.append("patient_id IN (" + ",".join(["%s"] * len(ids)) + ")")
            params.extend(ids)
        if staff_id is not None:
            clauses.append("staff_id=%s")
            params.append(int(staff_id))
        if involving_user_id is not None:
            clauses.append("(staff_id=%s OR performed_by=%s)")
            params.extend([int(involving_user_id), int(involving_user_id)])

        where = " AND ".join(clauses)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM attendances WHERE {where} ORDER BY session_date DESC, start_time DESC",
                tuple(params),
            )
            return [_to_attendance(r) for r in fetchall(cur)]
