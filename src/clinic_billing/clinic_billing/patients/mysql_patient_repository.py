from __future__ import annotations

from typing import Any, Optional, Sequence

from ..core.enums import Sector
from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_float, db_cursor, fetchall, fetchone
from .model import Patient
from .repository import PatientRepository

_COLUMNS = """
    patient_id, name, sector, guardian_id, guardian_email, guardian_name,
    guardian_email_2, guardian_name_2, staff_id, weekly_hours, hourly_rate, is_active
"""


def _to_patient(row: dict[str, Any]) -> Patient:
    return Patient(
        patient_id=int(row["patient_id"]),
        name=row["name"],
        sector=Sector(row["sector"]),
        guardian_id=row.get("guardian_id"),
        guardian_email=row["guardian_email"],
        guardian_name=row["guardian_name"],
        guardian_email_2=row.get("guardian_email_2"),
        guardian_name_2=row.get("guardian_name_2"),
        staff_id=row.get("staff_id"),
        weekly_hours=as_float(row.get("weekly_hours")),
        hourly_rate=as_float(row.get("hourly_rate")),
        is_active=bool(row.get("is_active", True)),
    )


class MySQLPatientRepository(PatientRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, patient_id: int) -> Optional[Patient]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM patients WHERE patient_id=%s", (int(patient_id),))
            row = fetchone(cur)
            return _to_patient(row) if row else None

    def find_by_name_and_guardian(self, *, name: str, guardian_email: str) -> Optional[Patient]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM patients WHERE name=%s AND guardian_email=%s LIMIT 1",
                (name, guardian_email),
            )
            row = fetchone(cur)
            return _to_patient(row) if row else None

    def create_patient(
        self,
        *,
        name: str,
        sector: Sector,
        guardian_id: Optional[int],
        guardian_email: str,
        guardian_name: str,
        guardian_email_2: Optional[str],
        guardian_name_2: Optional[str],
        staff_id: Optional[int],
        weekly_hours: Optional[float],
        hourly_rate: Optional[float],
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO patients(
                    name, sector, guardian_id, guardian_email, guardian_name,
                    guardian_email_2, guardian_name_2, staff_id, weekly_hours, hourly_rate, is_active
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,1)
                """,
                (
                    name,
                    sector.value,
                    guardian_id,
                    guardian_email,
                    guardian_name,
                    guardian_email_2,
                    guardian_name_2,
                    staff_id,
                    weekly_hours,
                    hourly_rate,
                ),
            )
            return int(cur.lastrowid)

    def update_patient(
        self,
        patient_id: int,
        *,
        name: str,
        sector: Sector,
        staff_id: Optional[int],
        weekly_hours: Optional[float],
        hourly_rate: Optional[float],
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE patients
                SET name=%s, sector=%s, staff_id=%s, weekly_hours=%s, hourly_rate=%s
                WHERE patient_id=%s
                """,
                (name, sector.value, staff_id, weekly_hours, hourly_rate, int(patient_id)),
            )
            return cur.rowcount > 0

    def set_hourly_rate(self, patient_id: int, hourly_rate: Optional[float]) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE patients SET hourly_rate=%s WHERE patient_id=%s", (hourly_rate, int(patient_id)))
            return cur.rowcount > 0

    def delete_by_id(self, patient_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM patients WHERE patient_id=%s", (int(patient_id),))
            return cur.rowcount > 0

    def count_by_guardian_email(self, email: str, *, exclude_patient_id: Optional[int] = None) -> int:
        sql = "SELECT COUNT(*) AS n FROM patients WHERE (guardian_email=%s OR guardian_email_2=%s)"
        params: list[object] = [email, email]
        if exclude_patient_id is not None:
            sql += " AND patient_id<>%s"
            params.append(int(exclude_patient_id))

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            row = fetchone(cur)
            return int(row["n"]) if row else 0

    def unassign_staff(self, staff_id: int) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE patients SET staff_id=NULL WHERE staff_id=%s", (int(staff_id),))
            return int(cur.rowcount)

    def list_patients(
        self,
        *,
        sector: Optional[Sector] = None,
        staff_id: Optional[int] = None,
        guardian_email: Optional[str] = None,
    ) -> Sequence[Patient]:
        clauses = ["is_active=1"]
        params: list[object] = []

        if sector is not None:
            clauses.append("sector=%s")
            params.append(sector.value)
        if staff_id is not None:
            clauses.append("staff_id=%s")
            params.append(int(staff_id))
        if guardian_email is not None:
            clauses.append("(guardian_email=%s OR guardian_email_2=%s)")
            params.extend([guardian_email, guardian_email])

        where = " AND ".join(clauses)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM patients WHERE {where} ORDER BY name", tuple(params))
            return [_to_patient(r) for r in fetchall(cur)]
