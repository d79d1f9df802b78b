from datetime import date, time

import pytest

from clinic_billing.attendance.mysql_attendance_repository import MySQLAttendanceRepository
from clinic_billing.database.connection import DBConfig, DatabaseConnection
from clinic_billing.payroll.calculator.exact_calculator import ExactHoursCalculator

_INSERT_FIELDS = (
    "patient_id",
    "staff_id",
    "performed_by",
    "session_date",
    "start_time",
    "end_time",
    "duration_minutes",
    "observations",
    "is_substitution",
)


class TableCursor:
    """Stores inserted attendance rows and serves them back to SELECT by id."""

    def __init__(self, rows):
        self.rows = rows
        self.lastrowid = None
        self._result = None

    def execute(self, sql, params=None):
        if sql.strip().startswith("INSERT INTO attendances"):
            row = dict(zip(_INSERT_FIELDS, params))
            row.update(attendance_id=len(self.rows) + 1, version=0)
            self.rows.append(row)
            self.lastrowid = row["attendance_id"]
        elif sql.strip().startswith("SELECT"):
            self._result = next((r for r in self.rows if r["attendance_id"] == params[0]), None)

    def fetchone(self):
        return self._result

    def close(self):
        pass


class TableConn:
    def __init__(self, rows):
        self.rows = rows

    def cursor(self, dictionary=True):
        return TableCursor(self.rows)

    def commit(self):
        pass

    def rollback(self):
        pass

    def close(self):
        pass


@pytest.fixture
def repo_and_rows(monkeypatch):
    rows = []
    factory = DatabaseConnection(DBConfig(host="h", port=3306, user="u", password="p", database="d"))
    monkeypatch.setattr(factory, "connect", lambda: TableConn(rows))
    return MySQLAttendanceRepository(factory), rows


def test_twenty_minute_session_keeps_exact_hours(repo_and_rows):
    repo, rows = repo_and_rows
    hours = ExactHoursCalculator().hours("08:00", "08:20")

    attendance_id = repo.create_attendance(
        patient_id=1,
        staff_id=2,
        performed_by=2,
        session_date=date(2026, 3, 5),
        start_time=time(8, 0),
        end_time=time(8, 20),
        hours=hours,
        observations=None,
        is_substitution=False,
    )
    stored = repo.get_by_id(attendance_id)

    assert rows[0]["duration_minutes"] == 20
    assert stored.hours == hours == 20 / 60
    assert stored.hours * 60 == 20.0


def test_wraparound_session_minutes(repo_and_rows):
    repo, rows = repo_and_rows
    hours = ExactHoursCalculator().hours("23:50", "00:35")

    repo.create_attendance(
        patient_id=1,
        staff_id=2,
        performed_by=3,
        session_date=date(2026, 3, 5),
        start_time=time(23, 50),
        end_time=time(0, 35),
        hours=hours,
        observations="late",
        is_substitution=True,
    )

    assert rows[0]["duration_minutes"] == 45
    assert repo.get_by_id(1).hours == 0.75
    assert repo.get_by_id(1).is_substitution
