from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.repository import AttendanceRepository
from .attendance.service import AttendanceService
from .common.datetime_utils import now_local
from .core.constants import DEFAULT_GUARDIAN_PASSWORD
from .database.connection import DBConfig, DatabaseConnection
from .database.unit_of_work import NullUnitOfWork, UnitOfWork
from .patients.mysql_patient_repository import MySQLPatientRepository
from .patients.repository import PatientRepository
from .patients.service import PatientService
from .payroll.service import FinancialReportService
from .supervisions.mysql_supervision_repository import MySQLSupervisionRateRepository, MySQLSupervisionRepository
from .supervisions.repository import SupervisionRateRepository, SupervisionRepository
from .supervisions.service import SupervisionService
from .users.mysql_user_repository import MySQLUserRepository
from .users.repository import UserRepository
from .users.service import AuthService, UserService


@dataclass(frozen=True)
class Container:
    uow: UnitOfWork

    users_repo: UserRepository
    patients_repo: PatientRepository
    attendance_repo: AttendanceRepository
    supervisions_repo: SupervisionRepository
    rates_repo: SupervisionRateRepository

    auth_service: AuthService
    user_service: UserService
    patient_service: PatientService
    attendance_service: AttendanceService
    supervision_service: SupervisionService
    report_service: FinancialReportService


def wire_container(
    *,
    users_repo: UserRepository,
    patients_repo: PatientRepository,
    attendance_repo: AttendanceRepository,
    supervisions_repo: SupervisionRepository,
    rates_repo: SupervisionRateRepository,
    uow: Optional[UnitOfWork] = None,
    default_guardian_password: str = DEFAULT_GUARDIAN_PASSWORD,
    clock: Callable[[], datetime] = now_local,
) -> Container:
    """Build services on top of any repository implementation (MySQL or in-memory)."""

    uow = uow or NullUnitOfWork()

    return Container(
        uow=uow,
        users_repo=users_repo,
        patients_repo=patients_repo,
        attendance_repo=attendance_repo,
        supervisions_repo=supervisions_repo,
        rates_repo=rates_repo,
        auth_service=AuthService(users_repo),
        user_service=UserService(users_repo, patients_repo, attendance_repo, supervisions_repo, uow),
        patient_service=PatientService(
            patients_repo,
            users_repo,
            attendance_repo,
            uow,
            default_guardian_password=default_guardian_password,
        ),
        attendance_service=AttendanceService(attendance_repo, patients_repo, users_repo, clock=clock),
        supervision_service=SupervisionService(supervisions_repo, rates_repo, users_repo),
        report_service=FinancialReportService(attendance_repo, patients_repo, users_repo, supervisions_repo, rates_repo),
    )


def build_container(*, db_config: dict, default_guardian_password: str = DEFAULT_GUARDIAN_PASSWORD) -> Container:
    config = DBConfig(
        host=str(db_config["host"]),
        port=int(db_config.get("port", 3306)),
        user=str(db_config["user"]),
        password=str(db_config["password"]),
        database=str(db_config["database"]),
    )
    conn = DatabaseConnection.get_instance(config)

    return wire_container(
        users_repo=MySQLUserRepository(conn),
        patients_repo=MySQLPatientRepository(conn),
        attendance_repo=MySQLAttendanceRepository(conn),
        supervisions_repo=MySQLSupervisionRepository(conn),
        rates_repo=MySQLSupervisionRateRepository(conn),
        uow=conn,
        default_guardian_password=default_guardian_password,
    )
