from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Callable, Optional, Sequence

from ..common.datetime_utils import month_bounds, now_local, parse_clock_time, parse_iso_date
from ..core.enums import AttendanceStage, Role
from ..core.exceptions import ConcurrencyError, InvalidTransitionError, NotFoundError, ValidationError
from ..core.identity import Identity
from ..core.permissions import (
    APPROVE_ATTENDANCE_ROLES,
    CONFIRM_ATTENDANCE_ROLES,
    LAUNCH_ATTENDANCE_ROLES,
    REJECT_ATTENDANCE_ROLES,
    SUBMIT_ATTENDANCE_ROLES,
)
from ..patients.model import Patient
from ..patients.repository import PatientRepository
from ..payroll.calculator.base import HoursCalculator
from ..payroll.calculator.exact_calculator import ExactHoursCalculator
from ..users.repository import UserRepository
from .model import Attendance
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)


class AttendanceService:
    """Attendance lifecycle: Pending -> Confirmed -> Approved -> Launched.

    Each transition is gated by role, must follow the previous stage and is
    written as a compare-and-swap on the row version. Rejection deletes the
    record.
    """

    def __init__(
        self,
        attendance: AttendanceRepository,
        patients: PatientRepository,
        users: UserRepository,
        *,
        calculator: Optional[HoursCalculator] = None,
        clock: Callable[[], datetime] = now_local,
    ):
        self._attendance = attendance
        self._patients = patients
        self._users = users
        self._calculator = calculator or ExactHoursCalculator()
        self._clock = clock

    def _get_patient(self, patient_id) -> Patient:
        try:
            patient_id = int(patient_id)
        except (TypeError, ValueError):
            raise ValidationError("Patient id must be an integer")
        patient = self._patients.get_by_id(patient_id)
        if not patient:
            raise NotFoundError("Patient not found")
        return patient

    def get_attendance(self, attendance_id: int) -> Attendance:
        att = self._attendance.get_by_id(int(attendance_id))
        if not att:
            raise NotFoundError("Attendance not found")
        return att

    def _resolve_staff(self, identity: Identity, patient: Patient, *, staff_id, is_substitution: bool) -> int:
        """Who gets credited (and paid) for the visit."""

        if is_substitution:
            return patient.staff_id or identity.user_id

        if identity.role == Role.STAFF:
            return identity.user_id

        if staff_id not in (None, ""):
            try:
                staff_id = int(staff_id)
            except (TypeError, ValueError):
                raise ValidationError("Staff id must be an integer")
            staff = self._users.get_by_id(staff_id)
            if not staff or staff.role != Role.STAFF:
                raise ValidationError("Staff member not found")
            return staff_id

        return patient.staff_id or identity.user_id

    def create_attendance(
        self,
        identity: Identity,
        *,
        patient_id,
        session_date: date | str,
        start_time: str,
        end_time: str,
        observations: Optional[str] = None,
        is_substitution: bool = False,
        staff_id=None,
    ) -> Attendance:
        identity.require(SUBMIT_ATTENDANCE_ROLES, "You cannot register attendances")

        if not isinstance(session_date, date):
            session_date = parse_iso_date(session_date)
        start = parse_clock_time(start_time)
        end = parse_clock_time(end_time)
        hours = self._calculator.billable_hours(start, end)

        patient = self._get_patient(patient_id)
        identity.require_sector(patient.sector, "This patient belongs to another sector")

        credited = self._resolve_staff(identity, patient, staff_id=staff_id, is_substitution=bool(is_substitution))

        attendance_id = self._attendance.create_attendance(
            patient_id=patient.patient_id,
            staff_id=credited,
            performed_by=identity.user_id,
            session_date=session_date,
            start_time=start,
            end_time=end,
            hours=hours,
            observations=(observations or "").strip() or None,
            is_substitution=bool(is_substitution),
        )
        logger.info(
            "Attendance %s created for patient %s by %s (credited to %s, %.2fh)",
            attendance_id,
            patient.patient_id,
            identity.user_id,
            credited,
            hours,
        )
        return self.get_attendance(attendance_id)

    def _advance(self, identity: Identity, attendance_id: int, stage: AttendanceStage) -> Attendance:
        att = self.get_attendance(attendance_id)
        patient = self._patients.get_by_id(att.patient_id)
        if patient:
            identity.require_sector(patient.sector, "This attendance belongs to another sector")

        if att.stage >= stage:
            raise InvalidTransitionError(f"Attendance is already {att.stage.label}")
        previous = AttendanceStage(stage - 1)
        if att.stage != previous:
            raise InvalidTransitionError(f"Attendance must be {previous.label} before it can be {stage.label}")

        ok = self._attendance.mark_stage(
            attendance_id=att.attendance_id,
            stage=stage,
            actor_id=identity.user_id,
            at=self._clock(),
            expected_version=att.version,
        )
        if not ok:
            raise ConcurrencyError("Attendance was modified by another request, reload and try again")

        logger.info("Attendance %s %s by %s", att.attendance_id, stage.label, identity.user_id)
        return self.get_attendance(att.attendance_id)

    def confirm_attendance(self, identity: Identity, *, attendance_id: int) -> Attendance:
        identity.require(CONFIRM_ATTENDANCE_ROLES, "You cannot confirm attendances")
        return self._advance(identity, attendance_id, AttendanceStage.CONFIRMED)

    def approve_attendance(self, identity: Identity, *, attendance_id: int) -> Attendance:
        identity.require(APPROVE_ATTENDANCE_ROLES, "Only administrators can approve attendances")
        return self._advance(identity, attendance_id, AttendanceStage.APPROVED)

    def launch_attendance(self, identity: Identity, *, attendance_id: int) -> Attendance:
        identity.require(LAUNCH_ATTENDANCE_ROLES, "Only administrators can launch attendances")
        return self._advance(identity, attendance_id, AttendanceStage.LAUNCHED)

    def delete_attendance(self, identity: Identity, *, attendance_id: int) -> None:
        identity.require(REJECT_ATTENDANCE_ROLES, "You cannot reject attendances")

        att = self.get_attendance(attendance_id)
        patient = self._patients.get_by_id(att.patient_id)
        if patient:
            identity.require_sector(patient.sector, "This attendance belongs to another sector")

        if not self._attendance.delete_by_id(att.attendance_id):
            raise NotFoundError("Attendance not found")
        logger.info("Attendance %s rejected by %s (was %s)", att.attendance_id, identity.user_id, att.stage.label)

    def list_attendances(self, identity: Identity, *, month: int, year: int) -> Sequence[Attendance]:
        start, end = month_bounds(month, year)

        if identity.role == Role.STAFF:
            return self._attendance.list_in_period(start, end, involving_user_id=identity.user_id)

        if identity.role == Role.GUARDIAN:
            user = self._users.get_by_id(identity.user_id)
            if not user:
                return []
            patient_ids = [p.patient_id for p in self._patients.list_patients(guardian_email=user.email)]
            rows = self._attendance.list_in_period(start, end, patient_ids=patient_ids)
            return [a for a in rows if a.is_confirmed]

        if not identity.sees_all_sectors:
            patient_ids = [p.patient_id for p in self._patients.list_patients(sector=identity.sector)]
            return self._attendance.list_in_period(start, end, patient_ids=patient_ids)

        return self._attendance.list_in_period(start, end)
