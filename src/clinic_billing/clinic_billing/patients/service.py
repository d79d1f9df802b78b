from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional, Sequence

from werkzeug.security import generate_password_hash

from ..attendance.repository import AttendanceRepository
from ..common.validators import normalize_email, optional_number, require_email, require_non_empty
from ..core.constants import DEFAULT_GUARDIAN_PASSWORD
from ..core.enums import Role, Sector
from ..core.exceptions import ConflictError, DomainError, NotFoundError, ValidationError
from ..core.identity import Identity, parse_sector
from ..core.permissions import MANAGE_PATIENT_ROLES, PATIENT_RATE_ROLES
from ..database.unit_of_work import NullUnitOfWork, UnitOfWork
from ..users.model import User
from ..users.repository import UserRepository
from .model import Patient
from .repository import PatientRepository

logger = logging.getLogger(__name__)

_UNSET = object()


@dataclass(frozen=True)
class GuardianInput:
    email: Optional[str]
    name: Optional[str] = None


@dataclass(frozen=True)
class PatientCreationResult:
    patient_id: int
    guardian_id: int
    created_guardians: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class PatientDeletionResult:
    attendances_deleted: int
    guardians_deleted: list[str] = field(default_factory=list)
    guardians_retained: list[str] = field(default_factory=list)


class PatientService:
    """Patients plus the guardian accounts that hang off them.

    Creating a patient provisions any missing guardian User; deleting one
    removes its attendances and any guardian no other patient references.
    """

    def __init__(
        self,
        patients: PatientRepository,
        users: UserRepository,
        attendance: AttendanceRepository,
        uow: Optional[UnitOfWork] = None,
        *,
        default_guardian_password: str = DEFAULT_GUARDIAN_PASSWORD,
    ):
        self._patients = patients
        self._users = users
        self._attendance = attendance
        self._uow = uow or NullUnitOfWork()
        self._default_guardian_password = default_guardian_password

    def get_patient(self, patient_id: int) -> Patient:
        patient = self._patients.get_by_id(int(patient_id))
        if not patient:
            raise NotFoundError("Patient not found")
        return patient

    def _require_staff(self, staff_id) -> Optional[int]:
        if staff_id in (None, ""):
            return None
        try:
            staff_id = int(staff_id)
        except (TypeError, ValueError):
            raise ValidationError("Staff id must be an integer")
        staff = self._users.get_by_id(staff_id)
        if not staff or staff.role != Role.STAFF:
            raise ValidationError("Assigned staff member not found")
        return staff_id

    def _ensure_guardian(self, email: str, name: Optional[str], created: list[str]) -> User:
        existing = self._users.get_by_email(email)
        if existing:
            if existing.role != Role.GUARDIAN:
                raise ConflictError(f"Email {email} already belongs to a non-guardian account")
            return existing

        name = require_non_empty(name or "", f"Guardian name for {email}")
        guardian_id = self._users.create_user(
            name=name,
            email=email,
            password_hash=generate_password_hash(self._default_guardian_password),
            role=Role.GUARDIAN,
            sector=None,
        )
        created.append(email)
        logger.info("Guardian account %s provisioned for %s", guardian_id, email)

        guardian = self._users.get_by_id(guardian_id)
        if not guardian:
            raise NotFoundError("Guardian account could not be loaded after creation")
        return guardian

    def create_patient(
        self,
        identity: Identity,
        *,
        name: str,
        sector: Sector | str,
        guardian: GuardianInput,
        second_guardian: Optional[GuardianInput] = None,
        staff_id=None,
        weekly_hours=None,
        hourly_rate=None,
    ) -> PatientCreationResult:
        identity.require(MANAGE_PATIENT_ROLES, "Only administrators can create patients")

        name = require_non_empty(name, "Patient name")
        sector = sector if isinstance(sector, Sector) else parse_sector(sector)
        if sector is None:
            raise ValidationError("Sector is required")
        identity.require_sector(sector, "You can only create patients in your own sector")

        email_1 = require_email(guardian.email, "Guardian email")
        email_2 = None
        if second_guardian is not None and normalize_email(second_guardian.email):
            email_2 = require_email(second_guardian.email, "Second guardian email")
            if email_2 == email_1:
                raise ValidationError("The two guardian emails must differ")

        weekly = optional_number(weekly_hours, "Weekly hours")
        rate = optional_number(hourly_rate, "Hourly rate")

        if self._patients.find_by_name_and_guardian(name=name, guardian_email=email_1):
            raise ConflictError("A patient with this name and guardian already exists")

        staff_id = self._require_staff(staff_id)

        created: list[str] = []
        with self._uow.transaction():
            first = self._ensure_guardian(email_1, guardian.name, created)
            second = None
            if email_2:
                second = self._ensure_guardian(email_2, second_guardian.name, created)

            patient_id = self._patients.create_patient(
                name=name,
                sector=sector,
                guardian_id=first.user_id,
                guardian_email=first.email,
                guardian_name=first.name,
                guardian_email_2=second.email if second else None,
                guardian_name_2=second.name if second else None,
                staff_id=staff_id,
                weekly_hours=weekly,
                hourly_rate=rate,
            )

        logger.info("Patient %s created by %s (new guardians: %s)", patient_id, identity.user_id, created or "none")
        return PatientCreationResult(patient_id=patient_id, guardian_id=first.user_id, created_guardians=created)

    def delete_patient(self, identity: Identity, *, patient_id: int) -> PatientDeletionResult:
        identity.require(MANAGE_PATIENT_ROLES, "Only administrators can delete patients")

        patient = self.get_patient(patient_id)
        identity.require_sector(patient.sector)

        deleted: list[str] = []
        retained: list[str] = []
        with self._uow.transaction():
            attendances = self._attendance.delete_for_patient(patient.patient_id)

            for email in patient.guardian_emails:
                try:
                    others = self._patients.count_by_guardian_email(email, exclude_patient_id=patient.patient_id)
                    if others > 0:
                        retained.append(email)
                        continue
                    if self._users.delete_guardian_by_email(email):
                        deleted.append(email)
                except DomainError:
                    logger.warning("Could not remove guardian %s of patient %s", email, patient.patient_id, exc_info=True)

            if not self._patients.delete_by_id(patient.patient_id):
                raise NotFoundError("Patient not found")

        logger.info(
            "Patient %s deleted by %s (attendances=%s, guardians deleted=%s, retained=%s)",
            patient.patient_id,
            identity.user_id,
            attendances,
            deleted,
            retained,
        )
        return PatientDeletionResult(attendances_deleted=attendances, guardians_deleted=deleted, guardians_retained=retained)

    def update_patient(
        self,
        identity: Identity,
        *,
        patient_id: int,
        name: Optional[str] = None,
        sector: Optional[Sector | str] = None,
        staff_id=_UNSET,
        weekly_hours=_UNSET,
        hourly_rate=_UNSET,
    ) -> Patient:
        """Partial update; omitted fields keep their stored value."""

        identity.require(MANAGE_PATIENT_ROLES, "Only administrators can edit patients")

        patient = self.get_patient(patient_id)
        identity.require_sector(patient.sector)

        new_name = require_non_empty(name, "Patient name") if name is not None else patient.name
        new_sector = patient.sector
        if sector is not None:
            new_sector = sector if isinstance(sector, Sector) else parse_sector(sector)
            if new_sector is None:
                raise ValidationError("Sector is required")
            identity.require_sector(new_sector, "You can only move patients within your own sector")

        new_staff = patient.staff_id if staff_id is _UNSET else self._require_staff(staff_id)
        new_weekly = patient.weekly_hours if weekly_hours is _UNSET else optional_number(weekly_hours, "Weekly hours")
        new_rate = patient.hourly_rate if hourly_rate is _UNSET else optional_number(hourly_rate, "Hourly rate")

        self._patients.update_patient(
            patient.patient_id,
            name=new_name,
            sector=new_sector,
            staff_id=new_staff,
            weekly_hours=new_weekly,
            hourly_rate=new_rate,
        )
        return self.get_patient(patient.patient_id)

    def set_patient_rate(self, identity: Identity, *, patient_id: int, hourly_rate) -> None:
        identity.require(PATIENT_RATE_ROLES)

        rate = optional_number(hourly_rate, "Hourly rate")
        patient = self.get_patient(patient_id)
        identity.require_sector(patient.sector)

        if not self._patients.set_hourly_rate(patient.patient_id, rate):
            raise NotFoundError("Patient not found")

    def list_patients(self, identity: Identity, *, for_substitution: bool = False) -> Sequence[Patient]:
        if identity.role == Role.GUARDIAN:
            user = self._users.get_by_id(identity.user_id)
            if not user:
                return []
            return self._patients.list_patients(guardian_email=user.email)

        if identity.role == Role.STAFF:
            if for_substitution:
                return self._patients.list_patients(sector=identity.sector)
            return self._patients.list_patients(staff_id=identity.user_id)

        if not identity.sees_all_sectors:
            return self._patients.list_patients(sector=identity.sector)

        return self._patients.list_patients()
