from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Sequence

from werkzeug.security import check_password_hash, generate_password_hash

from ..attendance.repository import AttendanceRepository
from ..common.validators import optional_number, require_email, require_min_length, require_non_empty
from ..core.enums import Role, Sector
from ..core.exceptions import AuthenticationError, AuthorizationError, ConflictError, NotFoundError, ValidationError
from ..core.identity import Identity, parse_sector
from ..core.permissions import LIST_USER_ROLES, MANAGE_USER_ROLES, PRIVILEGED_ROLES, STAFF_RATE_ROLES
from ..database.unit_of_work import NullUnitOfWork, UnitOfWork
from ..patients.repository import PatientRepository
from ..supervisions.repository import SupervisionRepository
from .model import User
from .repository import UserRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionUser:
    """What we store into Flask session after login."""

    user_id: int
    name: str
    role: Role
    sector: Optional[Sector]

    @property
    def identity(self) -> Identity:
        return Identity(user_id=self.user_id, role=self.role, sector=self.sector)


@dataclass(frozen=True)
class UserDeletionResult:
    attendances_deleted: int = 0
    supervisions_deleted: int = 0
    patients_unassigned: int = 0


class AuthService:
    """Use case: authenticate user (login)."""

    def __init__(self, users: UserRepository):
        self._users = users

    def authenticate(self, email: str, password: str) -> SessionUser:
        user = self._users.get_by_email((email or "").strip().lower())
        if not user or not user.is_active:
            raise AuthenticationError("Invalid email or password")

        try:
            ok = check_password_hash(user.password_hash, password or "")
        except ValueError:
            # placeholder or corrupted hashes
            ok = False

        if not ok:
            raise AuthenticationError("Invalid email or password")

        return SessionUser(user_id=user.user_id, name=user.name, role=user.role, sector=user.sector)


class UserService:
    """Use case: manage users (admin)."""

    def __init__(
        self,
        users: UserRepository,
        patients: PatientRepository,
        attendance: AttendanceRepository,
        supervisions: SupervisionRepository,
        uow: Optional[UnitOfWork] = None,
    ):
        self._users = users
        self._patients = patients
        self._attendance = attendance
        self._supervisions = supervisions
        self._uow = uow or NullUnitOfWork()

    def get_user(self, user_id: int) -> User:
        user = self._users.get_by_id(int(user_id))
        if not user:
            raise NotFoundError("User not found")
        return user

    def list_users(
        self,
        identity: Identity,
        *,
        role: Optional[Role] = None,
        sector: Optional[Sector] = None,
    ) -> Sequence[User]:
        identity.require(LIST_USER_ROLES)

        if not identity.sees_all_sectors:
            if sector is not None and sector != identity.sector:
                raise AuthorizationError("You can only list users of your own sector")
            sector = identity.sector

        return self._users.list_users(role=role, sector=sector)

    def create_user(
        self,
        identity: Identity,
        *,
        name: str,
        email: str,
        password: str,
        role: Role | str,
        sector: Optional[Sector | str] = None,
        hourly_rate=None,
    ) -> int:
        identity.require(MANAGE_USER_ROLES, "Only administrators can create users")

        name = require_non_empty(name, "Name")
        email = require_email(email, "Email")
        require_min_length(password, "Password", 6)
        if not isinstance(role, Role):
            try:
                role = Role((role or "").strip().lower())
            except ValueError:
                raise ValidationError(f"Invalid role: {role!r}")
        if not isinstance(sector, Sector):
            sector = parse_sector(sector)
        rate = optional_number(hourly_rate, "Hourly rate")

        if role in PRIVILEGED_ROLES and identity.role != Role.GENERAL_ADMIN:
            raise AuthorizationError("Only the general administrator can create administrative accounts")

        if role.requires_sector:
            if sector is None:
                raise ValidationError("Sector is required for this role")
            if not identity.sees_all_sectors and sector != identity.sector:
                raise AuthorizationError("You can only create users in your own sector")
        else:
            sector = None

        if role != Role.STAFF:
            rate = None

        if self._users.get_by_email(email):
            raise ConflictError("A user with this email already exists")

        user_id = self._users.create_user(
            name=name,
            email=email,
            password_hash=generate_password_hash(password),
            role=role,
            sector=sector,
            hourly_rate=rate,
        )
        logger.info("User %s created (%s) by %s", user_id, role.value, identity.user_id)
        return user_id

    def set_staff_rate(self, identity: Identity, *, user_id: int, hourly_rate) -> None:
        identity.require(STAFF_RATE_ROLES)

        rate = optional_number(hourly_rate, "Hourly rate")
        user = self.get_user(user_id)
        if user.role != Role.STAFF:
            raise ValidationError("Hourly rates apply to staff members only")
        if not identity.sees_all_sectors and user.sector != identity.sector:
            raise AuthorizationError("This staff member belongs to another sector")

        if not self._users.set_hourly_rate(user.user_id, rate):
            raise NotFoundError("User not found")

    def delete_user(self, identity: Identity, *, user_id: int) -> UserDeletionResult:
        identity.require(MANAGE_USER_ROLES, "Only administrators can delete users")

        user = self.get_user(user_id)
        if user.role == Role.GENERAL_ADMIN:
            raise ValidationError("The general administrator account cannot be deleted")
        if user.user_id == identity.user_id:
            raise ValidationError("You cannot delete your own account")
        if user.role in PRIVILEGED_ROLES and identity.role != Role.GENERAL_ADMIN:
            raise AuthorizationError("Only the general administrator can delete administrative accounts")
        if not identity.sees_all_sectors and user.sector != identity.sector:
            raise AuthorizationError("This user belongs to another sector")

        if user.role == Role.GUARDIAN and self._patients.count_by_guardian_email(user.email) > 0:
            raise ConflictError("This guardian is still linked to a patient")

        result = UserDeletionResult()
        with self._uow.transaction():
            if user.role == Role.STAFF:
                result = UserDeletionResult(
                    attendances_deleted=self._attendance.delete_for_staff(user.user_id),
                    supervisions_deleted=self._supervisions.delete_for_staff(user.user_id),
                    patients_unassigned=self._patients.unassign_staff(user.user_id),
                )
            if not self._users.delete_by_id(user.user_id):
                raise NotFoundError("User not found")

        logger.info(
            "User %s deleted by %s (attendances=%s, supervisions=%s, unassigned=%s)",
            user.user_id,
            identity.user_id,
            result.attendances_deleted,
            result.supervisions_deleted,
            result.patients_unassigned,
        )
        return result
