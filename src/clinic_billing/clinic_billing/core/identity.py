from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional

from .enums import Role, Sector
from .exceptions import AuthorizationError, ValidationError


_PREFIXED_ROLES = {
    "at": Role.STAFF,
    "coordenacao": Role.COORDINATOR,
    "adm": Role.SECTOR_ADMIN,
}

_FIXED_TYPES = {
    "pais": Role.GUARDIAN,
    "adm-geral": Role.GENERAL_ADMIN,
    "financeiro-pct": Role.BILLING_GUARDIANS,
    "financeiro-ats": Role.BILLING_STAFF,
}


def parse_sector(value: Optional[str]) -> Optional[Sector]:
    v = (value or "").strip().lower()
    if not v:
        return None
    try:
        return Sector(v)
    except ValueError:
        raise ValidationError(f"Invalid sector: {value!r}")


def parse_user_type(value: str) -> tuple[Role, Optional[Sector]]:
    """Decode a compound user type (``adm-aba``, ``at-denver``, ``pais``...).

    Also accepts a bare role value (``sector_admin``); the sector then has to
    come from elsewhere.
    """

    v = (value or "").strip().lower()
    if v in _FIXED_TYPES:
        return _FIXED_TYPES[v], None

    prefix, _, suffix = v.partition("-")
    if prefix in _PREFIXED_ROLES and suffix:
        return _PREFIXED_ROLES[prefix], parse_sector(suffix)

    try:
        return Role(v), None
    except ValueError:
        raise ValidationError(f"Invalid user type: {value!r}")


@dataclass(frozen=True)
class Identity:
    """The authenticated caller, decoded once at the request boundary."""

    user_id: int
    role: Role
    sector: Optional[Sector] = None

    def __post_init__(self):
        if self.role.requires_sector and self.sector is None:
            raise AuthorizationError(f"Role {self.role.value} requires a sector")

    @classmethod
    def from_user_type(cls, user_id: int, user_type: str) -> "Identity":
        role, sector = parse_user_type(user_type)
        return cls(user_id=int(user_id), role=role, sector=sector)

    @property
    def is_admin(self) -> bool:
        return self.role in {Role.SECTOR_ADMIN, Role.GENERAL_ADMIN}

    @property
    def sees_all_sectors(self) -> bool:
        return self.sector is None or self.role == Role.GENERAL_ADMIN

    def require(self, allowed: Iterable[Role], message: str = "You do not have permission for this action") -> None:
        if self.role not in set(allowed):
            raise AuthorizationError(message)

    def require_sector(self, sector: Optional[Sector], message: str = "This record belongs to another sector") -> None:
        if not self.sees_all_sectors and sector != self.sector:
            raise AuthorizationError(message)
