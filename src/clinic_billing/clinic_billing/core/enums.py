from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """User roles used for authorization."""

    GUARDIAN = "guardian"
    STAFF = "staff"
    COORDINATOR = "coordinator"
    SECTOR_ADMIN = "sector_admin"
    GENERAL_ADMIN = "general_admin"
    BILLING_GUARDIANS = "billing_guardians"
    BILLING_STAFF = "billing_staff"

    @property
    def requires_sector(self) -> bool:
        return self in {Role.STAFF, Role.COORDINATOR, Role.SECTOR_ADMIN}


class Sector(str, Enum):
    """Fixed program tracks partitioning patients, staff and rates."""

    ABA = "aba"
    DENVER = "denver"
    GRUPO = "grupo"
    ESCOLAR = "escolar"


class AttendanceStage(int, Enum):
    """Lifecycle stage of an attendance, ordered so stages compare with < / >=."""

    PENDING = 0
    CONFIRMED = 1
    APPROVED = 2
    LAUNCHED = 3

    @property
    def label(self) -> str:
        return self.name.lower()
