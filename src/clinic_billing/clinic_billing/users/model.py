from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..core.enums import Role, Sector


@dataclass(frozen=True)
class User:
    """Domain entity: User.

    Note: plain data object (no DB access code). Email is stored lowercase.
    """

    user_id: int
    name: str
    email: str
    password_hash: str
    role: Role
    sector: Optional[Sector]
    hourly_rate: Optional[float] = None
    is_active: bool = True

    def to_dict(self) -> dict:
        return {
            "id": self.user_id,
            "name": self.name,
            "email": self.email,
            "role": self.role.value,
            "sector": self.sector.value if self.sector else None,
            "hourly_rate": self.hourly_rate,
            "active": self.is_active,
        }
