from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..core.enums import Sector


@dataclass(frozen=True)
class Patient:
    """Domain entity: Patient.

    The first guardian is linked by id (``guardian_id``) and email; the second
    guardian is linked by email only.
    """

    patient_id: int
    name: str
    sector: Sector
    guardian_email: str
    guardian_name: str
    guardian_id: Optional[int] = None
    guardian_email_2: Optional[str] = None
    guardian_name_2: Optional[str] = None
    staff_id: Optional[int] = None
    weekly_hours: Optional[float] = None
    hourly_rate: Optional[float] = None
    is_active: bool = True

    @property
    def guardian_emails(self) -> list[str]:
        return [e for e in (self.guardian_email, self.guardian_email_2) if e]

    def to_dict(self) -> dict:
        return {
            "id": self.patient_id,
            "name": self.name,
            "sector": self.sector.value,
            "guardian_id": self.guardian_id,
            "guardian_email": self.guardian_email,
            "guardian_name": self.guardian_name,
            "guardian_email_2": self.guardian_email_2,
            "guardian_name_2": self.guardian_name_2,
            "staff_id": self.staff_id,
            "weekly_hours": self.weekly_hours,
            "hourly_rate": self.hourly_rate,
            "active": self.is_active,
        }
