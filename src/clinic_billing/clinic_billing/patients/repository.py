from __future__ import annotations

from typing import Optional, Protocol, Sequence

from ..core.enums import Sector
from .model import Patient


class PatientRepository(Protocol):
    def get_by_id(self, patient_id: int) -> Optional[Patient]:
        raise NotImplementedError

    def find_by_name_and_guardian(self, *, name: str, guardian_email: str) -> Optional[Patient]:
        raise NotImplementedError

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
        raise NotImplementedError

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
        raise NotImplementedError

    def set_hourly_rate(self, patient_id: int, hourly_rate: Optional[float]) -> bool:
        raise NotImplementedError

    def delete_by_id(self, patient_id: int) -> bool:
        raise NotImplementedError

    def count_by_guardian_email(self, email: str, *, exclude_patient_id: Optional[int] = None) -> int:
        """Patients referencing ``email`` as first or second guardian."""

        raise NotImplementedError

    def unassign_staff(self, staff_id: int) -> int:
        raise NotImplementedError

    def list_patients(
        self,
        *,
        sector: Optional[Sector] = None,
        staff_id: Optional[int] = None,
        guardian_email: Optional[str] = None,
    ) -> Sequence[Patient]:
        raise NotImplementedError
