from __future__ import annotations

from datetime import date, datetime, time
from typing import Iterable, Optional, Protocol, Sequence

from ..core.enums import AttendanceStage
from .model import Attendance


class AttendanceRepository(Protocol):
    def get_by_id(self, attendance_id: int) -> Optional[Attendance]:
        raise NotImplementedError

    def create_attendance(
        self,
        *,
        patient_id: int,
        staff_id: int,
        performed_by: int,
        session_date: date,
        start_time: time,
        end_time: time,
        hours: float,
        observations: Optional[str],
        is_substitution: bool,
    ) -> int:
        raise NotImplementedError

    def mark_stage(
        self,
        *,
        attendance_id: int,
        stage: AttendanceStage,
        actor_id: int,
        at: datetime,
        expected_version: int,
    ) -> bool:
        """Stamp ``stage`` and bump the version.

        Returns False when the stored version no longer equals
        ``expected_version``.
        """

        raise NotImplementedError

    def delete_by_id(self, attendance_id: int) -> bool:
        raise NotImplementedError

    def delete_for_patient(self, patient_id: int) -> int:
        raise NotImplementedError

    def delete_for_staff(self, staff_id: int) -> int:
        """Delete attendances credited to ``staff_id``."""

        raise NotImplementedError

    def list_in_period(
        self,
        start_date: date,
        end_date: date,
        *,
        patient_ids: Optional[Iterable[int]] = None,
        staff_id: Optional[int] = None,
        involving_user_id: Optional[int] = None,
    ) -> Sequence[Attendance]:
        """Attendances dated within ``[start_date, end_date]``.

        ``involving_user_id`` matches rows credited to *or* performed by the
        user.
        """

        raise NotImplementedError
