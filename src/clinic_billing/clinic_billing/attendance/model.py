from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time
from typing import Optional

from ..core.enums import AttendanceStage


@dataclass(frozen=True)
class Attendance:
    """Domain entity: one billable therapy session.

    ``staff_id`` is the credited (paid) staff member once substitution has been
    resolved; ``performed_by`` is whoever actually submitted the visit.
    ``hours`` is frozen at creation and never recomputed.
    """

    attendance_id: int
    patient_id: int
    staff_id: int
    performed_by: int
    session_date: date
    start_time: time
    end_time: time
    hours: float
    observations: Optional[str] = None
    is_substitution: bool = False
    confirmed_at: Optional[datetime] = None
    confirmed_by: Optional[int] = None
    approved_at: Optional[datetime] = None
    approved_by: Optional[int] = None
    launched_at: Optional[datetime] = None
    launched_by: Optional[int] = None
    version: int = 0

    @property
    def is_confirmed(self) -> bool:
        return self.confirmed_at is not None

    @property
    def is_approved(self) -> bool:
        return self.approved_at is not None

    @property
    def is_launched(self) -> bool:
        return self.launched_at is not None

    @property
    def stage(self) -> AttendanceStage:
        if self.is_launched:
            return AttendanceStage.LAUNCHED
        if self.is_approved:
            return AttendanceStage.APPROVED
        if self.is_confirmed:
            return AttendanceStage.CONFIRMED
        return AttendanceStage.PENDING

    def to_dict(self) -> dict:
        def _ts(value: Optional[datetime]) -> Optional[str]:
            return value.isoformat(timespec="seconds") if value else None

        return {
            "id": self.attendance_id,
            "patient_id": self.patient_id,
            "staff_id": self.staff_id,
            "performed_by": self.performed_by,
            "date": self.session_date.isoformat(),
            "start_time": self.start_time.strftime("%H:%M"),
            "end_time": self.end_time.strftime("%H:%M"),
            "hours": self.hours,
            "observations": self.observations,
            "is_substitution": self.is_substitution,
            "stage": self.stage.label,
            "confirmed": self.is_confirmed,
            "confirmed_at": _ts(self.confirmed_at),
            "confirmed_by": self.confirmed_by,
            "approved": self.is_approved,
            "approved_at": _ts(self.approved_at),
            "approved_by": self.approved_by,
            "launched": self.is_launched,
            "launched_at": _ts(self.launched_at),
            "launched_by": self.launched_by,
            "version": self.version,
        }
