from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Optional


@dataclass(frozen=True)
class GuardianBillingRow:
    """What the guardians of one patient owe for the period."""

    patient_id: int
    patient_name: str
    sector: str
    guardian_name: str
    guardian_email: str
    hourly_rate: float
    confirmed_count: int
    pending_count: int
    confirmed_hours: float
    pending_hours: float
    confirmed_value: float
    pending_value: float
    total_value: float
    confirmation_rate: float
    at_risk: bool

    @property
    def total_count(self) -> int:
        return self.confirmed_count + self.pending_count

    def to_dict(self) -> dict:
        data = asdict(self)
        data["total_count"] = self.total_count
        data["confirmation_rate"] = round(self.confirmation_rate, 1)
        return data


@dataclass(frozen=True)
class GuardianBillingSummary:
    patient_count: int = 0
    confirmed_hours: float = 0.0
    pending_hours: float = 0.0
    confirmed_revenue: float = 0.0
    pending_revenue: float = 0.0
    total_revenue: float = 0.0
    at_risk_count: int = 0


@dataclass(frozen=True)
class StaffPaymentRow:
    """What the clinic owes one staff member for the period."""

    staff_id: int
    name: str
    sector: Optional[str]
    hourly_rate: float
    supervision_rate: float
    session_count: int
    supervision_count: int
    session_hours: float
    supervision_hours: float
    session_payment: float
    supervision_payment: float
    total_payment: float

    @property
    def total_hours(self) -> float:
        return self.session_hours + self.supervision_hours

    def to_dict(self) -> dict:
        data = asdict(self)
        data["total_hours"] = self.total_hours
        return data


@dataclass(frozen=True)
class StaffPaymentSummary:
    staff_count: int = 0
    session_hours: float = 0.0
    supervision_hours: float = 0.0
    session_payments: float = 0.0
    supervision_payments: float = 0.0
    total_payments: float = 0.0


@dataclass(frozen=True)
class GuardianBillingReport:
    month: int
    year: int
    rows: list[GuardianBillingRow] = field(default_factory=list)
    summary: GuardianBillingSummary = field(default_factory=GuardianBillingSummary)

    def to_dict(self) -> dict:
        return {
            "month": self.month,
            "year": self.year,
            "rows": [r.to_dict() for r in self.rows],
            "summary": asdict(self.summary),
        }


@dataclass(frozen=True)
class StaffPaymentReport:
    month: int
    year: int
    rows: list[StaffPaymentRow] = field(default_factory=list)
    summary: StaffPaymentSummary = field(default_factory=StaffPaymentSummary)

    def to_dict(self) -> dict:
        return {
            "month": self.month,
            "year": self.year,
            "rows": [r.to_dict() for r in self.rows],
            "summary": asdict(self.summary),
        }
