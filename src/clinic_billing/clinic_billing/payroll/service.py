from __future__ import annotations

import logging
from collections import defaultdict
from typing import Optional

from ..attendance.repository import AttendanceRepository
from ..common.datetime_utils import month_bounds
from ..core.constants import RISK_CONFIRMATION_RATE, RISK_PENDING_HOURS
from ..core.identity import Identity
from ..core.permissions import GUARDIAN_BILLING_REPORT_ROLES, STAFF_PAYMENT_REPORT_ROLES
from ..patients.repository import PatientRepository
from ..supervisions.repository import SupervisionRateRepository, SupervisionRepository
from ..users.model import User
from ..users.repository import UserRepository
from .model import (
    GuardianBillingReport,
    GuardianBillingRow,
    GuardianBillingSummary,
    StaffPaymentReport,
    StaffPaymentRow,
    StaffPaymentSummary,
)

logger = logging.getLogger(__name__)


class FinancialReportService:
    """Monthly guardian-billing and staff-payment reports.

    Both are rebuilt from the stored attendances and supervisions on every
    call. An attendance counts as confirmed once it reached the confirmed
    stage (approved and launched included); its stored ``hours`` are used as-is.
    """

    def __init__(
        self,
        attendance: AttendanceRepository,
        patients: PatientRepository,
        users: UserRepository,
        supervisions: SupervisionRepository,
        rates: SupervisionRateRepository,
    ):
        self._attendance = attendance
        self._patients = patients
        self._users = users
        self._supervisions = supervisions
        self._rates = rates

    def guardian_billing_report(self, identity: Identity, *, month: int, year: int) -> GuardianBillingReport:
        identity.require(GUARDIAN_BILLING_REPORT_ROLES, "Only guardian billing can view this report")
        start, end = month_bounds(month, year)

        by_patient = defaultdict(list)
        for att in self._attendance.list_in_period(start, end):
            by_patient[att.patient_id].append(att)

        rows: list[GuardianBillingRow] = []
        for patient_id, items in by_patient.items():
            patient = self._patients.get_by_id(patient_id)
            if not patient:
                logger.warning("Attendances reference missing patient %s", patient_id)
                continue

            rate = patient.hourly_rate or 0.0
            confirmed = [a for a in items if a.is_confirmed]
            pending = [a for a in items if not a.is_confirmed]
            confirmed_hours = sum(a.hours for a in confirmed)
            pending_hours = sum(a.hours for a in pending)
            confirmed_value = confirmed_hours * rate
            pending_value = pending_hours * rate
            confirmation_rate = len(confirmed) / len(items) * 100

            rows.append(
                GuardianBillingRow(
                    patient_id=patient.patient_id,
                    patient_name=patient.name,
                    sector=patient.sector.value,
                    guardian_name=patient.guardian_name,
                    guardian_email=patient.guardian_email,
                    hourly_rate=rate,
                    confirmed_count=len(confirmed),
                    pending_count=len(pending),
                    confirmed_hours=confirmed_hours,
                    pending_hours=pending_hours,
                    confirmed_value=confirmed_value,
                    pending_value=pending_value,
                    total_value=confirmed_value + pending_value,
                    confirmation_rate=confirmation_rate,
                    at_risk=pending_hours > RISK_PENDING_HOURS or confirmation_rate < RISK_CONFIRMATION_RATE,
                )
            )

        rows.sort(key=lambda r: r.patient_name.lower())
        summary = GuardianBillingSummary(
            patient_count=len(rows),
            confirmed_hours=sum(r.confirmed_hours for r in rows),
            pending_hours=sum(r.pending_hours for r in rows),
            confirmed_revenue=sum(r.confirmed_value for r in rows),
            pending_revenue=sum(r.pending_value for r in rows),
            total_revenue=sum(r.total_value for r in rows),
            at_risk_count=sum(1 for r in rows if r.at_risk),
        )
        return GuardianBillingReport(month=int(month), year=int(year), rows=rows, summary=summary)

    def staff_payment_report(self, identity: Identity, *, month: int, year: int) -> StaffPaymentReport:
        identity.require(STAFF_PAYMENT_REPORT_ROLES, "Only staff billing can view this report")
        start, end = month_bounds(month, year)
        rates = self._rates.get_rates()

        session_hours: dict[int, float] = defaultdict(float)
        session_count: dict[int, int] = defaultdict(int)
        for att in self._attendance.list_in_period(start, end):
            if att.is_confirmed:
                session_hours[att.staff_id] += att.hours
                session_count[att.staff_id] += 1

        supervision_hours: dict[int, float] = defaultdict(float)
        supervision_count: dict[int, int] = defaultdict(int)
        for sup in self._supervisions.list_in_period(start, end):
            supervision_hours[sup.staff_id] += sup.hours
            supervision_count[sup.staff_id] += 1

        rows: list[StaffPaymentRow] = []
        for staff_id in set(session_hours) | set(supervision_hours):
            s_hours = session_hours.get(staff_id, 0.0)
            sup_hours = supervision_hours.get(staff_id, 0.0)
            if s_hours + sup_hours <= 0:
                continue

            staff: Optional[User] = self._users.get_by_id(staff_id)
            if not staff:
                logger.warning("Payment records reference missing user %s", staff_id)
                continue

            hourly_rate = staff.hourly_rate or 0.0
            supervision_rate = rates.rate_for(staff.sector)
            session_payment = s_hours * hourly_rate
            supervision_payment = sup_hours * supervision_rate

            rows.append(
                StaffPaymentRow(
                    staff_id=staff.user_id,
                    name=staff.name,
                    sector=staff.sector.value if staff.sector else None,
                    hourly_rate=hourly_rate,
                    supervision_rate=supervision_rate,
                    session_count=session_count.get(staff_id, 0),
                    supervision_count=supervision_count.get(staff_id, 0),
                    session_hours=s_hours,
                    supervision_hours=sup_hours,
                    session_payment=session_payment,
                    supervision_payment=supervision_payment,
                    total_payment=session_payment + supervision_payment,
                )
            )

        rows.sort(key=lambda r: r.name.lower())
        summary = StaffPaymentSummary(
            staff_count=len(rows),
            session_hours=sum(r.session_hours for r in rows),
            supervision_hours=sum(r.supervision_hours for r in rows),
            session_payments=sum(r.session_payment for r in rows),
            supervision_payments=sum(r.supervision_payment for r in rows),
            total_payments=sum(r.total_payment for r in rows),
        )
        return StaffPaymentReport(month=int(month), year=int(year), rows=rows, summary=summary)
