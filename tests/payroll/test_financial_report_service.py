from datetime import date, time

import pytest

from clinic_billing.core.enums import AttendanceStage, Role, Sector
from clinic_billing.core.exceptions import AuthorizationError, ValidationError
from clinic_billing.core.identity import Identity

from fakes import add_attendance, build_in_memory_container

BILLING_GUARDIANS = Identity(user_id=1, role=Role.BILLING_GUARDIANS)
BILLING_STAFF = Identity(user_id=2, role=Role.BILLING_STAFF)


@pytest.fixture
def c():
    return build_in_memory_container(rates={Sector.DENVER: 50.0})


def _supervision(c, staff, hours, sector):
    c.supervisions_repo.create_supervision(
        staff_id=staff.user_id,
        coordinator_id=99,
        supervision_date=date(2026, 3, 3),
        start_time=time(8, 0),
        end_time=time(9, 0),
        hours=hours,
        sector=sector,
        observations=None,
    )


def test_guardian_billing_scenario(c):
    staff = c.users_repo.add(name="Rita", email="rita@x.com", role=Role.STAFF, sector=Sector.ABA)
    patient = c.patients_repo.add(name="P", sector=Sector.ABA, guardian_email="mom@x.com", hourly_rate=60.0)
    add_attendance(c.attendance_repo, patient_id=patient.patient_id, staff_id=staff.user_id, hours=1.5, stage=AttendanceStage.CONFIRMED)
    add_attendance(c.attendance_repo, patient_id=patient.patient_id, staff_id=staff.user_id, hours=2.0, stage=AttendanceStage.LAUNCHED)
    add_attendance(c.attendance_repo, patient_id=patient.patient_id, staff_id=staff.user_id, hours=1.0)

    report = c.report_service.guardian_billing_report(BILLING_GUARDIANS, month=3, year=2026)

    assert len(report.rows) == 1
    row = report.rows[0]
    assert row.confirmed_hours == 3.5
    assert row.confirmed_value == 210
    assert row.pending_hours == 1.0
    assert row.pending_value == 60
    assert row.total_value == 270
    assert row.confirmation_rate == pytest.approx(66.7, abs=0.05)
    assert row.total_count == 3
    assert not row.at_risk
    assert row.to_dict()["confirmation_rate"] == 66.7

    assert report.summary.total_revenue == 270
    assert report.summary.confirmed_revenue == 210
    assert report.summary.at_risk_count == 0


def test_patient_without_attendances_is_omitted_and_period_is_closed(c):
    staff = c.users_repo.add(name="Rita", email="rita@x.com", role=Role.STAFF, sector=Sector.ABA)
    p = c.patients_repo.add(name="P", sector=Sector.ABA, guardian_email="mom@x.com", hourly_rate=60.0)
    c.patients_repo.add(name="Q", sector=Sector.ABA, guardian_email="dad@x.com", hourly_rate=60.0)
    add_attendance(c.attendance_repo, patient_id=p.patient_id, staff_id=staff.user_id, hours=1.0, day=date(2026, 2, 28))
    add_attendance(c.attendance_repo, patient_id=p.patient_id, staff_id=staff.user_id, hours=1.0, day=date(2026, 3, 31))

    report = c.report_service.guardian_billing_report(BILLING_GUARDIANS, month=3, year=2026)

    assert [r.patient_name for r in report.rows] == ["P"]
    assert report.rows[0].total_count == 1


def test_at_risk_flags(c):
    staff = c.users_repo.add(name="Rita", email="rita@x.com", role=Role.STAFF, sector=Sector.ABA)
    many_pending = c.patients_repo.add(name="A", sector=Sector.ABA, guardian_email="a@x.com", hourly_rate=10.0)
    low_rate = c.patients_repo.add(name="B", sector=Sector.ABA, guardian_email="b@x.com", hourly_rate=10.0)
    add_attendance(c.attendance_repo, patient_id=many_pending.patient_id, staff_id=staff.user_id, hours=10.5)
    for _ in range(4):
        add_attendance(c.attendance_repo, patient_id=many_pending.patient_id, staff_id=staff.user_id, hours=1.0, stage=AttendanceStage.CONFIRMED)
    add_attendance(c.attendance_repo, patient_id=low_rate.patient_id, staff_id=staff.user_id, hours=1.0)
    add_attendance(c.attendance_repo, patient_id=low_rate.patient_id, staff_id=staff.user_id, hours=1.0, stage=AttendanceStage.CONFIRMED)
    add_attendance(c.attendance_repo, patient_id=low_rate.patient_id, staff_id=staff.user_id, hours=1.0)

    report = c.report_service.guardian_billing_report(BILLING_GUARDIANS, month=3, year=2026)
    flags = {r.patient_name: r.at_risk for r in report.rows}

    assert flags == {"A": True, "B": True}
    assert report.summary.at_risk_count == 2


def test_staff_payment_report(c):
    rita = c.users_repo.add(name="Rita", email="rita@x.com", role=Role.STAFF, sector=Sector.ABA, hourly_rate=40.0)
    joao = c.users_repo.add(name="Joao", email="joao@x.com", role=Role.STAFF, sector=Sector.DENVER, hourly_rate=30.0)
    c.users_repo.add(name="Idle", email="idle@x.com", role=Role.STAFF, sector=Sector.ABA, hourly_rate=30.0)
    patient = c.patients_repo.add(name="P", sector=Sector.ABA, guardian_email="mom@x.com")

    add_attendance(c.attendance_repo, patient_id=patient.patient_id, staff_id=rita.user_id, hours=2.0, stage=AttendanceStage.APPROVED)
    add_attendance(c.attendance_repo, patient_id=patient.patient_id, staff_id=rita.user_id, hours=5.0)
    _supervision(c, rita, 1.5, Sector.ABA)
    _supervision(c, joao, 2.0, Sector.DENVER)

    report = c.report_service.staff_payment_report(BILLING_STAFF, month=3, year=2026)
    rows = {r.name: r for r in report.rows}

    assert set(rows) == {"Joao", "Rita"}
    assert rows["Rita"].session_hours == 2.0
    assert rows["Rita"].session_payment == 80.0
    assert rows["Rita"].supervision_payment == 1.5 * 35
    assert rows["Rita"].total_payment == 80.0 + 52.5
    assert rows["Joao"].session_payment == 0
    assert rows["Joao"].supervision_payment == 100.0
    for row in report.rows:
        assert row.session_payment + row.supervision_payment == row.total_payment
    assert report.summary.total_payments == 80.0 + 52.5 + 100.0


def test_substitution_pays_assigned_staff(c):
    regular = c.users_repo.add(name="Regular", email="r@x.com", role=Role.STAFF, sector=Sector.ABA, hourly_rate=40.0)
    sub = c.users_repo.add(name="Sub", email="s@x.com", role=Role.STAFF, sector=Sector.ABA, hourly_rate=40.0)
    patient = c.patients_repo.add(name="P", sector=Sector.ABA, guardian_email="mom@x.com", staff_id=regular.user_id)
    sub_identity = Identity(user_id=sub.user_id, role=Role.STAFF, sector=Sector.ABA)

    att = c.attendance_service.create_attendance(
        sub_identity, patient_id=patient.patient_id, session_date="2026-03-02", start_time="14:00", end_time="15:00",
        is_substitution=True,
    )
    c.attendance_service.confirm_attendance(Identity(user_id=9, role=Role.GENERAL_ADMIN), attendance_id=att.attendance_id)

    report = c.report_service.staff_payment_report(BILLING_STAFF, month=3, year=2026)

    assert [(r.name, r.session_payment) for r in report.rows] == [("Regular", 40.0)]


def test_reports_are_role_gated_and_validate_month(c):
    with pytest.raises(AuthorizationError):
        c.report_service.guardian_billing_report(BILLING_STAFF, month=3, year=2026)
    with pytest.raises(AuthorizationError):
        c.report_service.staff_payment_report(BILLING_GUARDIANS, month=3, year=2026)
    with pytest.raises(ValidationError):
        c.report_service.staff_payment_report(BILLING_STAFF, month=0, year=2026)
