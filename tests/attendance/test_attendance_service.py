from datetime import date, datetime

import pytest

from clinic_billing.core.enums import AttendanceStage, Role, Sector
from clinic_billing.core.exceptions import (
    AuthorizationError,
    ConcurrencyError,
    InvalidTransitionError,
    NotFoundError,
    ValidationError,
)
from clinic_billing.core.identity import Identity

from fakes import FixedClock, add_attendance, build_in_memory_container


@pytest.fixture
def env():
    c = build_in_memory_container(clock=FixedClock(datetime(2026, 3, 10, 9, 30)))
    regular = c.users_repo.add(name="Regular", email="regular@x.com", role=Role.STAFF, sector=Sector.ABA)
    substitute = c.users_repo.add(name="Substitute", email="sub@x.com", role=Role.STAFF, sector=Sector.ABA)
    patient = c.patients_repo.add(name="Ana", sector=Sector.ABA, guardian_email="mom@x.com", staff_id=regular.user_id)
    return c, regular, substitute, patient


def _staff(user):
    return Identity(user_id=user.user_id, role=Role.STAFF, sector=user.sector)


ADMIN = Identity(user_id=900, role=Role.GENERAL_ADMIN)
SECTOR_ADMIN = Identity(user_id=901, role=Role.SECTOR_ADMIN, sector=Sector.ABA)
FRONT_DESK = Identity(user_id=902, role=Role.COORDINATOR, sector=Sector.ABA)


def _create(c, identity, patient, **kwargs):
    params = dict(patient_id=patient.patient_id, session_date="2026-03-05", start_time="08:00", end_time="09:30")
    params.update(kwargs)
    return c.attendance_service.create_attendance(identity, **params)


def test_create_freezes_hours_and_starts_pending(env):
    c, regular, _, patient = env
    att = _create(c, _staff(regular), patient, start_time="23:00", end_time="01:00")

    assert att.hours == 2.0
    assert att.stage == AttendanceStage.PENDING
    assert att.staff_id == regular.user_id
    assert att.performed_by == regular.user_id
    assert att.session_date == date(2026, 3, 5)


def test_substitution_credits_assigned_staff(env):
    c, regular, substitute, patient = env
    att = _create(c, _staff(substitute), patient, is_substitution=True)

    assert att.staff_id == regular.user_id
    assert att.performed_by == substitute.user_id
    assert att.is_substitution


def test_substitution_without_assignment_credits_submitter(env):
    c, _, substitute, _ = env
    orphan = c.patients_repo.add(name="Bia", sector=Sector.ABA, guardian_email="dad@x.com")

    att = _create(c, _staff(substitute), orphan, is_substitution=True)

    assert att.staff_id == substitute.user_id


def test_substitute_sees_visit_in_own_history(env):
    c, _, substitute, patient = env
    _create(c, _staff(substitute), patient, is_substitution=True)

    rows = c.attendance_service.list_attendances(_staff(substitute), month=3, year=2026)

    assert len(rows) == 1


def test_admin_submission_credits_assigned_staff(env):
    c, regular, _, patient = env
    att = _create(c, ADMIN, patient)

    assert att.staff_id == regular.user_id
    assert att.performed_by == ADMIN.user_id


def test_admin_can_name_the_credited_staff(env):
    c, _, substitute, patient = env
    att = _create(c, ADMIN, patient, staff_id=substitute.user_id)

    assert att.staff_id == substitute.user_id


def test_create_rejects_bad_input(env):
    c, regular, _, patient = env

    with pytest.raises(ValidationError):
        _create(c, _staff(regular), patient, start_time="10:00", end_time="10:00")
    with pytest.raises(ValidationError):
        _create(c, _staff(regular), patient, start_time="9h")
    with pytest.raises(NotFoundError):
        c.attendance_service.create_attendance(
            _staff(regular), patient_id=999, session_date="2026-03-05", start_time="08:00", end_time="09:00"
        )


def test_guardian_and_billing_cannot_create(env):
    c, _, _, patient = env
    with pytest.raises(AuthorizationError):
        _create(c, Identity(user_id=50, role=Role.GUARDIAN), patient)
    with pytest.raises(AuthorizationError):
        _create(c, Identity(user_id=51, role=Role.BILLING_STAFF), patient)


def test_other_sector_cannot_create(env):
    c, _, _, patient = env
    outsider = Identity(user_id=60, role=Role.STAFF, sector=Sector.DENVER)

    with pytest.raises(AuthorizationError):
        _create(c, outsider, patient)


def test_full_lifecycle_records_actor_and_time(env):
    c, regular, _, patient = env
    att = _create(c, _staff(regular), patient)

    att = c.attendance_service.confirm_attendance(FRONT_DESK, attendance_id=att.attendance_id)
    assert att.stage == AttendanceStage.CONFIRMED
    assert att.confirmed_by == FRONT_DESK.user_id
    assert att.confirmed_at == datetime(2026, 3, 10, 9, 30)

    att = c.attendance_service.approve_attendance(SECTOR_ADMIN, attendance_id=att.attendance_id)
    assert att.stage == AttendanceStage.APPROVED
    assert att.approved_by == SECTOR_ADMIN.user_id

    att = c.attendance_service.launch_attendance(ADMIN, attendance_id=att.attendance_id)
    assert att.stage == AttendanceStage.LAUNCHED
    assert att.launched_by == ADMIN.user_id
    assert att.version == 3


def test_stages_cannot_be_skipped(env):
    c, regular, _, patient = env
    att = _create(c, _staff(regular), patient)

    with pytest.raises(InvalidTransitionError):
        c.attendance_service.approve_attendance(ADMIN, attendance_id=att.attendance_id)
    with pytest.raises(InvalidTransitionError):
        c.attendance_service.launch_attendance(ADMIN, attendance_id=att.attendance_id)


def test_stage_cannot_be_repeated(env):
    c, regular, _, patient = env
    att = _create(c, _staff(regular), patient)
    c.attendance_service.confirm_attendance(FRONT_DESK, attendance_id=att.attendance_id)

    with pytest.raises(InvalidTransitionError):
        c.attendance_service.confirm_attendance(ADMIN, attendance_id=att.attendance_id)


def test_front_desk_cannot_approve_or_launch(env):
    c, regular, _, patient = env
    att = add_attendance(
        c.attendance_repo, patient_id=patient.patient_id, staff_id=regular.user_id, hours=1.0,
        stage=AttendanceStage.APPROVED,
    )

    with pytest.raises(AuthorizationError):
        c.attendance_service.approve_attendance(FRONT_DESK, attendance_id=att.attendance_id)
    with pytest.raises(AuthorizationError):
        c.attendance_service.launch_attendance(FRONT_DESK, attendance_id=att.attendance_id)


def test_staff_cannot_confirm(env):
    c, regular, _, patient = env
    att = _create(c, _staff(regular), patient)

    with pytest.raises(AuthorizationError):
        c.attendance_service.confirm_attendance(_staff(regular), attendance_id=att.attendance_id)


def test_missing_attendance_is_not_found(env):
    c, _, _, _ = env
    with pytest.raises(NotFoundError):
        c.attendance_service.confirm_attendance(ADMIN, attendance_id=12345)


def test_racing_transition_fails_instead_of_overwriting(env):
    c, regular, _, patient = env
    att = _create(c, _staff(regular), patient)
    repo = c.attendance_repo
    original_mark = repo.mark_stage

    def racing_mark(**kwargs):
        # another request confirms first
        original_mark(**kwargs)
        return original_mark(**kwargs)

    repo.mark_stage = racing_mark
    with pytest.raises(ConcurrencyError):
        c.attendance_service.confirm_attendance(FRONT_DESK, attendance_id=att.attendance_id)


def test_reject_deletes_at_any_stage(env):
    c, regular, _, patient = env
    att = add_attendance(
        c.attendance_repo, patient_id=patient.patient_id, staff_id=regular.user_id, hours=1.0,
        stage=AttendanceStage.LAUNCHED,
    )

    c.attendance_service.delete_attendance(FRONT_DESK, attendance_id=att.attendance_id)

    assert c.attendance_repo.get_by_id(att.attendance_id) is None
    with pytest.raises(NotFoundError):
        c.attendance_service.delete_attendance(FRONT_DESK, attendance_id=att.attendance_id)


def test_guardian_sees_only_confirmed_rows_of_own_patients(env):
    c, regular, _, patient = env
    mom = c.users_repo.add(name="Mom", email="mom@x.com", role=Role.GUARDIAN)
    other = c.patients_repo.add(name="Caio", sector=Sector.ABA, guardian_email="other@x.com")

    add_attendance(c.attendance_repo, patient_id=patient.patient_id, staff_id=regular.user_id, hours=1.0)
    confirmed = add_attendance(
        c.attendance_repo, patient_id=patient.patient_id, staff_id=regular.user_id, hours=1.0,
        stage=AttendanceStage.CONFIRMED,
    )
    add_attendance(
        c.attendance_repo, patient_id=other.patient_id, staff_id=regular.user_id, hours=1.0,
        stage=AttendanceStage.CONFIRMED,
    )

    rows = c.attendance_service.list_attendances(Identity(user_id=mom.user_id, role=Role.GUARDIAN), month=3, year=2026)

    assert [a.attendance_id for a in rows] == [confirmed.attendance_id]


def test_list_is_limited_to_month(env):
    c, regular, _, patient = env
    add_attendance(c.attendance_repo, patient_id=patient.patient_id, staff_id=regular.user_id, hours=1.0, day=date(2026, 3, 31))
    add_attendance(c.attendance_repo, patient_id=patient.patient_id, staff_id=regular.user_id, hours=1.0, day=date(2026, 4, 1))

    assert len(c.attendance_service.list_attendances(ADMIN, month=3, year=2026)) == 1
    with pytest.raises(ValidationError):
        c.attendance_service.list_attendances(ADMIN, month=13, year=2026)
