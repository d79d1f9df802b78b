import pytest

from clinic_billing.core.enums import Role, Sector
from clinic_billing.core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    ValidationError,
)
from clinic_billing.core.identity import Identity
from clinic_billing.patients.service import GuardianInput

from fakes import add_attendance, build_in_memory_container

ADMIN = Identity(user_id=900, role=Role.GENERAL_ADMIN)
ABA_ADMIN = Identity(user_id=901, role=Role.SECTOR_ADMIN, sector=Sector.ABA)


@pytest.fixture
def c():
    return build_in_memory_container()


def test_authenticate_with_valid_credentials(c):
    user = c.users_repo.add(name="Rita", email="rita@x.com", role=Role.STAFF, sector=Sector.ABA, password="pw123456")

    session_user = c.auth_service.authenticate("RITA@x.com ", "pw123456")

    assert session_user.user_id == user.user_id
    assert session_user.identity == Identity(user_id=user.user_id, role=Role.STAFF, sector=Sector.ABA)


def test_authenticate_rejects_wrong_password_and_unknown_email(c):
    c.users_repo.add(name="Rita", email="rita@x.com", role=Role.STAFF, sector=Sector.ABA, password="pw123456")

    with pytest.raises(AuthenticationError):
        c.auth_service.authenticate("rita@x.com", "wrong")
    with pytest.raises(AuthenticationError):
        c.auth_service.authenticate("nobody@x.com", "pw123456")


def test_create_staff_user(c):
    user_id = c.user_service.create_user(
        ABA_ADMIN, name="Rita", email="Rita@X.com", password="secret1", role="staff", sector="aba", hourly_rate="45"
    )

    user = c.users_repo.get_by_id(user_id)
    assert user.email == "rita@x.com"
    assert user.sector == Sector.ABA
    assert user.hourly_rate == 45.0


def test_create_user_rules(c):
    with pytest.raises(ValidationError):
        c.user_service.create_user(ADMIN, name="Rita", email="rita@x.com", password="secret1", role="staff")
    with pytest.raises(AuthorizationError):
        c.user_service.create_user(
            ABA_ADMIN, name="Boss", email="boss@x.com", password="secret1", role="billing_staff"
        )
    with pytest.raises(AuthorizationError):
        c.user_service.create_user(
            ABA_ADMIN, name="Rita", email="rita@x.com", password="secret1", role="staff", sector="denver"
        )
    with pytest.raises(AuthorizationError):
        c.user_service.create_user(
            Identity(user_id=1, role=Role.BILLING_STAFF),
            name="Rita",
            email="rita@x.com",
            password="secret1",
            role="staff",
            sector="aba",
        )


def test_duplicate_email_is_a_conflict(c):
    c.users_repo.add(name="Rita", email="rita@x.com", role=Role.GUARDIAN)
    with pytest.raises(ConflictError):
        c.user_service.create_user(
            ADMIN, name="Rita", email="RITA@x.com", password="secret1", role="staff", sector="aba"
        )


def test_billing_staff_sets_staff_rate(c):
    staff = c.users_repo.add(name="Rita", email="rita@x.com", role=Role.STAFF, sector=Sector.ABA)

    c.user_service.set_staff_rate(Identity(user_id=1, role=Role.BILLING_STAFF), user_id=staff.user_id, hourly_rate=52.5)

    assert c.users_repo.get_by_id(staff.user_id).hourly_rate == 52.5
    with pytest.raises(AuthorizationError):
        c.user_service.set_staff_rate(
            Identity(user_id=2, role=Role.BILLING_GUARDIANS), user_id=staff.user_id, hourly_rate=1
        )


def test_delete_staff_cascades(c):
    staff = c.users_repo.add(name="Rita", email="rita@x.com", role=Role.STAFF, sector=Sector.ABA)
    patient = c.patients_repo.add(name="Ana", sector=Sector.ABA, guardian_email="mom@x.com", staff_id=staff.user_id)
    add_attendance(c.attendance_repo, patient_id=patient.patient_id, staff_id=staff.user_id, hours=1.0)

    result = c.user_service.delete_user(ABA_ADMIN, user_id=staff.user_id)

    assert result.attendances_deleted == 1
    assert result.patients_unassigned == 1
    assert c.users_repo.get_by_id(staff.user_id) is None
    assert c.patients_repo.get_by_id(patient.patient_id).staff_id is None


def test_deleting_substitute_keeps_visits_credited_to_assigned_staff(c):
    regular = c.users_repo.add(name="Regular", email="r@x.com", role=Role.STAFF, sector=Sector.ABA, hourly_rate=40.0)
    sub = c.users_repo.add(name="Sub", email="s@x.com", role=Role.STAFF, sector=Sector.ABA, hourly_rate=40.0)
    patient = c.patients_repo.add(name="Ana", sector=Sector.ABA, guardian_email="mom@x.com", staff_id=regular.user_id)
    att = c.attendance_service.create_attendance(
        Identity(user_id=sub.user_id, role=Role.STAFF, sector=Sector.ABA),
        patient_id=patient.patient_id,
        session_date="2026-03-02",
        start_time="14:00",
        end_time="15:00",
        is_substitution=True,
    )
    c.attendance_service.confirm_attendance(ADMIN, attendance_id=att.attendance_id)

    result = c.user_service.delete_user(ADMIN, user_id=sub.user_id)

    assert result.attendances_deleted == 0
    assert c.attendance_repo.get_by_id(att.attendance_id) is not None
    report = c.report_service.staff_payment_report(
        Identity(user_id=1, role=Role.BILLING_STAFF), month=3, year=2026
    )
    assert [r.name for r in report.rows] == ["Regular"]


def test_guardian_linked_to_patient_cannot_be_deleted(c):
    c.patient_service.create_patient(
        ADMIN, name="Ana", sector="aba", guardian=GuardianInput(email="mom@x.com", name="Mom")
    )
    mom = c.users_repo.get_by_email("mom@x.com")

    with pytest.raises(ConflictError):
        c.user_service.delete_user(ADMIN, user_id=mom.user_id)


def test_general_admin_cannot_be_deleted(c):
    boss = c.users_repo.add(name="Boss", email="boss@x.com", role=Role.GENERAL_ADMIN)
    with pytest.raises(ValidationError):
        c.user_service.delete_user(ADMIN, user_id=boss.user_id)


def test_sector_admin_lists_only_own_sector(c):
    c.users_repo.add(name="A", email="a@x.com", role=Role.STAFF, sector=Sector.ABA)
    c.users_repo.add(name="B", email="b@x.com", role=Role.STAFF, sector=Sector.DENVER)

    names = [u.name for u in c.user_service.list_users(ABA_ADMIN, role=Role.STAFF)]

    assert names == ["A"]
    with pytest.raises(AuthorizationError):
        c.user_service.list_users(Identity(user_id=3, role=Role.GUARDIAN))
