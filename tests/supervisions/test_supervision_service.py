from datetime import date

import pytest

from clinic_billing.core.enums import Role, Sector
from clinic_billing.core.exceptions import (
    AuthorizationError,
    ConcurrencyError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from clinic_billing.core.identity import Identity

from fakes import build_in_memory_container


@pytest.fixture
def env():
    c = build_in_memory_container()
    staff = c.users_repo.add(name="Rita", email="rita@x.com", role=Role.STAFF, sector=Sector.ABA)
    other = c.users_repo.add(name="Joao", email="joao@x.com", role=Role.STAFF, sector=Sector.DENVER)
    return c, staff, other


COORD = Identity(user_id=800, role=Role.COORDINATOR, sector=Sector.ABA)
ADMIN = Identity(user_id=900, role=Role.GENERAL_ADMIN)
BILLING_STAFF = Identity(user_id=950, role=Role.BILLING_STAFF)


def _create(c, identity, staff_id, start="08:00", end="09:10"):
    return c.supervision_service.create_supervision(
        identity, staff_id=staff_id, supervision_date="2026-03-04", start_time=start, end_time=end
    )


def test_coordinator_records_supervision_with_half_hour_rounding(env):
    c, staff, _ = env
    sup = _create(c, COORD, staff.user_id)

    assert sup.hours == 1.0
    assert sup.coordinator_id == COORD.user_id
    assert sup.sector == Sector.ABA
    assert sup.supervision_date == date(2026, 3, 4)


def test_admin_uses_target_sector(env):
    c, _, other = env
    sup = _create(c, ADMIN, other.user_id)
    assert sup.sector == Sector.DENVER


def test_staff_reports_only_for_themselves(env):
    c, staff, _ = env
    me = Identity(user_id=staff.user_id, role=Role.STAFF, sector=Sector.ABA)

    sup = _create(c, me, staff.user_id)
    assert sup.coordinator_id == staff.user_id

    with pytest.raises(AuthorizationError):
        _create(c, me, 12345)


def test_duplicate_supervision_is_a_conflict(env):
    c, staff, _ = env
    _create(c, COORD, staff.user_id)
    with pytest.raises(ConflictError):
        _create(c, COORD, staff.user_id)


def test_create_rules(env):
    c, staff, other = env
    with pytest.raises(ValidationError):
        _create(c, COORD, staff.user_id, start="08:00", end="08:10")
    with pytest.raises(ValidationError):
        _create(c, COORD, None)
    with pytest.raises(NotFoundError):
        _create(c, COORD, 4242)
    with pytest.raises(AuthorizationError):
        _create(c, COORD, other.user_id)
    with pytest.raises(AuthorizationError):
        _create(c, BILLING_STAFF, staff.user_id)


def test_delete_permissions(env):
    c, staff, _ = env
    sup = _create(c, COORD, staff.user_id)
    stranger = Identity(user_id=801, role=Role.COORDINATOR, sector=Sector.ABA)

    with pytest.raises(AuthorizationError):
        c.supervision_service.delete_supervision(stranger, supervision_id=sup.supervision_id)

    c.supervision_service.delete_supervision(
        Identity(user_id=staff.user_id, role=Role.STAFF, sector=Sector.ABA), supervision_id=sup.supervision_id
    )
    assert c.supervisions_repo.get_by_id(sup.supervision_id) is None


def test_list_scopes(env):
    c, staff, other = env
    _create(c, COORD, staff.user_id)
    _create(c, ADMIN, other.user_id)

    assert len(c.supervision_service.list_supervisions(COORD, month=3, year=2026)) == 1
    assert len(c.supervision_service.list_supervisions(ADMIN, month=3, year=2026)) == 2
    denver_admin = Identity(user_id=5, role=Role.SECTOR_ADMIN, sector=Sector.DENVER)
    assert [s.staff_id for s in c.supervision_service.list_supervisions(denver_admin, month=3, year=2026)] == [
        other.user_id
    ]
    assert c.supervision_service.list_supervisions(ADMIN, month=4, year=2026) == []


def test_rates_default_to_35(env):
    c, _, _ = env
    rates = c.supervision_service.get_supervision_rates(BILLING_STAFF)

    assert rates.rate_for(Sector.ABA) == 35.0
    assert rates.to_dict()["escolar"] == 35.0


def test_save_rates(env):
    c, _, _ = env
    saved = c.supervision_service.save_supervision_rates(
        BILLING_STAFF, {"aba": 40, "denver": "45.5", "grupo": 0, "escolar": 30}
    )

    assert saved.rate_for(Sector.DENVER) == 45.5
    # zero falls back to the default
    assert saved.rate_for(Sector.GRUPO) == 35.0
    assert saved.version == 1


def test_save_rates_validation_and_permissions(env):
    c, _, _ = env
    with pytest.raises(ValidationError):
        c.supervision_service.save_supervision_rates(BILLING_STAFF, {"aba": 40, "denver": 40, "grupo": 40})
    with pytest.raises(ValidationError):
        c.supervision_service.save_supervision_rates(
            BILLING_STAFF, {"aba": -1, "denver": 40, "grupo": 40, "escolar": 40}
        )
    with pytest.raises(AuthorizationError):
        c.supervision_service.get_supervision_rates(ADMIN)


def test_stale_rate_version_is_rejected(env):
    c, _, _ = env
    full = {"aba": 40, "denver": 40, "grupo": 40, "escolar": 40}
    c.supervision_service.save_supervision_rates(BILLING_STAFF, full)

    with pytest.raises(ConcurrencyError):
        c.supervision_service.save_supervision_rates(BILLING_STAFF, full, expected_version=0)
