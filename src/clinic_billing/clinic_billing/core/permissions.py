"""Role sets gating each operation."""

from .enums import Role

ADMIN_ROLES = frozenset({Role.SECTOR_ADMIN, Role.GENERAL_ADMIN})
BILLING_ROLES = frozenset({Role.BILLING_GUARDIANS, Role.BILLING_STAFF})

SUBMIT_ATTENDANCE_ROLES = frozenset({Role.STAFF, Role.COORDINATOR}) | ADMIN_ROLES
# Front desk, management and billing may attest that a visit happened.
CONFIRM_ATTENDANCE_ROLES = frozenset({Role.COORDINATOR}) | ADMIN_ROLES | BILLING_ROLES
APPROVE_ATTENDANCE_ROLES = ADMIN_ROLES
LAUNCH_ATTENDANCE_ROLES = ADMIN_ROLES
REJECT_ATTENDANCE_ROLES = CONFIRM_ATTENDANCE_ROLES

MANAGE_PATIENT_ROLES = ADMIN_ROLES
PATIENT_RATE_ROLES = ADMIN_ROLES | {Role.BILLING_GUARDIANS}

MANAGE_USER_ROLES = ADMIN_ROLES
STAFF_RATE_ROLES = ADMIN_ROLES | {Role.BILLING_STAFF}
# Accounts only the general admin may create.
PRIVILEGED_ROLES = ADMIN_ROLES | BILLING_ROLES

CREATE_SUPERVISION_ROLES = frozenset({Role.STAFF, Role.COORDINATOR}) | ADMIN_ROLES
DELETE_ANY_SUPERVISION_ROLES = ADMIN_ROLES | BILLING_ROLES
SUPERVISION_RATE_ROLES = frozenset({Role.BILLING_STAFF})

GUARDIAN_BILLING_REPORT_ROLES = frozenset({Role.BILLING_GUARDIANS})
STAFF_PAYMENT_REPORT_ROLES = frozenset({Role.BILLING_STAFF})

LIST_USER_ROLES = frozenset(Role) - {Role.GUARDIAN}
