"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEFAULT_SUPERVISION_RATE = 35.0
DEFAULT_GUARDIAN_PASSWORD = "123456"

# Guardian-billing risk thresholds (advisory only)
RISK_PENDING_HOURS = 10.0
RISK_CONFIRMATION_RATE = 50.0
