"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

from datetime import time

CHALLENGE_TTL_MINUTES = 10
CHALLENGE_CLOCK_SKEW_SECONDS = 30
TAP_MAX_AGE_MINUTES = 15
CHALLENGE_TOKEN_BYTES = 16
# challenge_tokens.token column width
CHALLENGE_TOKEN_MAX_LENGTH = 64

EVENING_PREMIUM_START = time(20, 0)
EVENING_MULTIPLIER = 1.25
SUNDAY_HOLIDAY_MULTIPLIER = 2.0

DEFAULT_FALLBACK_RATE = 15.0
DEFAULT_TIMEZONE = "Europe/Paris"
DEFAULT_COUNTRY = "FR"
DEFAULT_CURRENCY = "EUR"

VAT_RATE = 0.055
PRESENTATION_DECIMALS = 2

STATUS_LOOKBACK_HOURS = 24
