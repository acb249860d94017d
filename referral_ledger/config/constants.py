"""
Business constants for the referral ledger.

Central location for referral program rules. Imported by settings as
defaults, so this module must not import settings itself.
"""

from decimal import Decimal

# Flat commission on a referred user's first deposit (advisory, display only)
REFERRAL_COMMISSION_RATE = Decimal("0.05")

# Currency minor unit (cents)
MONEY_QUANTUM = Decimal("0.01")

# Referral codes: [A-Z0-9], prefix from the seed plus a random digit suffix
REFERRAL_CODE_PREFIX_LENGTH = 6
REFERRAL_CODE_MIN_LENGTH = 6
REFERRAL_CODE_SUFFIX_LENGTH = 4
REFERRAL_CODE_FALLBACK_PREFIX = "USER"
REFERRAL_CODE_MAX_ATTEMPTS = 8

REFERRAL_LINK_PATH = "/signup"
REFERRAL_LINK_QUERY_PARAM = "ref"
DEFAULT_REFERRAL_BASE_URL = "https://www.peacefulinvestment.com"

# Recompute-from-source is linear in signups; above this it gets flagged
AGGREGATION_ROW_CAP = 5000

# StorageUnavailable retry policy
STORAGE_RETRY_ATTEMPTS = 3
STORAGE_RETRY_BASE_DELAY_SECONDS = 0.05
STORAGE_RETRY_MAX_DELAY_SECONDS = 1.0

# Dramatiq time limits (ms)
DRAMATIQ_TIME_LIMIT_STANDARD = 300_000
DRAMATIQ_MAX_RETRIES = 3
DRAMATIQ_MIN_BACKOFF_MS = 1_000
DRAMATIQ_MAX_BACKOFF_MS = 60_000
