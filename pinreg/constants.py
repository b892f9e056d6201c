"""
Pin Registry Constants

All registry constants defined here for single source of truth.
"""

from typing import Final

# ==============================================================================
# ENCODING
# ==============================================================================

BIG_ENDIAN: Final[str] = "big"

FIELD_SIZE: Final[int] = 8                      # Bytes per pin key field
PIN_KEY_SIZE: Final[int] = 4 * FIELD_SIZE       # lat || lon || alt || timestamp
HASH_SIZE: Final[int] = 32                      # Content identifier
ADDRESS_SIZE: Final[int] = 20                   # Caller / owner identity

# Field offsets within a pin key
LATITUDE_OFFSET: Final[int] = 0
LONGITUDE_OFFSET: Final[int] = 8
ALTITUDE_OFFSET: Final[int] = 16
TIMESTAMP_OFFSET: Final[int] = 24

U64_MAX: Final[int] = 0xFFFFFFFFFFFFFFFF
PIN_KEY_MAX: Final[int] = (1 << (8 * PIN_KEY_SIZE)) - 1
PIN_PREFIX_MAX: Final[int] = (1 << (8 * 3 * FIELD_SIZE)) - 1

# ==============================================================================
# LOCKING AND OWNERSHIP
# ==============================================================================

LOCKED_TIMESTAMP: Final[int] = U64_MAX          # Reserved, never a creation time
OWNERSHIP_WINDOW_SEC: Final[int] = 31_536_000   # 365 days

LOCK_POLICY_FORBID_LOCKED: Final[str] = "forbid_locked"
LOCK_POLICY_REQUIRE_LOCKED: Final[str] = "require_locked"

# ==============================================================================
# SERVICE
# ==============================================================================

REGISTRY_VERSION: Final[int] = 1
DEFAULT_API_PORT: Final[int] = 8645
DEFAULT_EVENT_HISTORY: Final[int] = 10_000
DEFAULT_NTP_SERVER: Final[str] = "pool.ntp.org"
DEFAULT_NTP_TIMEOUT_SEC: Final[int] = 2
DEFAULT_NTP_RETRY_SEC: Final[int] = 300          # Back-off after a failed sync
