"""
Pin Registry Error Handling

All error codes and exception classes.
"""

from enum import IntEnum
from typing import Optional, Any


class ErrorCode(IntEnum):
    """Registry error codes."""

    # 1xxx - General errors
    UNKNOWN_ERROR = 1000
    INVALID_PARAMETER = 1001
    INTERNAL_ERROR = 1002

    # 2xxx - Access control errors
    NOT_AUTHORIZED = 2001
    PIN_LOCKED = 2002
    PIN_NOT_LOCKED = 2003

    # 3xxx - Pin lookup errors
    PIN_NOT_FOUND = 3001

    # 4xxx - Key derivation errors
    KEY_SPACE_EXHAUSTED = 4001
    SENTINEL_CLOCK = 4002

    # 5xxx - Storage errors
    STORAGE_ERROR = 5001


class PinRegistryError(Exception):
    """Base exception for all registry errors."""

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        details: Optional[Any] = None
    ):
        self.code = code
        self.message = message
        self.details = details
        super().__init__(f"[{code.value}] {message}")

    def to_dict(self) -> dict:
        """Convert to JSON-serializable dict for API responses."""
        result = {
            "code": self.code.value,
            "name": self.code.name,
            "message": self.message,
        }
        if self.details is not None:
            result["details"] = self.details
        return result


# ==============================================================================
# General Errors (1xxx)
# ==============================================================================

class InvalidParameterError(PinRegistryError):
    def __init__(self, param: str, message: str = ""):
        msg = f"Invalid parameter: {param}"
        if message:
            msg += f" - {message}"
        super().__init__(ErrorCode.INVALID_PARAMETER, msg, {"parameter": param})


# ==============================================================================
# Access Control Errors (2xxx)
# ==============================================================================

class NotAuthorizedError(PinRegistryError):
    def __init__(self, key_hex: str, caller_hex: str, window_end: int):
        super().__init__(
            ErrorCode.NOT_AUTHORIZED,
            f"Caller {caller_hex[:16]} is not the owner of pin {key_hex[:16]}... "
            f"(ownership window open until {window_end})",
            {"key": key_hex, "caller": caller_hex, "window_end": window_end}
        )


class PinLockedError(PinRegistryError):
    def __init__(self, key_hex: str):
        super().__init__(
            ErrorCode.PIN_LOCKED,
            f"Pin is locked: {key_hex[:16]}...",
            {"key": key_hex}
        )


class PinNotLockedError(PinRegistryError):
    def __init__(self, key_hex: str):
        super().__init__(
            ErrorCode.PIN_NOT_LOCKED,
            f"Pin is not locked: {key_hex[:16]}...",
            {"key": key_hex}
        )


# ==============================================================================
# Lookup Errors (3xxx)
# ==============================================================================

class PinNotFoundError(PinRegistryError):
    def __init__(self, key_hex: str):
        super().__init__(
            ErrorCode.PIN_NOT_FOUND,
            f"Pin not found: {key_hex[:16]}...",
            {"key": key_hex}
        )


# ==============================================================================
# Key Derivation Errors (4xxx)
# ==============================================================================

class KeySpaceExhaustedError(PinRegistryError):
    def __init__(self, start_hex: str):
        super().__init__(
            ErrorCode.KEY_SPACE_EXHAUSTED,
            f"No free pin key at or above {start_hex[:16]}...",
            {"start": start_hex}
        )


class SentinelClockError(PinRegistryError):
    """Host clock produced a value that cannot be used as a creation time."""

    def __init__(self, value: int):
        super().__init__(
            ErrorCode.SENTINEL_CLOCK,
            f"Clock value {value} collides with the reserved lock timestamp "
            f"or is outside the 64-bit range",
            {"value": value}
        )


# ==============================================================================
# Storage Errors (5xxx)
# ==============================================================================

class StorageError(PinRegistryError):
    def __init__(self, message: str, details: Any = None):
        super().__init__(ErrorCode.STORAGE_ERROR, message, details)
