"""
Pin Registry Core Data Structures
"""

from pinreg.core.types import Hash, Address, PinKey, PinFields
from pinreg.core.codec import derive, derive_locked, parse

__all__ = [
    # Types
    "Hash",
    "Address",
    "PinKey",
    "PinFields",
    # Codec
    "derive",
    "derive_locked",
    "parse",
]
