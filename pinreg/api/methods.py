"""
Pin Registry JSON-RPC Methods

All RPC methods for the API server. Binary values travel as hex
strings; the caller identity is supplied by the host in each
mutating request and is not verified here.
"""

from __future__ import annotations
import logging
from typing import Any, Dict, List, Optional, TYPE_CHECKING

from pinreg import __version__
from pinreg.constants import REGISTRY_VERSION
from pinreg.core.types import Hash, Address, PinKey
from pinreg.errors import ErrorCode, PinRegistryError

if TYPE_CHECKING:
    from pinreg.node.node import Node

logger = logging.getLogger(__name__)


class RPCError(Exception):
    """RPC error with code and message."""
    def __init__(self, code: int, message: str, data: Any = None):
        self.code = code
        self.message = message
        self.data = data
        super().__init__(message)


# Error codes
ERROR_PARSE = -32700
ERROR_INVALID_REQUEST = -32600
ERROR_METHOD_NOT_FOUND = -32601
ERROR_INVALID_PARAMS = -32602
ERROR_INTERNAL = -32603
ERROR_NOT_FOUND = -32000
ERROR_NOT_AUTHORIZED = -32001
ERROR_PIN_LOCKED = -32002
ERROR_PIN_NOT_LOCKED = -32003
ERROR_KEY_SPACE_EXHAUSTED = -32004
ERROR_REGISTRY = -32010

_REGISTRY_ERROR_CODES = {
    ErrorCode.PIN_NOT_FOUND: ERROR_NOT_FOUND,
    ErrorCode.NOT_AUTHORIZED: ERROR_NOT_AUTHORIZED,
    ErrorCode.PIN_LOCKED: ERROR_PIN_LOCKED,
    ErrorCode.PIN_NOT_LOCKED: ERROR_PIN_NOT_LOCKED,
    ErrorCode.KEY_SPACE_EXHAUSTED: ERROR_KEY_SPACE_EXHAUSTED,
    ErrorCode.INVALID_PARAMETER: ERROR_INVALID_PARAMS,
}


def to_rpc_error(error: PinRegistryError) -> RPCError:
    """Map a registry error onto a JSON-RPC error."""
    code = _REGISTRY_ERROR_CODES.get(error.code, ERROR_REGISTRY)
    return RPCError(code, error.message, error.to_dict())


# ==============================================================================
# Parameter parsing
# ==============================================================================

def _parse_key(value: str) -> PinKey:
    try:
        return PinKey.from_hex(value)
    except (ValueError, TypeError, AttributeError):
        raise RPCError(ERROR_INVALID_PARAMS, "Invalid pin key format")


def _parse_address(value: str, name: str = "caller") -> Address:
    try:
        return Address.from_hex(value)
    except (ValueError, TypeError, AttributeError):
        raise RPCError(ERROR_INVALID_PARAMS, f"Invalid {name} address format")


def _parse_hash(value: str, name: str = "file_hash") -> Hash:
    try:
        return Hash.from_hex(value[2:] if value.startswith("0x") else value)
    except (ValueError, TypeError, AttributeError):
        raise RPCError(ERROR_INVALID_PARAMS, f"Invalid {name} format")


def _parse_field(value: Any, name: str) -> int:
    if isinstance(value, str):
        try:
            return int(value, 0)
        except ValueError:
            raise RPCError(ERROR_INVALID_PARAMS, f"Invalid {name}")
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    raise RPCError(ERROR_INVALID_PARAMS, f"Invalid {name}")


# ==============================================================================
# Status Methods
# ==============================================================================

async def get_status(node: "Node") -> dict:
    """
    Get node status.

    Returns:
        Node status information
    """
    return node.get_status()


async def get_version(node: "Node") -> dict:
    """
    Get version information.

    Returns:
        Version information
    """
    return {
        "registry_version": REGISTRY_VERSION,
        "node_version": __version__,
        "lock_policy": node.registry.lock_policy.value,
        "ownership_window_sec": node.registry.ownership_window_sec,
    }


# ==============================================================================
# Mutation Methods
# ==============================================================================

async def pin(
    node: "Node",
    caller: str,
    file_hash: str,
    latitude: Any,
    longitude: Any,
    altitude: Any = 0
) -> dict:
    """
    Create a pin.

    Args:
        caller: Caller address (hex)
        file_hash: Content hash (hex)
        latitude, longitude, altitude: Encoded u64 fields (int or "0x..." string)

    Returns:
        Allocated key and its parsed fields
    """
    key = node.registry.pin(
        _parse_address(caller),
        _parse_hash(file_hash),
        _parse_field(latitude, "latitude"),
        _parse_field(longitude, "longitude"),
        _parse_field(altitude, "altitude"),
    )
    return {"key": key.hex(), **key.fields()._asdict()}


async def unpin(node: "Node", caller: str, key: str) -> bool:
    """Remove a pin."""
    node.registry.unpin(_parse_address(caller), _parse_key(key))
    return True


async def lock_pin(node: "Node", caller: str, key: str) -> dict:
    """
    Lock a pin.

    Returns:
        Old and new key
    """
    old_key = _parse_key(key)
    new_key = node.registry.lock_pin(_parse_address(caller), old_key)
    return {"old_key": old_key.hex(), "new_key": new_key.hex()}


async def set_owner(node: "Node", caller: str, key: str, new_owner: str) -> bool:
    """Transfer pin ownership."""
    node.registry.set_owner(
        _parse_address(caller),
        _parse_key(key),
        _parse_address(new_owner, "new_owner"),
    )
    return True


async def set_file(node: "Node", caller: str, key: str, file_hash: str) -> bool:
    """Replace a pin's file hash."""
    node.registry.set_file(
        _parse_address(caller),
        _parse_key(key),
        _parse_hash(file_hash),
    )
    return True


# ==============================================================================
# Query Methods
# ==============================================================================

async def get_file(node: "Node", key: str) -> str:
    """Get file hash (hex, zero when absent)."""
    return node.registry.get_file(_parse_key(key)).hex()


async def get_owner(node: "Node", key: str) -> str:
    """Get owner address (hex, zero when absent)."""
    return node.registry.get_owner(_parse_key(key)).hex()


async def get_pin(node: "Node", key: str) -> dict:
    """Get everything known about a key."""
    return node.registry.get_pin_info(_parse_key(key))


async def get_count(node: "Node") -> int:
    """Number of live pins."""
    return node.registry.count()


async def exists(node: "Node", key: str) -> bool:
    """Check if a key is live."""
    return node.registry.exists(_parse_key(key))


async def parse_key(node: "Node", key: str) -> dict:
    """Split a key into its four fields."""
    pin_key = _parse_key(key)
    return {**node.registry.parse(pin_key)._asdict(), "locked": pin_key.is_locked}


async def get_events(
    node: "Node",
    since: int = 0,
    limit: int = 100
) -> List[dict]:
    """
    Get committed notifications after a sequence number.

    Args:
        since: Last sequence number already seen
        limit: Maximum number to return

    Returns:
        Events, oldest first
    """
    if limit < 1 or limit > 1000:
        raise RPCError(ERROR_INVALID_PARAMS, "limit must be between 1 and 1000")
    return [e.to_dict() for e in node.registry.emitter.history(since=since, limit=limit)]


# ==============================================================================
# Method Registry
# ==============================================================================

METHOD_REGISTRY = {
    # Status
    "pin_status": get_status,
    "pin_version": get_version,

    # Mutations
    "pin_pin": pin,
    "pin_unpin": unpin,
    "pin_lock": lock_pin,
    "pin_setOwner": set_owner,
    "pin_setFile": set_file,

    # Queries
    "pin_getFile": get_file,
    "pin_getOwner": get_owner,
    "pin_getPin": get_pin,
    "pin_count": get_count,
    "pin_exists": exists,
    "pin_parseKey": parse_key,
    "pin_events": get_events,
}


def get_method(name: str) -> Optional[Any]:
    """Get method handler by name."""
    return METHOD_REGISTRY.get(name)


def list_methods() -> List[str]:
    """List all available methods."""
    return list(METHOD_REGISTRY.keys())


def get_methods_info() -> Dict[str, str]:
    """Method names with their one-line descriptions."""
    return {
        name: (handler.__doc__ or "").strip().splitlines()[0]
        for name, handler in METHOD_REGISTRY.items()
    }
