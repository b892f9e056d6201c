"""
Pin Registry JSON-RPC Client

Async client for a registry node over HTTP.
"""

from __future__ import annotations
import itertools
import logging
from typing import Any, Dict, List, Optional

import httpx

from pinreg.core.types import Hash, Address, PinKey

logger = logging.getLogger(__name__)


class RPCClientError(Exception):
    """Error response returned by the node."""
    def __init__(self, code: int, message: str, data: Any = None):
        self.code = code
        self.message = message
        self.data = data
        super().__init__(f"[{code}] {message}")


class RegistryClient:
    """
    JSON-RPC client for a pin registry node.

    Usage:
        async with RegistryClient("http://127.0.0.1:8645", caller) as client:
            key = await client.pin(file_hash, lat, lon)
    """

    def __init__(
        self,
        url: str,
        caller: Optional[Address] = None,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.url = url
        self.caller = caller
        self._ids = itertools.count(1)
        self._client = httpx.AsyncClient(timeout=timeout, transport=transport)

    async def __aenter__(self) -> "RegistryClient":
        return self

    async def __aexit__(self, *args) -> None:
        await self.close()

    async def close(self) -> None:
        await self._client.aclose()

    async def call(self, method: str, **params: Any) -> Any:
        """
        Invoke an RPC method with named params.

        Raises:
            RPCClientError: The node returned an error object
            httpx.HTTPError: Transport failure
        """
        request = {
            "jsonrpc": "2.0",
            "method": method,
            "params": params,
            "id": next(self._ids),
        }
        response = await self._client.post(self.url, json=request)
        response.raise_for_status()
        body = response.json()

        error = body.get("error")
        if error:
            logger.debug(f"{method} failed: {error}")
            raise RPCClientError(error.get("code", 0), error.get("message", ""), error.get("data"))

        return body.get("result")

    def _caller_hex(self, caller: Optional[Address]) -> str:
        identity = caller or self.caller
        if identity is None:
            raise ValueError("No caller identity configured")
        return identity.hex()

    # =========================================================================
    # Mutations
    # =========================================================================

    async def pin(
        self,
        file_hash: Hash,
        latitude: int,
        longitude: int,
        altitude: int = 0,
        caller: Optional[Address] = None
    ) -> PinKey:
        result = await self.call(
            "pin_pin",
            caller=self._caller_hex(caller),
            file_hash=file_hash.hex(),
            latitude=latitude,
            longitude=longitude,
            altitude=altitude,
        )
        return PinKey.from_hex(result["key"])

    async def unpin(self, key: PinKey, caller: Optional[Address] = None) -> None:
        await self.call("pin_unpin", caller=self._caller_hex(caller), key=key.hex())

    async def lock_pin(self, key: PinKey, caller: Optional[Address] = None) -> PinKey:
        result = await self.call("pin_lock", caller=self._caller_hex(caller), key=key.hex())
        return PinKey.from_hex(result["new_key"])

    async def set_owner(
        self,
        key: PinKey,
        new_owner: Address,
        caller: Optional[Address] = None
    ) -> None:
        await self.call(
            "pin_setOwner",
            caller=self._caller_hex(caller),
            key=key.hex(),
            new_owner=new_owner.hex(),
        )

    async def set_file(
        self,
        key: PinKey,
        file_hash: Hash,
        caller: Optional[Address] = None
    ) -> None:
        await self.call(
            "pin_setFile",
            caller=self._caller_hex(caller),
            key=key.hex(),
            file_hash=file_hash.hex(),
        )

    # =========================================================================
    # Queries
    # =========================================================================

    async def get_file(self, key: PinKey) -> Hash:
        return Hash.from_hex(await self.call("pin_getFile", key=key.hex()))

    async def get_owner(self, key: PinKey) -> Address:
        return Address.from_hex(await self.call("pin_getOwner", key=key.hex()))

    async def get_pin(self, key: PinKey) -> Dict[str, Any]:
        return await self.call("pin_getPin", key=key.hex())

    async def count(self) -> int:
        return await self.call("pin_count")

    async def exists(self, key: PinKey) -> bool:
        return await self.call("pin_exists", key=key.hex())

    async def events(self, since: int = 0, limit: int = 100) -> List[Dict[str, Any]]:
        return await self.call("pin_events", since=since, limit=limit)
