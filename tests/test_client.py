"""
Pin Registry Client Tests

The client talks to an in-process APIServer through an httpx mock
transport, so no socket is opened.
"""

import json

import httpx
import pytest

from pinreg.api.client import RegistryClient, RPCClientError
from pinreg.api.methods import ERROR_NOT_AUTHORIZED
from pinreg.api.server import APIServer
from pinreg.constants import LOCKED_TIMESTAMP
from pinreg.core.types import PinKey
from pinreg.crypto.hash import content_hash, sha3_256
from pinreg.node.config import NodeConfig
from pinreg.node.node import Node

pytestmark = [pytest.mark.asyncio, pytest.mark.timeout(10)]


@pytest.fixture
def server(registry):
    config = NodeConfig()
    config.storage.enabled = False
    config.api.enabled = False
    return APIServer(node=Node(config, clock=registry.clock, registry=registry))


def _transport(server):
    async def handler(request: httpx.Request) -> httpx.Response:
        response = await server.process_request(json.loads(request.content))
        return httpx.Response(200, json=response.to_dict())
    return httpx.MockTransport(handler)


class TestRegistryClient:
    """Tests for RegistryClient."""

    async def test_pin_lifecycle(self, server, alice, tmp_path):
        path = tmp_path / "photo.jpg"
        path.write_bytes(b"\xff\xd8" + b"pixels" * 1000)
        file_hash = content_hash(path)

        async with RegistryClient("http://node", caller=alice, transport=_transport(server)) as client:
            key = await client.pin(file_hash, 1, 2)
            assert key == PinKey.from_fields(1, 2, 0, 1000)
            assert await client.exists(key)
            assert await client.get_file(key) == file_hash
            assert await client.get_owner(key) == alice

            locked = await client.lock_pin(key)
            assert locked.timestamp == LOCKED_TIMESTAMP
            assert await client.count() == 1

            events = await client.events()
            assert [e["event"] for e in events] == ["Pinned", "LockedPin"]

    async def test_error_raised(self, server, alice, bob, mock_hash, mock_hash_2):
        async with RegistryClient("http://node", caller=alice, transport=_transport(server)) as client:
            key = await client.pin(mock_hash, 1, 2)

            with pytest.raises(RPCClientError) as exc_info:
                await client.set_file(key, mock_hash_2, caller=bob)
            assert exc_info.value.code == ERROR_NOT_AUTHORIZED

            await client.set_owner(key, bob)
            await client.set_file(key, mock_hash_2, caller=bob)
            assert await client.get_file(key) == mock_hash_2

            await client.unpin(key, caller=bob)
            assert await client.count() == 0

    async def test_missing_caller(self, server, mock_hash):
        async with RegistryClient("http://node", transport=_transport(server)) as client:
            with pytest.raises(ValueError):
                await client.pin(mock_hash, 1, 2)

    async def test_http_error(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(500))
        async with RegistryClient("http://node", transport=transport) as client:
            with pytest.raises(httpx.HTTPStatusError):
                await client.count()


class TestContentHash:
    """Tests for file hashing."""

    async def test_matches_bytes_hash(self, tmp_path):
        data = b"a" * (3 << 20)
        path = tmp_path / "big.bin"
        path.write_bytes(data)
        assert content_hash(path) == sha3_256(data)
        assert content_hash(str(path)) == sha3_256(data)
