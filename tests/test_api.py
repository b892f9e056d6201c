"""
Pin Registry JSON-RPC API Tests
"""

import pytest

from pinreg.api.methods import (
    ERROR_INVALID_PARAMS,
    ERROR_INVALID_REQUEST,
    ERROR_METHOD_NOT_FOUND,
    ERROR_NOT_AUTHORIZED,
    ERROR_NOT_FOUND,
    ERROR_PIN_LOCKED,
    get_methods_info,
    list_methods,
)
from pinreg.api.server import APIServer, get_api_info
from pinreg.constants import LOCKED_TIMESTAMP
from pinreg.core.types import PinKey
from pinreg.node.config import NodeConfig
from pinreg.node.node import Node

pytestmark = [pytest.mark.asyncio, pytest.mark.timeout(10)]


@pytest.fixture
def node(registry):
    """Node wired to the test registry, not started."""
    config = NodeConfig()
    config.storage.enabled = False
    config.api.enabled = False
    return Node(config, clock=registry.clock, registry=registry)


@pytest.fixture
def server(node):
    return APIServer(node=node)


def _request(method, params=None, req_id=1):
    request = {"jsonrpc": "2.0", "method": method, "id": req_id}
    if params is not None:
        request["params"] = params
    return request


async def _call(server, method, **params):
    return (await server.process_request(_request(method, params))).to_dict()


class TestProtocol:
    """JSON-RPC envelope handling."""

    async def test_invalid_version(self, server):
        response = await server.process_request({"jsonrpc": "1.0", "method": "pin_count", "id": 1})
        assert response.error["code"] == ERROR_INVALID_REQUEST

    async def test_not_an_object(self, server):
        response = await server.process_request(["pin_count"])
        assert response.error["code"] == ERROR_INVALID_REQUEST

    async def test_unknown_method(self, server):
        response = await server.process_request(_request("pin_nope"))
        assert response.error["code"] == ERROR_METHOD_NOT_FOUND

    async def test_missing_params(self, server):
        response = await server.process_request(_request("pin_getFile", {}))
        assert response.error["code"] == ERROR_INVALID_PARAMS

    async def test_positional_params(self, server, alice, mock_hash):
        response = await server.process_request(
            _request("pin_pin", [alice.hex(), mock_hash.hex(), 1, 2, 0])
        )
        assert response.error is None
        assert response.result["timestamp"] == 1000

    async def test_response_echoes_id(self, server):
        response = await server.process_request(_request("pin_count", req_id="abc"))
        assert response.to_dict() == {"jsonrpc": "2.0", "id": "abc", "result": 0}


class TestMethods:
    """Registry methods over RPC."""

    async def test_pin_and_query(self, server, alice, mock_hash):
        result = (await _call(
            server, "pin_pin",
            caller=alice.hex(), file_hash="0x" + mock_hash.hex(),
            latitude=1, longitude="0x2",
        ))["result"]

        key = PinKey.from_fields(1, 2, 0, 1000)
        assert result == {"key": key.hex(), "latitude": 1, "longitude": 2, "altitude": 0, "timestamp": 1000}

        assert (await _call(server, "pin_getFile", key=key.hex()))["result"] == mock_hash.hex()
        assert (await _call(server, "pin_getOwner", key=key.hex()))["result"] == alice.hex()
        assert (await _call(server, "pin_exists", key=key.hex()))["result"] is True
        assert (await _call(server, "pin_count"))["result"] == 1

    async def test_lock_and_unpin_rejected(self, server, alice, mock_hash):
        pinned = (await _call(
            server, "pin_pin",
            caller=alice.hex(), file_hash=mock_hash.hex(), latitude=1, longitude=2,
        ))["result"]

        locked = (await _call(server, "pin_lock", caller=alice.hex(), key=pinned["key"]))["result"]
        assert locked["old_key"] == pinned["key"]
        assert PinKey.from_hex(locked["new_key"]).timestamp == LOCKED_TIMESTAMP

        response = await _call(server, "pin_unpin", caller=alice.hex(), key=locked["new_key"])
        assert response["error"]["code"] == ERROR_PIN_LOCKED
        assert response["error"]["data"]["name"] == "PIN_LOCKED"

    async def test_not_authorized(self, server, alice, bob, mock_hash, mock_hash_2):
        pinned = (await _call(
            server, "pin_pin",
            caller=alice.hex(), file_hash=mock_hash.hex(), latitude=1, longitude=2,
        ))["result"]

        response = await _call(
            server, "pin_setFile",
            caller=bob.hex(), key=pinned["key"], file_hash=mock_hash_2.hex(),
        )
        assert response["error"]["code"] == ERROR_NOT_AUTHORIZED

    async def test_set_owner(self, server, alice, bob, mock_hash):
        pinned = (await _call(
            server, "pin_pin",
            caller=alice.hex(), file_hash=mock_hash.hex(), latitude=1, longitude=2,
        ))["result"]

        response = await _call(
            server, "pin_setOwner",
            caller=alice.hex(), key=pinned["key"], new_owner=bob.hex(),
        )
        assert response["result"] is True
        assert (await _call(server, "pin_getOwner", key=pinned["key"]))["result"] == bob.hex()

    async def test_unpin_unknown(self, server, alice, natural_key):
        response = await _call(server, "pin_unpin", caller=alice.hex(), key=natural_key.hex())
        assert response["error"]["code"] == ERROR_NOT_FOUND

    async def test_bad_key(self, server):
        response = await _call(server, "pin_getFile", key="zz")
        assert response["error"]["code"] == ERROR_INVALID_PARAMS

    async def test_field_out_of_range(self, server, alice, mock_hash):
        response = await _call(
            server, "pin_pin",
            caller=alice.hex(), file_hash=mock_hash.hex(), latitude=-1, longitude=2,
        )
        assert response["error"]["code"] == ERROR_INVALID_PARAMS

    async def test_parse_key(self, server):
        key = PinKey.from_fields(1, 2, 3, LOCKED_TIMESTAMP)
        result = (await _call(server, "pin_parseKey", key=key.hex()))["result"]
        assert result == {
            "latitude": 1,
            "longitude": 2,
            "altitude": 3,
            "timestamp": LOCKED_TIMESTAMP,
            "locked": True,
        }

    async def test_get_pin(self, server, natural_key):
        result = (await _call(server, "pin_getPin", key=natural_key.hex()))["result"]
        assert result["live"] is False
        assert result["file_hash"] == "00" * 32

    async def test_events(self, server, alice, mock_hash):
        await _call(server, "pin_pin", caller=alice.hex(), file_hash=mock_hash.hex(), latitude=1, longitude=2)
        await _call(server, "pin_pin", caller=alice.hex(), file_hash=mock_hash.hex(), latitude=1, longitude=2)

        events = (await _call(server, "pin_events", since=1))["result"]
        assert len(events) == 1
        assert events[0]["sequence"] == 2
        assert events[0]["event"] == "Pinned"
        assert events[0]["timestamp"] == 1001

        response = await _call(server, "pin_events", limit=0)
        assert response["error"]["code"] == ERROR_INVALID_PARAMS

    async def test_status_and_version(self, server):
        status = (await _call(server, "pin_status"))["result"]
        assert status["live_pins"] == 0
        assert status["started"] is False

        version = (await _call(server, "pin_version"))["result"]
        assert version["lock_policy"] == "forbid_locked"
        assert version["ownership_window_sec"] == 31_536_000


class TestRegistryListing:
    """Method listing helpers."""

    async def test_list_methods(self):
        methods = list_methods()
        assert "pin_pin" in methods
        assert "pin_lock" in methods
        assert set(get_methods_info()) == set(methods)
        assert get_api_info()["methods_count"] == len(methods)
