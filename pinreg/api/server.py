"""
Pin Registry JSON-RPC Server

HTTP JSON-RPC server for registry interaction.
"""

from __future__ import annotations
import json
import logging
from dataclasses import dataclass, field
from typing import Any, List, Optional, TYPE_CHECKING

from aiohttp import web

from pinreg.api.methods import (
    METHOD_REGISTRY,
    get_method,
    RPCError,
    to_rpc_error,
    ERROR_PARSE,
    ERROR_INVALID_REQUEST,
    ERROR_METHOD_NOT_FOUND,
    ERROR_INVALID_PARAMS,
    ERROR_INTERNAL,
)
from pinreg.constants import DEFAULT_API_PORT
from pinreg.errors import PinRegistryError

if TYPE_CHECKING:
    from pinreg.node.node import Node

logger = logging.getLogger(__name__)


@dataclass
class RPCResponse:
    """JSON-RPC response."""
    jsonrpc: str = "2.0"
    result: Any = None
    error: Optional[dict] = None
    id: Any = None

    def to_dict(self) -> dict:
        d = {"jsonrpc": self.jsonrpc, "id": self.id}
        if self.error:
            d["error"] = self.error
        else:
            d["result"] = self.result
        return d


@dataclass
class APIServer:
    """
    JSON-RPC API Server.

    Provides HTTP interface for interacting with the pin registry.
    """
    node: "Node"
    host: str = "127.0.0.1"
    port: int = DEFAULT_API_PORT
    cors_origins: List[str] = field(default_factory=list)
    max_batch_size: int = 100

    _runner: Optional[web.AppRunner] = None
    _site: Optional[web.TCPSite] = None
    _running: bool = False

    def __post_init__(self):
        if not self.cors_origins:
            self.cors_origins = ["*"]

    def create_app(self) -> web.Application:
        """Build the aiohttp application."""
        app = web.Application(middlewares=[self._cors_middleware])

        app.router.add_post("/", self._handle_rpc)
        app.router.add_get("/health", self._handle_health)
        app.router.add_get("/methods", self._handle_methods)

        return app

    async def start(self) -> None:
        """Start the API server."""
        self._runner = web.AppRunner(self.create_app())
        await self._runner.setup()

        self._site = web.TCPSite(self._runner, self.host, self.port)
        await self._site.start()

        self._running = True
        logger.info(f"API server started on http://{self.host}:{self.port}")

    async def stop(self) -> None:
        """Stop the API server."""
        if self._runner:
            await self._runner.cleanup()
            self._runner = None
            self._site = None
            self._running = False
            logger.info("API server stopped")

    def _allow_origin(self, request: web.Request) -> str:
        if "*" in self.cors_origins:
            return "*"
        origin = request.headers.get("Origin", "")
        return origin if origin in self.cors_origins else ""

    @web.middleware
    async def _cors_middleware(self, request: web.Request, handler) -> web.StreamResponse:
        """CORS middleware."""
        if request.method == "OPTIONS":
            return web.Response(
                status=200,
                headers={
                    "Access-Control-Allow-Origin": self._allow_origin(request),
                    "Access-Control-Allow-Methods": "POST, GET, OPTIONS",
                    "Access-Control-Allow-Headers": "Content-Type",
                }
            )

        response = await handler(request)
        origin = self._allow_origin(request)
        if origin:
            response.headers["Access-Control-Allow-Origin"] = origin
        return response

    async def _handle_health(self, request: web.Request) -> web.Response:
        """Handle health check."""
        return web.json_response({
            "status": "ok",
            "pins": self.node.registry.count(),
        })

    async def _handle_methods(self, request: web.Request) -> web.Response:
        """Handle methods listing."""
        return web.json_response({"methods": list(METHOD_REGISTRY.keys())})

    async def _handle_rpc(self, request: web.Request) -> web.Response:
        """Handle JSON-RPC request."""
        try:
            body = await request.text()
            data = json.loads(body)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            return web.json_response(
                RPCResponse(
                    error={"code": ERROR_PARSE, "message": f"Parse error: {e}"}
                ).to_dict(),
                status=400
            )

        # Handle batch request
        if isinstance(data, list):
            if not data or len(data) > self.max_batch_size:
                return web.json_response(
                    RPCResponse(
                        error={
                            "code": ERROR_INVALID_REQUEST,
                            "message": f"Batch size must be 1..{self.max_batch_size}"
                        }
                    ).to_dict(),
                    status=400
                )

            # Sequential so that responses follow commit order
            responses = [await self.process_request(req) for req in data]
            return web.json_response([r.to_dict() for r in responses])

        response = await self.process_request(data)
        return web.json_response(response.to_dict())

    async def process_request(self, data: Any) -> RPCResponse:
        """Process a single JSON-RPC request."""
        if not isinstance(data, dict):
            return RPCResponse(
                error={"code": ERROR_INVALID_REQUEST, "message": "Invalid request"}
            )

        jsonrpc = data.get("jsonrpc")
        if jsonrpc != "2.0":
            return RPCResponse(
                error={"code": ERROR_INVALID_REQUEST, "message": "Invalid JSON-RPC version"},
                id=data.get("id")
            )

        method = data.get("method")
        if not method or not isinstance(method, str):
            return RPCResponse(
                error={"code": ERROR_INVALID_REQUEST, "message": "Missing method"},
                id=data.get("id")
            )

        params = data.get("params", [])
        req_id = data.get("id")

        try:
            result = await self._execute_method(method, params)
            return RPCResponse(result=result, id=req_id)

        except PinRegistryError as e:
            logger.debug(f"{method} rejected: {e}")
            rpc_error = to_rpc_error(e)
            return RPCResponse(
                error={"code": rpc_error.code, "message": rpc_error.message, "data": rpc_error.data},
                id=req_id
            )

        except RPCError as e:
            return RPCResponse(
                error={"code": e.code, "message": e.message, "data": e.data},
                id=req_id
            )

        except TypeError as e:
            return RPCResponse(
                error={"code": ERROR_INVALID_PARAMS, "message": f"Invalid params: {e}"},
                id=req_id
            )

        except Exception as e:
            logger.error(f"RPC error: {e}", exc_info=True)
            return RPCResponse(
                error={"code": ERROR_INTERNAL, "message": str(e)},
                id=req_id
            )

    async def _execute_method(self, method: str, params: Any) -> Any:
        """Execute an RPC method."""
        handler = get_method(method)

        if handler is None:
            raise RPCError(ERROR_METHOD_NOT_FOUND, f"Method not found: {method}")

        if isinstance(params, list):
            return await handler(self.node, *params)
        elif isinstance(params, dict):
            return await handler(self.node, **params)
        elif params is None:
            return await handler(self.node)
        else:
            raise RPCError(ERROR_INVALID_PARAMS, "Invalid params format")


def get_api_info() -> dict:
    """Get information about API server."""
    return {
        "protocol": "JSON-RPC 2.0",
        "default_port": DEFAULT_API_PORT,
        "methods_count": len(METHOD_REGISTRY),
        "batch_support": True,
    }
