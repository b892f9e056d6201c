"""
Pin Registry JSON-RPC API
"""

from pinreg.api.methods import METHOD_REGISTRY, RPCError, list_methods
from pinreg.api.server import APIServer, RPCResponse
from pinreg.api.client import RegistryClient, RPCClientError

__all__ = [
    "METHOD_REGISTRY",
    "RPCError",
    "list_methods",
    "APIServer",
    "RPCResponse",
    "RegistryClient",
    "RPCClientError",
]
