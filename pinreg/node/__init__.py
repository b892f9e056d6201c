"""
Pin Registry Node
"""

from pinreg.node.config import NodeConfig, setup_logging

__all__ = [
    "NodeConfig",
    "setup_logging",
]
