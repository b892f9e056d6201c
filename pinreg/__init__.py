"""
Pin Registry

Binds a content hash to a geospatial-temporal key ("pin") with a
time-decaying owner. Locked pins can never be removed.
"""

__version__ = "0.1.0"
__author__ = "Pin Registry"

from pinreg.constants import REGISTRY_VERSION, LOCKED_TIMESTAMP, OWNERSHIP_WINDOW_SEC

__all__ = [
    "REGISTRY_VERSION",
    "LOCKED_TIMESTAMP",
    "OWNERSHIP_WINDOW_SEC",
    "__version__",
]
