"""
Pin Registry Node
Main node orchestrator.
"""

from __future__ import annotations
import argparse
import asyncio
import logging
import signal
import sys
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from pinreg import __version__
from pinreg.constants import REGISTRY_VERSION
from pinreg.api.server import APIServer
from pinreg.core.clock import Clock
from pinreg.node.config import NodeConfig, setup_logging
from pinreg.state.events import EventEmitter
from pinreg.state.registry import PinRegistry
from pinreg.state.storage import PinStorage

logger = logging.getLogger(__name__)


@dataclass
class NodeStatus:
    """Node status information."""
    started: bool = False
    start_time: float = 0.0
    uptime_seconds: int = 0


@dataclass
class Node:
    """
    Pin Registry Node.

    Coordinates the registry, its storage, the host clock and the
    JSON-RPC API.
    """
    config: NodeConfig
    clock: Optional[Clock] = None

    registry: Optional[PinRegistry] = None
    storage: Optional[PinStorage] = None
    api: Optional[APIServer] = None

    status: NodeStatus = field(default_factory=NodeStatus)
    _running: bool = False

    def __post_init__(self):
        if self.clock is None:
            self.clock = self.config.clock.create()
        if self.registry is None:
            self.registry = self._build_registry()

    def _build_registry(self, storage: Optional[PinStorage] = None) -> PinRegistry:
        registry_config = self.config.registry
        kwargs = dict(
            clock=self.clock,
            ownership_window_sec=registry_config.ownership_window_sec,
            lock_policy=registry_config.policy,
            emitter=EventEmitter(max_history=registry_config.event_history),
        )
        if storage is not None:
            return PinRegistry.from_storage(storage, **kwargs)
        return PinRegistry(**kwargs)

    async def start(self) -> None:
        """Start the node."""
        if self._running:
            return

        logger.info(f"Starting pin registry node: {self.config.name}")
        logger.info(f"Lock policy: {self.config.registry.lock_policy}, "
                    f"ownership window: {self.config.registry.ownership_window_sec}s")

        if self.config.storage.enabled:
            self.storage = PinStorage(str(self.config.db_path))
            self.storage.connect()
            self.registry = self._build_registry(self.storage)

        if self.config.api.enabled:
            self.api = APIServer(
                node=self,
                host=self.config.api.host,
                port=self.config.api.port,
                cors_origins=list(self.config.api.cors_origins),
                max_batch_size=self.config.api.max_batch_size,
            )
            await self.api.start()

        self._running = True
        self.status.started = True
        self.status.start_time = time.time()

        logger.info(f"Node started with {self.registry.count()} live pins")

    async def stop(self) -> None:
        """Stop the node."""
        if not self._running:
            return

        logger.info("Stopping node...")
        self._running = False

        if self.api:
            await self.api.stop()

        if self.storage:
            self.storage.close()

        self.status.started = False
        logger.info("Node stopped")

    def get_status(self) -> dict:
        """Get node status."""
        if self.status.started:
            self.status.uptime_seconds = int(time.time() - self.status.start_time)
        return {
            "name": self.config.name,
            "started": self.status.started,
            "uptime_seconds": self.status.uptime_seconds,
            "live_pins": self.registry.count(),
            "last_event": self.registry.emitter.last_sequence,
            "storage": self.storage is not None,
            "version": __version__,
            "registry_version": REGISTRY_VERSION,
        }


def _parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Pin Registry Node")
    parser.add_argument("--config", "-c", type=str, help="Path to config file")
    parser.add_argument("--data-dir", type=str, help="Data directory")
    parser.add_argument("--host", type=str, help="API listen address")
    parser.add_argument("--port", type=int, help="API port")
    parser.add_argument("--log-level", type=str, help="Log level")
    parser.add_argument("--init-config", type=str, metavar="PATH",
                        help="Write a default config file and exit")
    return parser.parse_args(argv)


async def _run(node: Node) -> None:
    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, stop_event.set)

    await node.start()
    try:
        await stop_event.wait()
    finally:
        await node.stop()


def main(argv=None) -> int:
    """Main entry point for running the node."""
    args = _parse_args(argv)

    if args.init_config:
        NodeConfig().save(args.init_config)
        print(f"Wrote default configuration to {args.init_config}")
        return 0

    config = NodeConfig.load(args.config) if args.config else NodeConfig()

    # Command line overrides
    if args.data_dir:
        config.storage.data_dir = args.data_dir
    if args.host:
        config.api.host = args.host
    if args.port:
        config.api.port = args.port
    if args.log_level:
        config.log.level = args.log_level

    setup_logging(config.log)

    errors = config.validate()
    if errors:
        for error in errors:
            logger.error(f"Config error: {error}")
        return 1

    if config.storage.enabled:
        Path(config.storage.data_dir).mkdir(parents=True, exist_ok=True)

    try:
        asyncio.run(_run(Node(config)))
    except KeyboardInterrupt:
        pass
    return 0


if __name__ == "__main__":
    sys.exit(main())
