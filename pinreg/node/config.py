"""
Pin Registry Node Configuration
"""

from __future__ import annotations
import json
import logging
from dataclasses import dataclass, field, asdict
from pathlib import Path
from typing import List, Optional

from pinreg.constants import (
    DEFAULT_API_PORT,
    DEFAULT_EVENT_HISTORY,
    DEFAULT_NTP_SERVER,
    DEFAULT_NTP_TIMEOUT_SEC,
    DEFAULT_NTP_RETRY_SEC,
    OWNERSHIP_WINDOW_SEC,
    LOCK_POLICY_FORBID_LOCKED,
)
from pinreg.core.clock import Clock, SystemClock, NTPClock
from pinreg.state.access import LockPolicy

logger = logging.getLogger(__name__)

CLOCK_SOURCES = ("system", "ntp")


@dataclass
class RegistryConfig:
    """Registry policy configuration."""
    ownership_window_sec: int = OWNERSHIP_WINDOW_SEC
    lock_policy: str = LOCK_POLICY_FORBID_LOCKED
    event_history: int = DEFAULT_EVENT_HISTORY

    @property
    def policy(self) -> LockPolicy:
        return LockPolicy(self.lock_policy)


@dataclass
class ClockConfig:
    """Host clock configuration."""
    source: str = "system"
    ntp_server: str = DEFAULT_NTP_SERVER
    ntp_timeout_sec: int = DEFAULT_NTP_TIMEOUT_SEC
    ntp_retry_sec: int = DEFAULT_NTP_RETRY_SEC

    def create(self) -> Clock:
        """Build the configured clock."""
        if self.source == "ntp":
            return NTPClock(
                server=self.ntp_server,
                timeout_sec=self.ntp_timeout_sec,
                retry_sec=self.ntp_retry_sec,
            )
        return SystemClock()


@dataclass
class StorageConfig:
    """Storage configuration."""
    enabled: bool = True
    data_dir: str = "./data"
    db_name: str = "pins.db"


@dataclass
class APIConfig:
    """API server configuration."""
    enabled: bool = True
    host: str = "127.0.0.1"
    port: int = DEFAULT_API_PORT
    cors_origins: List[str] = field(default_factory=list)
    max_batch_size: int = 100


@dataclass
class LogConfig:
    """Logging configuration."""
    level: str = "INFO"
    file: Optional[str] = None
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    max_size_mb: int = 100
    backup_count: int = 5


@dataclass
class NodeConfig:
    """
    Complete node configuration.

    All settings for running a pin registry node.
    """
    name: str = "pin-node"

    # Sub-configurations
    registry: RegistryConfig = field(default_factory=RegistryConfig)
    clock: ClockConfig = field(default_factory=ClockConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    api: APIConfig = field(default_factory=APIConfig)
    log: LogConfig = field(default_factory=LogConfig)

    @property
    def data_path(self) -> Path:
        """Get data directory path."""
        return Path(self.storage.data_dir)

    @property
    def db_path(self) -> Path:
        """Get database file path."""
        return self.data_path / self.storage.db_name

    def validate(self) -> List[str]:
        """
        Validate configuration.

        Returns:
            List of validation errors (empty if valid)
        """
        errors = []

        # Registry validation
        if self.registry.ownership_window_sec < 0:
            errors.append("ownership_window_sec cannot be negative")

        if self.registry.lock_policy not in [p.value for p in LockPolicy]:
            errors.append(f"Unknown lock policy: {self.registry.lock_policy}")

        if self.registry.event_history < 1:
            errors.append("event_history must be at least 1")

        # Clock validation
        if self.clock.source not in CLOCK_SOURCES:
            errors.append(f"Unknown clock source: {self.clock.source}")

        # Storage validation
        if self.storage.enabled and not self.storage.data_dir:
            errors.append("data_dir cannot be empty")

        # API validation
        if self.api.enabled:
            if self.api.port < 1 or self.api.port > 65535:
                errors.append(f"Invalid API port: {self.api.port}")
            if self.api.max_batch_size < 1:
                errors.append("max_batch_size must be at least 1")

        return errors

    def save(self, path: str) -> None:
        """Save configuration to file."""
        with open(path, 'w') as f:
            json.dump(self.to_dict(), f, indent=2)

        logger.info(f"Configuration saved to {path}")

    @classmethod
    def load(cls, path: str) -> "NodeConfig":
        """Load configuration from file."""
        with open(path, 'r') as f:
            data = json.load(f)

        config = cls(name=data.get("name", "pin-node"))

        if "registry" in data:
            config.registry = RegistryConfig(**data["registry"])

        if "clock" in data:
            config.clock = ClockConfig(**data["clock"])

        if "storage" in data:
            config.storage = StorageConfig(**data["storage"])

        if "api" in data:
            config.api = APIConfig(**data["api"])

        if "log" in data:
            config.log = LogConfig(**data["log"])

        logger.info(f"Configuration loaded from {path}")
        return config

    def to_dict(self) -> dict:
        """Export configuration as dictionary."""
        return {
            "name": self.name,
            "registry": asdict(self.registry),
            "clock": asdict(self.clock),
            "storage": asdict(self.storage),
            "api": asdict(self.api),
            "log": asdict(self.log),
        }


def setup_logging(config: LogConfig) -> None:
    """Configure logging based on config."""
    level = getattr(logging, config.level.upper(), logging.INFO)

    handlers = [logging.StreamHandler()]

    if config.file:
        from logging.handlers import RotatingFileHandler
        file_handler = RotatingFileHandler(
            config.file,
            maxBytes=config.max_size_mb * 1024 * 1024,
            backupCount=config.backup_count,
        )
        handlers.append(file_handler)

    logging.basicConfig(
        level=level,
        format=config.format,
        handlers=handlers,
    )
