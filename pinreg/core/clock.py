"""
Pin Registry Clocks

Host time sources. The registry reads `now()` once per operation and
uses the value verbatim as a creation timestamp, so every clock here
is non-decreasing: a source that steps backwards is held at the last
value it returned.
"""

from __future__ import annotations
import logging
import threading
import time
from typing import Optional

import ntplib

from pinreg.constants import DEFAULT_NTP_SERVER, DEFAULT_NTP_TIMEOUT_SEC, DEFAULT_NTP_RETRY_SEC

logger = logging.getLogger(__name__)


class Clock:
    """Base clock returning whole seconds."""

    def __init__(self):
        self._last = 0
        self._lock = threading.Lock()

    def _read(self) -> int:
        raise NotImplementedError

    def now(self) -> int:
        with self._lock:
            value = self._read()
            if value < self._last:
                logger.warning(f"Clock stepped backwards ({value} < {self._last}), holding")
                value = self._last
            self._last = value
            return value


class SystemClock(Clock):
    """Local wall clock (Unix seconds)."""

    def _read(self) -> int:
        return int(time.time())


class NTPClock(Clock):
    """
    Wall clock corrected by an NTP offset.

    The offset is measured on first use and on `sync()`. If the server
    cannot be reached the last known offset (initially zero) is kept and
    `now()` does not query again until `retry_sec` has passed.
    """

    def __init__(
        self,
        server: str = DEFAULT_NTP_SERVER,
        timeout_sec: float = DEFAULT_NTP_TIMEOUT_SEC,
        client: Optional[ntplib.NTPClient] = None,
        retry_sec: float = DEFAULT_NTP_RETRY_SEC
    ):
        super().__init__()
        self.server = server
        self.timeout_sec = timeout_sec
        self.retry_sec = retry_sec
        self.offset = 0.0
        self.synced = False
        self._next_attempt = 0.0
        self._client = client or ntplib.NTPClient()

    def sync(self) -> bool:
        """
        Measure the local clock offset against the NTP server.

        Returns:
            True if the offset was updated
        """
        try:
            response = self._client.request(self.server, version=4, timeout=self.timeout_sec)
        except (ntplib.NTPException, OSError) as e:
            self._next_attempt = time.monotonic() + self.retry_sec
            logger.warning(f"NTP query to {self.server} failed: {e}, retrying in {self.retry_sec}s")
            return False

        self.offset = response.offset
        self.synced = True
        logger.info(f"NTP offset from {self.server}: {self.offset:+.3f}s (stratum {response.stratum})")
        return True

    def _read(self) -> int:
        if not self.synced and time.monotonic() >= self._next_attempt:
            self.sync()
        return int(time.time() + self.offset)


class ManualClock(Clock):
    """Clock driven explicitly, for tests and simulations."""

    def __init__(self, start: int = 0):
        super().__init__()
        self._now = start

    def _read(self) -> int:
        return self._now

    def set(self, value: int) -> None:
        if value < self._now:
            raise ValueError(f"Clock cannot move backwards: {value} < {self._now}")
        self._now = value

    def advance(self, seconds: int) -> int:
        self.set(self._now + seconds)
        return self._now
