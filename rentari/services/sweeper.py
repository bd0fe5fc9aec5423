"""Background thread that frees vehicles whose hold has lapsed."""

import logging
import threading
from typing import Optional

from rentari.services.vehicle_service import VehicleService

logger = logging.getLogger(__name__)


class ReleaseSweeper:
    """Runs VehicleService.release_expired() every `interval` seconds until stopped."""

    def __init__(self, interval: int):
        self.interval = interval
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self):
        if self.running:
            logger.warning("Release sweeper is already running")
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name="release-sweeper", daemon=True)
        self._thread.start()
        logger.info("Release sweeper started (every %ss)", self.interval)

    def stop(self, timeout: float = 5.0):
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
        self._thread = None
        logger.info("Release sweeper stopped")

    def run_once(self) -> int:
        return VehicleService.release_expired()

    def _run(self):
        while not self._stop.wait(self.interval):
            try:
                self.run_once()
            except Exception:
                # keep the loop alive; the next tick retries
                logger.exception("Release sweep failed")
