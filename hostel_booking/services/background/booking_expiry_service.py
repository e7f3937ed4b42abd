"""
Booking expiry sweep.

Periodically expires bookings whose confirmation or payment window has
elapsed, and paid bookings whose check-in grace period has passed,
returning their rooms to inventory. Reads through
`BookingLifecycleService.get_booking` expire stale bookings too, so the
sweep only bounds how long a stale reservation can hold a room.
"""

import logging
import threading
import time
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from hostel_booking.services.booking.booking_lifecycle_service import BookingLifecycleService
from hostel_booking.utils.datetime_utils import utc_now

logger = logging.getLogger(__name__)


@dataclass
class SweepConfig:
    """Configuration for the expiry sweep."""
    interval_seconds: float = 300
    batch_size: int = 100
    max_batches: int = 10


@dataclass
class SweepResult:
    started_at: datetime
    expired: int
    batches: int
    duration_seconds: float


class BookingExpiryService:
    """Runs expiry sweeps in batches until no stale booking is left."""

    def __init__(self, lifecycle: BookingLifecycleService, config: Optional[SweepConfig] = None):
        self.lifecycle = lifecycle
        self.config = config or SweepConfig(
            interval_seconds=lifecycle.config.EXPIRY_SWEEP_INTERVAL_SECONDS,
        )

    def run_once(self) -> SweepResult:
        started_at = utc_now()
        start = time.perf_counter()
        expired = 0
        batches = 0

        while batches < self.config.max_batches:
            batches += 1
            count = self.lifecycle.expire_stale_bookings(limit=self.config.batch_size)
            expired += count
            if count < self.config.batch_size:
                break

        result = SweepResult(
            started_at=started_at,
            expired=expired,
            batches=batches,
            duration_seconds=time.perf_counter() - start,
        )
        logger.info(
            f"Expiry sweep finished: {expired} expired in {batches} batch(es)",
            extra={"operation": "expiry_sweep"},
        )
        return result


class ExpirySweeper(threading.Thread):
    """Background thread running `BookingExpiryService.run_once` on an interval."""

    def __init__(self, service: BookingExpiryService):
        super().__init__(name="booking-expiry-sweeper", daemon=True)
        self.service = service
        self._stop_event = threading.Event()

    def run(self) -> None:
        logger.info("Expiry sweeper started")
        while not self._stop_event.is_set():
            try:
                self.service.run_once()
            except Exception as e:
                # Keep sweeping; the next run retries whatever failed.
                logger.error(f"Expiry sweep failed: {str(e)}", exc_info=True)
            self._stop_event.wait(self.service.config.interval_seconds)
        logger.info("Expiry sweeper stopped")

    def stop(self, timeout: Optional[float] = None) -> None:
        self._stop_event.set()
        if self.is_alive():
            self.join(timeout)
