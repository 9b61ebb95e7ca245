"""
Hold sweeper - background task deleting expired holds.

Storage hygiene only: expired holds are already ignored by every live query,
so correctness never depends on this loop running on time.
"""

import asyncio
import logging
from datetime import datetime
from typing import Callable, Optional

from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from wellness_booking.database import get_session
from wellness_booking.db_models import utc_now
from wellness_booking.repositories import HoldRepository

logger = logging.getLogger(__name__)


class HoldSweeper:
    def __init__(
        self,
        engine: Engine,
        interval: float = 60,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.engine = engine
        self.interval = interval
        self.clock = clock
        self.stats = {
            "total_sweeps": 0,
            "failed_sweeps": 0,
            "holds_removed": 0,
            "last_sweep_time": None,
        }

    def sweep_once(self) -> int:
        """Delete all expired holds, returning how many were removed"""
        with get_session(self.engine) as session:
            removed = HoldRepository(session).purge_expired(self.clock())

        self.stats["total_sweeps"] += 1
        self.stats["holds_removed"] += removed
        self.stats["last_sweep_time"] = self.clock()
        if removed:
            logger.info(f"Swept {removed} expired holds")
        return removed

    async def run(self, stop_event: Optional[asyncio.Event] = None) -> None:
        """
        Sweep every ``interval`` seconds until ``stop_event`` is set.
        Store errors are logged and the loop keeps going.
        """
        stop_event = stop_event or asyncio.Event()
        logger.info(f"Hold sweeper started (interval={self.interval}s)")

        while not stop_event.is_set():
            try:
                await asyncio.to_thread(self.sweep_once)
            except SQLAlchemyError as e:
                self.stats["failed_sweeps"] += 1
                logger.error(f"Hold sweep failed: {e}")

            try:
                await asyncio.wait_for(stop_event.wait(), timeout=self.interval)
            except asyncio.TimeoutError:
                pass

        logger.info("Hold sweeper stopped")
