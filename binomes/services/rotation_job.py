# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Background ticker: one per process, sweeps all sections for expired cycles.
"""

import asyncio
from typing import Optional

from binomes.core.logging import get_logger
from binomes.services.cycle_service import CycleService

logger = get_logger(__name__)


class RotationJob:
    """Runs CycleService.run_once at start-up and then every ``interval_seconds``."""

    def __init__(self, cycle_service: CycleService, interval_seconds: float = 3600) -> None:
        self._service = cycle_service
        self._interval = interval_seconds
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def tick(self) -> Optional[dict[str, int]]:
        """One sweep in a worker thread; errors are logged, never raised."""
        try:
            return await asyncio.to_thread(self._service.run_once)
        except Exception:
            logger.exception("Rotation sweep crashed, will retry next tick")
            return None

    async def _loop(self) -> None:
        while True:
            await self.tick()
            await asyncio.sleep(self._interval)

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._loop(), name="binome-rotation-job")
        logger.info("Rotation job started (interval=%ss)", self._interval)

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Rotation job stopped")
