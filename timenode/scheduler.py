"""
POLLING SCHEDULER

Drives the scanner and the dispatcher on two independent timers:
- scan: every ``interval_seconds``
- dispatch: every ``interval_seconds + DISPATCH_OFFSET_SECONDS``

The offset staggers the loops so a dispatch tick does not start at the same
instant as a scan tick. Both loops tick once as soon as the scheduler
starts.
"""

import asyncio
import logging
from datetime import datetime
from typing import Awaitable, Callable, Dict, List

logger = logging.getLogger(__name__)

DISPATCH_OFFSET_SECONDS = 1.0

SCAN = 'scan'
DISPATCH = 'dispatch'


class PollingScheduler:
    """
    Two repeating timers with isolated ticks.

    Every firing runs its tick as a separate task, so a slow tick never
    delays the timer and a failing tick never stops it. ``stop()`` cancels
    the timers only; ticks already running are left to finish.
    """

    def __init__(
        self,
        scan_callback: Callable[[], Awaitable],
        dispatch_callback: Callable[[], Awaitable],
        interval_seconds: float,
        dispatch_offset: float = DISPATCH_OFFSET_SECONDS,
    ):
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")

        self.callbacks = {
            SCAN: scan_callback,
            DISPATCH: dispatch_callback,
        }
        self.intervals = {
            SCAN: interval_seconds,
            DISPATCH: interval_seconds + dispatch_offset,
        }

        self.started = False
        self._timers: List[asyncio.Task] = []
        self._in_flight = set()

        # Stats
        self.ticks = {SCAN: 0, DISPATCH: 0}
        self.failures = {SCAN: 0, DISPATCH: 0}
        self.last_tick_time = {SCAN: None, DISPATCH: None}

    def start(self):
        """
        Start both timers. Calling it while running restarts them.

        Must be called from inside a running event loop.
        """
        if self.started:
            self.stop()

        self._timers = [
            asyncio.create_task(self._timer(name), name=f"timenode-{name}-timer")
            for name in (SCAN, DISPATCH)
        ]

        self.started = True
        logger.info(
            f"[SCHEDULER] Scanning STARTED (scan every {self.intervals[SCAN]}s, "
            f"dispatch every {self.intervals[DISPATCH]}s)"
        )

    def stop(self):
        for timer in self._timers:
            timer.cancel()
        self._timers = []

        self.started = False
        logger.info("[SCHEDULER] Scanning STOPPED")

    @property
    def active_timers(self) -> int:
        return sum(1 for timer in self._timers if not timer.done())

    @property
    def in_flight(self) -> int:
        return len(self._in_flight)

    async def wait_idle(self):
        """Wait for every tick currently running to finish."""
        while self._in_flight:
            await asyncio.gather(*list(self._in_flight), return_exceptions=True)

    async def run_once(self):
        """Run one scan tick then one dispatch tick, outside the timers."""
        await self._run_tick(SCAN)
        await self._run_tick(DISPATCH)

    async def _timer(self, name: str):
        while True:
            self._spawn(name)
            await asyncio.sleep(self.intervals[name])

    def _spawn(self, name: str):
        task = asyncio.create_task(self._run_tick(name), name=f"timenode-{name}-tick")
        self._in_flight.add(task)
        task.add_done_callback(self._in_flight.discard)

    async def _run_tick(self, name: str):
        self.last_tick_time[name] = datetime.now()
        try:
            await self.callbacks[name]()
        except Exception as e:
            self.failures[name] += 1
            logger.error(f"[SCHEDULER] {name} tick failed: {e}", exc_info=True)
        finally:
            self.ticks[name] += 1

    def get_stats(self) -> Dict:
        return {
            'started': self.started,
            'ticks': self.ticks.copy(),
            'failures': self.failures.copy(),
            'in_flight': self.in_flight,
            'last_tick_time': {
                k: v.isoformat() if v else None
                for k, v in self.last_tick_time.items()
            },
            'intervals': self.intervals.copy(),
        }
