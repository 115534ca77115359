from __future__ import annotations

import asyncio
from typing import Any, Callable, Optional

from .telemetry import log


class TickScheduler:
    """
    Fixed-period clock for the simulator.
    - tick is synchronous and runs to completion on the loop: ticks never overlap.
    - if a tick overruns, missed slots are skipped (no catch-up burst).
    - stop() only prevents future ticks; an in-flight tick always finishes.
    """

    def __init__(self, tick: Callable[[], Any], period_s: float = 1.0):
        self._tick = tick
        self.period_s = float(period_s)
        self.ticks = 0
        self.skipped = 0
        self._stop: Optional[asyncio.Event] = None
        self._stop_requested = False

    def stop(self) -> None:
        self._stop_requested = True
        if self._stop is not None:
            self._stop.set()

    async def run(self, stop_event: Optional[asyncio.Event] = None) -> None:
        self._stop = stop_event or asyncio.Event()
        if self._stop_requested:
            self._stop.set()
        loop = asyncio.get_running_loop()
        next_at = loop.time()

        while not self._stop.is_set():
            try:
                self._tick()
            except Exception as e:
                log(f"[CLK] tick failed: {repr(e)}")
            self.ticks += 1

            next_at += self.period_s
            now = loop.time()
            if now > next_at:
                # overran: realign to the next slot in the future
                missed = int((now - next_at) // self.period_s) + 1
                self.skipped += missed
                next_at += missed * self.period_s

            try:
                await asyncio.wait_for(self._stop.wait(), timeout=max(0.0, next_at - loop.time()))
            except asyncio.TimeoutError:
                pass
