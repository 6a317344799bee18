"""
Fixed-step tick loop driving a CoroutineRunner.

Elapsed wall time is gathered into an accumulator and handed to the runner
in whole steps of 1 / tick_rate_hz seconds, so routine delays always see the
same delta_time regardless of how unevenly the host loop is scheduled.
"""

from __future__ import annotations

import time
from typing import Callable

from routine_sched.runner import CoroutineRunner

from .config import LoopConfig
from .stats import RunStats


TickCallback = Callable[[CoroutineRunner], None]


class FixedStepLoop:
    """Feeds a runner fixed time steps from a monotonic clock."""

    __slots__ = (
        "runner",
        "config",
        "stats",
        "_now_provider",
        "_accumulator",
        "_prev_time",
    )

    def __init__(
        self,
        runner: CoroutineRunner,
        config: LoopConfig | None = None,
        now_provider: Callable[[], float] | None = None,
    ) -> None:
        self.runner = runner
        self.config = config or LoopConfig()
        self.stats = RunStats()
        self._now_provider = now_provider or time.monotonic
        self._accumulator: float = 0.0
        self._prev_time: float | None = None

    @property
    def accumulator(self) -> float:
        return self._accumulator

    def pump(self, on_tick: TickCallback | None = None) -> int:
        """Advance the runner for however many whole steps have elapsed.

        At most max_catchup_ticks advances happen per call; any further whole
        steps are dropped and only the fractional remainder is carried.
        """
        now = self._now_provider()
        if self._prev_time is None:
            self._prev_time = now
            return 0

        elapsed = max(0.0, now - self._prev_time)
        self._prev_time = now
        self._accumulator += elapsed

        step = self.config.step
        ticks = 0
        while self._accumulator >= step and ticks < self.config.max_catchup_ticks:
            self._accumulator -= step
            self._advance_once(step, on_tick)
            ticks += 1

        if self._accumulator >= step:
            kept = self._accumulator % step
            self.stats.dropped_seconds += self._accumulator - kept
            self._accumulator = kept

        return ticks

    def run_for(self, seconds: float, on_tick: TickCallback | None = None) -> int:
        """Simulated run: advance by whole steps with no wall clock involved.

        Stops early once the runner has nothing left. Returns the number of
        advances performed.
        """
        if seconds < 0:
            raise ValueError("seconds must be >= 0")

        step = self.config.step
        total = int(round(seconds / step))
        for ticks in range(total):
            if self.runner.count == 0:
                return ticks
            self._advance_once(step, on_tick)
        return total

    def run_until_idle(
        self,
        on_tick: TickCallback | None = None,
        sleep: Callable[[float], None] = time.sleep,
        timeout: float | None = None,
    ) -> None:
        """Real-time run: pump and sleep until the runner is empty."""
        started = self._now_provider()
        self.pump()
        while True:
            self.pump(on_tick)
            if self.runner.count == 0:
                return
            if timeout is not None and self._now_provider() - started >= timeout:
                return
            sleep(max(0.0, self.config.step - self._accumulator))

    def _advance_once(self, step: float, on_tick: TickCallback | None) -> None:
        self.runner.advance(step)
        self.stats.record_tick(self.runner, step)
        if on_tick is not None:
            on_tick(self.runner)
