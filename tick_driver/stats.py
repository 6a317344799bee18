"""
Statistics collection and reporting for a tick-loop run.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from routine_sched.runner import CoroutineRunner


@dataclass
class RunStats:
    """Counters gathered while a FixedStepLoop drives a runner."""

    ticks: int = 0
    simulated_seconds: float = 0.0
    dropped_seconds: float = 0.0
    peak_slots: int = 0
    resumptions: int = 0
    completions: int = 0

    def record_tick(self, runner: CoroutineRunner, step: float) -> None:
        self.ticks += 1
        self.simulated_seconds += step
        self.peak_slots = max(self.peak_slots, runner.count)
        self.resumptions = runner.resume_count
        self.completions = runner.completed_count

    @property
    def avg_resumptions_per_tick(self) -> float:
        if self.ticks == 0:
            return 0.0
        return self.resumptions / self.ticks

    def print_summary(self) -> None:
        """Print a human-readable summary."""
        print("\n" + "=" * 48)
        print("RUN SUMMARY")
        print("=" * 48)
        print(f"  Ticks:                {self.ticks}")
        print(f"  Simulated time:       {self.simulated_seconds:.3f}s")
        if self.dropped_seconds > 0:
            print(f"  Dropped (catch-up):   {self.dropped_seconds:.3f}s")
        print(f"  Peak slots:           {self.peak_slots}")
        print(f"  Resumptions:          {self.resumptions}")
        print(f"  Avg resumptions/tick: {self.avg_resumptions_per_tick:.2f}")
        print(f"  Completed routines:   {self.completions}")
