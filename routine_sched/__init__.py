"""Tick-driven cooperative routine runner."""

from routine_sched.handle import Handle
from routine_sched.routine import Routine
from routine_sched.runner import CoroutineRunner
from routine_sched.suspend import Delay, Nested, Suspension, Yield

__all__ = [
    "CoroutineRunner",
    "Delay",
    "Handle",
    "Nested",
    "Routine",
    "Suspension",
    "Yield",
]
