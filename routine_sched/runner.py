"""
Core runner: a registry of suspended routines advanced once per external tick.

Implements the per-tick resumption algorithm:
  - slots are visited in scheduling order; slots appended during a pass wait
    for the next pass
  - a slot's delay belongs to its innermost pending frame and is consumed
    before any routine in the slot is touched
  - when a nested routine completes, its parent is resumed in the same call
    (chain collapse), repeating up the frame stack as far as it goes
  - stopped slots are only marked empty; they are swept on the next pass

The runner has no clock. It receives the elapsed time per tick as an opaque
number from whatever drives it (see tick_driver.clock.FixedStepLoop).
"""

from __future__ import annotations

from collections.abc import Iterator
from typing import Any, Union

from .handle import Handle
from .routine import Routine
from .suspend import Delay, Nested


RoutineRef = Union[Handle, Routine, int, Iterator[Any]]


class _Slot:
    """One registry entry: a top-level routine and its frame stack."""

    __slots__ = (
        "routine",  # Top-level routine, or None once stopped (empty marker).
        "frames",  # Frame stack: routine at [0], innermost nested at [-1].
        "delay",  # Remaining delay of the innermost frame.
        "detached",  # Set by stop_all() while this slot is being stepped.
    )

    def __init__(self, routine: Routine, delay: float) -> None:
        self.routine: Routine | None = routine
        self.frames: list[Routine] = [routine]
        self.delay: float = delay
        self.detached: bool = False

    def __repr__(self) -> str:
        if self.routine is None:
            return "_Slot(<stopped>)"
        return f"_Slot({self.routine.name}, depth={len(self.frames)}, delay={self.delay})"


class CoroutineRunner:
    """A container for running many routines side by side. Routines can nest."""

    __slots__ = (
        "_slots",
        "_advancing",
        "_stepping",
        "_tick",
        "resume_count",
        "completed_count",
        "trace_enabled",
        "trace_log",
    )

    def __init__(self, trace: bool = False) -> None:
        self._slots: list[_Slot] = []
        self._advancing: bool = False
        self._stepping: _Slot | None = None
        self._tick: int = 0
        self.resume_count: int = 0
        self.completed_count: int = 0
        self.trace_enabled = trace
        self.trace_log: list[str] = []

    def _trace(self, msg: str) -> None:
        if self.trace_enabled:
            self.trace_log.append(f"[tick {self._tick:>6}] {msg}")

    # ------------------------------------------------------------------
    # Registry API
    # ------------------------------------------------------------------
    def schedule(self, routine: Routine | Iterator[Any], delay: float = 0.0) -> Handle:
        """Run a routine, optionally waiting `delay` seconds before its first step."""
        wrapped = routine if isinstance(routine, Routine) else Routine(routine)
        if self._find(wrapped) >= 0 or self._find(wrapped.generator) >= 0:
            raise ValueError(f"{wrapped!r} is already running in this runner")

        self._slots.append(_Slot(wrapped, float(delay)))
        self._trace(f"Schedule: {wrapped.name} id={wrapped.routine_id} delay={delay}")
        return Handle(self, wrapped.routine_id)

    def stop(self, target: RoutineRef) -> bool:
        """Stop a routine. Returns True if it was actually running.

        The slot is only marked empty here; it keeps counting toward `count`
        until the next advance() sweeps it.
        """
        if isinstance(target, Handle):
            return target.stop()

        index = self._find(target)
        if index < 0:
            return False

        slot = self._slots[index]
        routine = slot.routine
        slot.routine = None
        slot.delay = 0.0
        if routine is not None:
            self._trace(f"Stop: {routine.name} id={routine.routine_id}")
        return True

    def stop_all(self) -> None:
        """Stop every routine and empty the registry immediately."""
        slots, self._slots = self._slots, []
        for slot in slots:
            slot.routine = None
            slot.delay = 0.0
            if slot is self._stepping:
                # Its innermost generator is executing; closed once it yields.
                slot.detached = True
            else:
                self._close_frames(slot)
        self._trace(f"StopAll: {len(slots)} slot(s) dropped")

    def is_running(self, target: RoutineRef) -> bool:
        """True if the routine currently occupies a (non-stopped) slot."""
        if isinstance(target, Handle):
            return target.is_running
        return self._find(target) >= 0

    def remaining_delay(self, target: RoutineRef) -> float | None:
        """Delay left on the routine's innermost frame, or None if not running."""
        if isinstance(target, Handle):
            if target.runner is not self or target.routine_id is None:
                return None
            target = target.routine_id
        index = self._find(target)
        if index < 0:
            return None
        return self._slots[index].delay

    @property
    def count(self) -> int:
        """Slot count, including stopped slots not yet swept."""
        return len(self._slots)

    def __len__(self) -> int:
        return len(self._slots)

    @property
    def tick(self) -> int:
        """Number of advance() calls that found at least one slot."""
        return self._tick

    # ------------------------------------------------------------------
    # Per-tick algorithm
    # ------------------------------------------------------------------
    def advance(self, delta_time: float) -> bool:
        """Update all running routines.

        Returns True if the runner held any slot when called. A routine body
        that raises propagates out of here; slots already visited this pass
        keep their new state and the rest stay pending.
        """
        if self._advancing:
            raise RuntimeError("advance() is not reentrant; do not call it from a routine body")
        if not self._slots:
            return False

        self._advancing = True
        self._tick += 1
        try:
            self._advance_slots(float(delta_time))
        finally:
            self._advancing = False
            self._stepping = None
        return True

    def _advance_slots(self, delta_time: float) -> None:
        pending = len(self._slots)
        index = 0
        while pending > 0 and index < len(self._slots):
            pending -= 1
            slot = self._slots[index]

            if slot.routine is None:
                del self._slots[index]
                self._close_frames(slot)
                self._trace("Sweep: removed stopped slot")
                continue

            self._stepping = slot
            running = self._step(slot, delta_time)
            self._stepping = None

            if slot.detached:
                self._close_frames(slot)
                break

            if not running:
                del self._slots[index]
                self.completed_count += 1
                continue

            index += 1

    def _step(self, slot: _Slot, delta_time: float) -> bool:
        """Resume one slot. Returns False once its top-level routine completes."""
        if slot.delay > 0.0:
            slot.delay -= delta_time
            if slot.delay > 0.0:
                return True
            slot.delay = 0.0

        frames = slot.frames
        while frames:
            frame = frames[-1]
            self.resume_count += 1
            suspended = frame.resume()

            if slot.routine is None:
                # Stopped from inside its own body. A top-level routine that
                # also finished is done now; anything else is swept next pass.
                if not suspended and len(frames) == 1:
                    frames.pop()
                    return False
                return True

            if suspended:
                suspension = frame.current
                if isinstance(suspension, Delay):
                    slot.delay = suspension.seconds
                elif isinstance(suspension, Nested):
                    frames.append(suspension.routine)
                    slot.delay = 0.0
                    self._trace(f"Nest: {frame.name} -> {suspension.routine.name}")
                else:
                    slot.delay = 0.0
                return True

            frames.pop()
            slot.delay = 0.0
            self._trace(f"Complete: {frame.name} id={frame.routine_id}")

        return False

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _find(self, target: Routine | int | Iterator[Any]) -> int:
        """Index of the non-stopped slot holding `target`, or -1."""
        for index, slot in enumerate(self._slots):
            routine = slot.routine
            if routine is None:
                continue
            if isinstance(target, Routine):
                if routine is target:
                    return index
            elif isinstance(target, int) and not isinstance(target, bool):
                if routine.routine_id == target:
                    return index
            elif routine.generator is target:
                return index
        return -1

    def _close_frames(self, slot: _Slot) -> None:
        """Close an abandoned slot's generators, except ones rescheduled since."""
        live = {
            id(frame.generator)
            for other in self._slots
            if other.routine is not None
            for frame in other.frames
        }
        frames = slot.frames
        while frames:
            frame = frames.pop()
            if id(frame.generator) not in live:
                frame.close()
