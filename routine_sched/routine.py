"""
Routine: a generator-backed resumable computation with an opaque identity.
"""

from __future__ import annotations

from collections.abc import Iterator
from typing import Any

from .suspend import Suspension, classify


_next_routine_id: int = 0


def _alloc_routine_id() -> int:
    global _next_routine_id
    routine_id = _next_routine_id
    _next_routine_id += 1
    return routine_id


class Routine:
    """One suspended generator plus the last suspension value it produced.

    Identity is the routine_id issued at construction; the wrapped generator
    is kept so callers can still look a routine up by the object they passed
    to the runner.
    """

    __slots__ = (
        "routine_id",  # Opaque id, unique per process.
        "generator",  # The user's generator (or any iterator).
        "current",  # Last Suspension produced, None before the first resume.
        "finished",  # True once the generator is exhausted or closed.
        "resume_count",  # Number of times resume() has been called.
    )

    def __init__(self, generator: Iterator[Any]) -> None:
        if not isinstance(generator, Iterator):
            raise TypeError(
                f"Expected a generator or iterator, got {type(generator).__name__}; "
                "did you forget to call the routine function?"
            )
        self.routine_id = _alloc_routine_id()
        self.generator = generator
        self.current: Suspension | None = None
        self.finished: bool = False
        self.resume_count: int = 0

    @property
    def name(self) -> str:
        code = getattr(self.generator, "gi_code", None)
        if code is not None:
            return code.co_name
        return type(self.generator).__name__

    def resume(self) -> bool:
        """Advance the generator by one step.

        Returns True if it suspended again (self.current holds the new
        suspension value), False if it completed. Exceptions raised by the
        body propagate unchanged.
        """
        if self.finished:
            return False
        self.resume_count += 1
        try:
            raw = next(self.generator)
        except StopIteration:
            self.finished = True
            self.current = None
            return False
        except BaseException:
            self.finished = True
            self.current = None
            raise
        try:
            self.current = classify(raw)
        except TypeError:
            self.close()
            raise
        return True

    def close(self) -> None:
        """Abandon the routine, running any pending finally blocks."""
        if self.finished:
            return
        self.finished = True
        self.current = None
        close = getattr(self.generator, "close", None)
        if close is not None:
            close()

    def __repr__(self) -> str:
        return f"Routine({self.name}, id={self.routine_id})"
