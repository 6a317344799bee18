"""
Handle: an identity-based reference to a (potentially running) routine.
"""

from __future__ import annotations

from collections.abc import Generator
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .runner import CoroutineRunner


@dataclass(frozen=True, slots=True)
class Handle:
    """A copyable reference to a routine scheduled on a runner.

    Only returned by CoroutineRunner.schedule(). A default-constructed
    Handle is bound to nothing and never reports running.
    """

    runner: CoroutineRunner | None = None
    routine_id: int | None = None

    @property
    def is_running(self) -> bool:
        if self.runner is None or self.routine_id is None:
            return False
        return self.runner.is_running(self.routine_id)

    def stop(self) -> bool:
        """Stop this routine if it is running. Returns True if it was stopped."""
        return self.is_running and self.runner.stop(self.routine_id)

    def wait(self) -> Generator[None, None, None]:
        """A routine that finishes once this handle's routine stops running.

        Yield it from another routine to join on this one:

            yield worker.wait()
        """
        while self.is_running:
            yield None

    def __repr__(self) -> str:
        if self.routine_id is None:
            return "Handle(<unbound>)"
        return f"Handle(id={self.routine_id}, running={self.is_running})"
