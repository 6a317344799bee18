"""
Demo scenarios for the tick loop.

Each scenario schedules a set of routines on a runner and returns a
ScenarioRun describing what it started. Scenarios model typical uses of a
frame-driven coroutine runner: animating a character along a path, timed
countdowns, and a supervisor joining independently scheduled workers.
"""

from __future__ import annotations

from collections.abc import Generator
from dataclasses import dataclass, field
from typing import Any, Callable

from routine_sched.handle import Handle
from routine_sched.runner import CoroutineRunner


MAP_SIZE = 16


@dataclass
class ScenarioRun:
    """Routines started by a scenario plus an optional text renderer."""

    name: str
    handles: list[Handle] = field(default_factory=list)
    log: list[str] = field(default_factory=list)
    render: Callable[[], str] | None = None

    @property
    def is_running(self) -> bool:
        return any(handle.is_running for handle in self.handles)


class Walker:
    """A little '@' character walking a path on a square map."""

    __slots__ = ("x", "y", "size")

    def __init__(self, size: int = MAP_SIZE) -> None:
        self.x = 0
        self.y = 0
        self.size = size

    def move_x(self, amount: int, step_time: float) -> Generator[float, None, None]:
        direction = 1 if amount > 0 else -1
        while amount != 0:
            yield step_time
            self.x += direction
            amount -= direction

    def move_y(self, amount: int, step_time: float) -> Generator[float, None, None]:
        direction = 1 if amount > 0 else -1
        while amount != 0:
            yield step_time
            self.y += direction
            amount -= direction

    def movement(self) -> Generator[Any, None, None]:
        # Walk normally
        yield self.move_x(5, 0.25)
        yield self.move_y(5, 0.25)

        # Walk slowly
        yield self.move_x(2, 0.5)
        yield self.move_y(2, 0.5)
        yield self.move_x(-2, 0.5)
        yield self.move_y(-2, 0.5)

        # Run fast
        yield self.move_x(5, 0.1)
        yield self.move_y(5, 0.1)

    def render(self) -> str:
        rows = []
        for y in range(self.size):
            rows.append("".join("@" if (x, y) == (self.x, self.y) else "." for x in range(self.size)))
        return "\n".join(rows)


def setup_walk(runner: CoroutineRunner) -> ScenarioRun:
    walker = Walker()
    run = ScenarioRun(name="walk", render=walker.render)
    run.handles.append(runner.schedule(walker.movement()))
    return run


def _countdown(label: str, start: int, interval: float, log: list[str]) -> Generator[float, None, None]:
    for remaining in range(start, 0, -1):
        log.append(f"{label}: {remaining}")
        yield interval
    log.append(f"{label}: liftoff")


def setup_countdown(runner: CoroutineRunner) -> ScenarioRun:
    run = ScenarioRun(name="countdown")
    run.handles.append(runner.schedule(_countdown("alpha", 3, 1.0, run.log)))
    run.handles.append(runner.schedule(_countdown("bravo", 5, 0.5, run.log), delay=0.25))
    run.handles.append(runner.schedule(_countdown("charlie", 2, 2.0, run.log), delay=1.0))
    return run


def _worker(label: str, steps: int, interval: float, log: list[str]) -> Generator[float, None, None]:
    for step in range(1, steps + 1):
        yield interval
        log.append(f"{label}: step {step}/{steps}")
    log.append(f"{label}: done")


def _supervisor(
    runner: CoroutineRunner,
    run: ScenarioRun,
) -> Generator[Any, None, None]:
    log = run.log
    log.append("supervisor: starting workers")
    workers = [
        runner.schedule(_worker("fetch", 3, 0.2, log)),
        runner.schedule(_worker("parse", 2, 0.5, log)),
        runner.schedule(_worker("index", 4, 0.3, log)),
    ]
    run.handles.extend(workers)
    for handle in workers:
        yield handle.wait()
    log.append("supervisor: all workers joined")


def setup_join(runner: CoroutineRunner) -> ScenarioRun:
    run = ScenarioRun(name="join")
    run.handles.append(runner.schedule(_supervisor(runner, run)))
    return run


SCENARIOS: dict[str, Callable[[CoroutineRunner], ScenarioRun]] = {
    "walk": setup_walk,
    "countdown": setup_countdown,
    "join": setup_join,
}
