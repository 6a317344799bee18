"""
Suspension values produced by a routine each time it is resumed.

A routine body is a generator; whatever it yields is classified into one of
three variants so the runner never has to inspect raw values:

  - Delay(seconds): wait before the next resumption
  - Nested(routine): resume another routine first
  - Yield(): no wait, resume again on the next tick
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from numbers import Real
from typing import TYPE_CHECKING, Any, Union

if TYPE_CHECKING:
    from .routine import Routine


@dataclass(frozen=True, slots=True)
class Delay:
    """Wait `seconds` of accumulated tick time before resuming."""

    seconds: float


@dataclass(frozen=True, slots=True)
class Nested:
    """Resume `routine` to completion before resuming the yielding routine."""

    routine: Routine


@dataclass(frozen=True, slots=True)
class Yield:
    """Suspend with no delay; eligible again on the next tick."""


Suspension = Union[Delay, Nested, Yield]

YIELD = Yield()


def classify(value: Any) -> Suspension:
    """Map a raw yielded value onto the Suspension variant."""
    from .routine import Routine

    if value is None:
        return YIELD
    if isinstance(value, (Delay, Nested, Yield)):
        return value
    # bool is a Real; `yield True` is almost certainly a bug, not a delay.
    if isinstance(value, Real) and not isinstance(value, bool):
        return Delay(float(value))
    if isinstance(value, Routine):
        return Nested(value)
    if isinstance(value, Iterator):
        return Nested(Routine(value))
    raise TypeError(
        f"Routine yielded unsupported value {value!r}; expected a delay in "
        "seconds, a nested routine, or None"
    )
