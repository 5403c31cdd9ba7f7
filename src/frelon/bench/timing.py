"""Timing model for a single measurement cycle.

A measurement cycle runs a benchmark body once for ``n`` iterations and
reports nanoseconds per operation.  The start timestamp lives in a
cell owned by the cycle; the :class:`Timer` handed to the body can
overwrite it, which moves the start of the measured interval past any
setup code the body runs first (the *deferred start* protocol).
"""

from __future__ import annotations

import time
from typing import Callable

# Benchmark bodies receive the iteration count and the Timer.
BenchBody = Callable[[int, "Timer"], None]
Clock = Callable[[], int]


# ---------------------------------------------------------------------------
# Timer
# ---------------------------------------------------------------------------


class Timer:
    """Handle passed to a benchmark body for one measurement cycle.

    Usage inside a body::

        def body(n, timer):
            data = expensive_setup()
            timer.start()
            for _ in range(n):
                work(data)
    """

    __slots__ = ("_n", "_restart")

    def __init__(self, n: int, restart: Callable[[], None]) -> None:
        self._n = n
        self._restart = restart

    @property
    def n(self) -> int:
        """Number of iterations the body should run."""
        return self._n

    def start(self) -> None:
        """Restart the measured interval from now.

        The interval starts automatically when the body is invoked;
        calling this excludes everything the body did before the call.
        Only the last call before the body returns matters.
        """
        self._restart()

    def __repr__(self) -> str:
        return f"Timer(n={self._n})"


class _StartCell:
    """Mutable start timestamp scoped to one measurement cycle."""

    __slots__ = ("_clock", "value")

    def __init__(self, clock: Clock) -> None:
        self._clock = clock
        self.value = clock()

    def reset(self) -> None:
        self.value = self._clock()


# ---------------------------------------------------------------------------
# Measurement cycle
# ---------------------------------------------------------------------------


def measure(
    body: BenchBody,
    n: int,
    *,
    clock: Clock = time.perf_counter_ns,
) -> float:
    """Run *body* for *n* iterations and return nanoseconds per operation.

    The interval runs from the current value of the start cell (the
    invocation time, or the body's last ``timer.start()``) to the
    moment the body returns.  Exceptions from the body propagate.

    Args:
        body: The benchmark body, called as ``body(n, timer)``.
        n: Iteration count requested from the body.
        clock: Monotonic integer nanosecond clock.
    """
    cell = _StartCell(clock)
    body(n, Timer(n, cell.reset))
    end = clock()
    return (end - cell.value) / n


def timed_cycle(
    body: BenchBody,
    n: int,
    *,
    clock: Clock = time.perf_counter_ns,
) -> tuple[float, int]:
    """Run one measurement cycle and also return its absolute wall time.

    Returns:
        Tuple of (ns per op as seen by the body's Timer, total elapsed
        nanoseconds of the whole cycle including any setup).
    """
    wall_start = clock()
    ns_per_op = measure(body, n, clock=clock)
    return ns_per_op, clock() - wall_start


# ---------------------------------------------------------------------------
# Helpers for bodies
# ---------------------------------------------------------------------------


def busy_wait(ms: float, *, clock: Clock = time.perf_counter_ns) -> None:
    """Spin (without sleeping) until *ms* milliseconds have elapsed.

    Useful for bodies with a known, fixed cost per iteration.
    """
    deadline = clock() + int(ms * 1_000_000)
    while clock() < deadline:
        pass
