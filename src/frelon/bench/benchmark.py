"""Calibration and sampling state for a single benchmark.

Calibration (priming) searches for an iteration count whose cycle runs
for at least ``prime_duration_ms``, so timer resolution is negligible,
then splits ``target_duration_ms`` of work into samples of about one
millisecond each.  Passes reuse that split; they never recalibrate.
"""

from __future__ import annotations

import math
import time
from dataclasses import dataclass
from typing import Any, Callable

from frelon.bench.config import SuiteOptions
from frelon.bench.histogram import DurationHistogram
from frelon.bench.timing import BenchBody, Clock, measure, timed_cycle
from frelon.logging import get_logger

log = get_logger("benchmark")

_INITIAL_PROBE_COUNT = 2
_NS_PER_SAMPLE = 1e6  # Aim for one millisecond of measured time per sample
_MIN_NS_PER_OP = 1e-3


# ---------------------------------------------------------------------------
# Calibration result
# ---------------------------------------------------------------------------


@dataclass
class Calibration:
    """Outcome of priming one benchmark."""

    ns_per_op: float  # Estimate from the last probe
    probes: int  # Number of probe cycles run
    probe_iterations: int  # Iteration count of the last probe
    iterations_per_sample: int
    samples_per_pass: int

    @property
    def planned_operations(self) -> int:
        """Iterations measured per pass."""
        return self.iterations_per_sample * self.samples_per_pass

    def to_dict(self) -> dict[str, Any]:
        return {
            "ns_per_op": round(self.ns_per_op, 3),
            "probes": self.probes,
            "probe_iterations": self.probe_iterations,
            "iterations_per_sample": self.iterations_per_sample,
            "samples_per_pass": self.samples_per_pass,
        }


def plan_samples(ns_per_op: float, target_duration_ns: float) -> tuple[int, int]:
    """Split *target_duration_ns* of work into ~1 ms samples.

    Returns:
        Tuple of (iterations per sample, samples per pass).
    """
    total_iterations = math.ceil(target_duration_ns / ns_per_op)
    iterations_per_sample = math.ceil(_NS_PER_SAMPLE / ns_per_op)
    samples_per_pass = math.ceil(total_iterations / iterations_per_sample)
    return iterations_per_sample, samples_per_pass


# ---------------------------------------------------------------------------
# Benchmark
# ---------------------------------------------------------------------------


class Benchmark:
    """A named benchmark body plus its calibration and accumulated samples."""

    def __init__(
        self,
        name: str,
        body: BenchBody,
        *,
        clock: Clock = time.perf_counter_ns,
    ) -> None:
        self.name = name
        self.body = body
        self.clock = clock
        self.calibration: Calibration | None = None
        self.samples = 0
        self.operations = 0
        self.min_ns: float | None = None
        self.max_ns: float | None = None
        self.histogram = DurationHistogram(1, 1_000_000_000, 3)

    def __repr__(self) -> str:
        return f"Benchmark({self.name!r})"

    @property
    def iterations_per_sample(self) -> int | None:
        return self.calibration.iterations_per_sample if self.calibration else None

    @property
    def samples_per_pass(self) -> int | None:
        return self.calibration.samples_per_pass if self.calibration else None

    def measure(self, n: int) -> float:
        """Run one measurement cycle of *n* iterations; return ns/op."""
        return measure(self.body, n, clock=self.clock)

    def calibrate(self, options: SuiteOptions) -> Calibration:
        """Prime the benchmark and compute its sample plan.

        Grows the probe count tenfold while a probe is more than ten
        times shorter than the priming threshold, and twofold once it
        is close.  There is no upper bound on the number of probes.
        """
        threshold = options.prime_duration_ns
        count = _INITIAL_PROBE_COUNT
        probes = 0
        while True:
            probe_iterations = count
            ns_per_op, elapsed = timed_cycle(self.body, count, clock=self.clock)
            probes += 1
            if elapsed * 10 < threshold:
                count *= 10
            else:
                count *= 2
            if elapsed >= threshold:
                break

        if ns_per_op <= 0:
            log.warning(
                "%s: measured %.3f ns/op after priming; using %g ns/op",
                self.name,
                ns_per_op,
                _MIN_NS_PER_OP,
            )
            ns_per_op = _MIN_NS_PER_OP

        iterations_per_sample, samples_per_pass = plan_samples(
            ns_per_op, options.target_duration_ns
        )
        self.calibration = Calibration(
            ns_per_op=ns_per_op,
            probes=probes,
            probe_iterations=probe_iterations,
            iterations_per_sample=iterations_per_sample,
            samples_per_pass=samples_per_pass,
        )
        log.debug(
            "Calibrated %s: %.2f ns/op after %d probes, %d iterations x %d samples",
            self.name,
            ns_per_op,
            probes,
            iterations_per_sample,
            samples_per_pass,
        )
        return self.calibration

    def record(self, ns_per_op: float, operations: int) -> None:
        """Accumulate one sample into the histogram and min/max."""
        self.samples += 1
        self.operations += operations
        if self.min_ns is None or ns_per_op < self.min_ns:
            self.min_ns = ns_per_op
        if self.max_ns is None or ns_per_op > self.max_ns:
            self.max_ns = ns_per_op
        self.histogram.record(ns_per_op)

    def run_pass(self, yield_point: Callable[[], None] | None = None) -> None:
        """Take ``samples_per_pass`` samples of ``iterations_per_sample`` each.

        Raises:
            RuntimeError: If the benchmark has not been calibrated.
        """
        if self.calibration is None:
            raise RuntimeError(f"Benchmark '{self.name}' must be calibrated before running")

        n = self.calibration.iterations_per_sample
        for _ in range(self.calibration.samples_per_pass):
            self.record(self.measure(n), n)
            if yield_point is not None:
                yield_point()
