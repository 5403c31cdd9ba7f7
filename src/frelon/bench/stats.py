"""Statistics for benchmark report rows and persisted history.

Report rows combine exact min/max (tracked per sample) with
histogram-derived percentiles, mean and standard deviation.  Every
time figure in a row is scaled by the same unit factor, chosen from
the row's minimum.

History summaries use plain descriptive statistics over the persisted
log-ratio samples.
"""

from __future__ import annotations

import math
import statistics
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Sequence

if TYPE_CHECKING:
    from frelon.bench.benchmark import Benchmark

# Percentiles reported on every row, in column order.
REPORT_PERCENTILES = (80.0, 95.0, 98.0, 99.0)


# ---------------------------------------------------------------------------
# Units
# ---------------------------------------------------------------------------


def choose_unit(min_ns: float) -> tuple[str, float]:
    """Pick the display unit for a row from its minimum ns/op.

    Returns:
        Tuple of (unit label, factor to multiply nanoseconds by).
    """
    if min_ns > 1.5e6:
        return "ms", 1e-6
    if min_ns > 1.5e3:
        return "us", 1e-3
    return "ns", 1.0


# ---------------------------------------------------------------------------
# Report row statistics
# ---------------------------------------------------------------------------


@dataclass
class LatencyStats:
    """One report row: a benchmark's distribution after a pass.

    All time figures are per operation, in ``unit``.
    """

    name: str
    pass_index: int  # 1-based; 0 when summarized outside a suite run
    unit: str  # "ns", "us" or "ms"
    min: float
    max: float
    p80: float
    p95: float
    p98: float
    p99: float
    stddev: float
    mean: float
    cv: float  # coefficient of variation (stddev/mean)
    operations: int  # iterations measured so far, across passes
    samples: int  # samples recorded so far, across passes

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a dict with rounded values."""
        return {
            "name": self.name,
            "pass_index": self.pass_index,
            "unit": self.unit,
            "min": round(self.min, 6),
            "max": round(self.max, 6),
            "p80": round(self.p80, 6),
            "p95": round(self.p95, 6),
            "p98": round(self.p98, 6),
            "p99": round(self.p99, 6),
            "stddev": round(self.stddev, 6),
            "mean": round(self.mean, 6),
            "cv": round(self.cv, 6),
            "operations": self.operations,
            "samples": self.samples,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> LatencyStats:
        """Deserialize from a dict, ignoring unknown fields."""
        known = {f.name for f in cls.__dataclass_fields__.values()}
        return cls(**{k: v for k, v in data.items() if k in known})


def summarize(benchmark: Benchmark, pass_index: int = 0) -> LatencyStats:
    """Compute the report row for *benchmark* from its samples so far.

    Raises:
        ValueError: If the benchmark has no samples.
    """
    if benchmark.min_ns is None or benchmark.max_ns is None:
        raise ValueError(f"Benchmark '{benchmark.name}' has no samples to summarize")

    unit, factor = choose_unit(benchmark.min_ns)
    hist = benchmark.histogram
    p80, p95, p98, p99 = (hist.percentile(p) * factor for p in REPORT_PERCENTILES)
    stddev = hist.stddev() * factor
    mean = hist.mean() * factor

    return LatencyStats(
        name=benchmark.name,
        pass_index=pass_index,
        unit=unit,
        min=benchmark.min_ns * factor,
        max=benchmark.max_ns * factor,
        p80=p80,
        p95=p95,
        p98=p98,
        p99=p99,
        stddev=stddev,
        mean=mean,
        cv=stddev / mean if mean else 0.0,
        operations=benchmark.operations,
        samples=benchmark.samples,
    )


# ---------------------------------------------------------------------------
# Descriptive statistics (history)
# ---------------------------------------------------------------------------


@dataclass
class DescriptiveStats:
    """Summary statistics for a sample."""

    n: int
    mean: float
    median: float
    stdev: float
    min: float
    max: float
    cv: float  # coefficient of variation (stdev/|mean|)

    def to_dict(self) -> dict[str, float | int]:
        """Serialize to a dict with rounded values."""
        return {
            "n": self.n,
            "mean": round(self.mean, 6),
            "median": round(self.median, 6),
            "stdev": round(self.stdev, 6),
            "min": round(self.min, 6),
            "max": round(self.max, 6),
            "cv": round(self.cv, 6),
        }


def describe(values: Sequence[float]) -> DescriptiveStats:
    """Compute descriptive statistics for a sample.

    Returns:
        DescriptiveStats with all fields populated.  An empty sample
        gives NaN everywhere; with fewer than 2 values, stdev and CV
        are 0.0.
    """
    if not values:
        nan = float("nan")
        return DescriptiveStats(n=0, mean=nan, median=nan, stdev=nan, min=nan, max=nan, cv=nan)

    sorted_v = sorted(values)
    n = len(sorted_v)
    mean = statistics.mean(sorted_v)

    if n >= 2:
        stdev = statistics.stdev(sorted_v)
        # Log ratios can be negative; CV is relative to the magnitude.
        cv = stdev / abs(mean) if mean != 0 else math.inf
    else:
        stdev = 0.0
        cv = 0.0

    return DescriptiveStats(
        n=n,
        mean=mean,
        median=statistics.median(sorted_v),
        stdev=stdev,
        min=sorted_v[0],
        max=sorted_v[-1],
        cv=cv,
    )
