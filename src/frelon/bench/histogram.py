"""Fixed-precision histogram of nanosecond durations.

Uses the high-dynamic-range (HDR) bucket layout: the tracked range is
split into power-of-two buckets, and every bucket is split into the
same number of linear sub-buckets.  The sub-bucket count is chosen so
that any value keeps ``significant_figures`` decimal digits, which
gives a constant *relative* precision over the whole range with a
small, fixed amount of memory (about 21k counters for 1 ns .. 1 s at
three significant figures).

Precision loss is part of the contract: a recorded value is only known
up to its bucket, so percentiles, mean and standard deviation are
accurate to roughly ``10 ** -significant_figures`` of the value.
Values are truncated to integers and clamped into
``[lowest, highest]`` before they are counted.

References:
    Tene, G. "HdrHistogram: A High Dynamic Range Histogram."
        https://hdrhistogram.github.io/HdrHistogram/
"""

from __future__ import annotations

import math
from typing import Iterator


class DurationHistogram:
    """Bucketed counter answering percentile/mean/stddev queries."""

    def __init__(
        self,
        lowest: int = 1,
        highest: int = 1_000_000_000,
        significant_figures: int = 3,
    ) -> None:
        lowest = int(lowest)
        highest = int(highest)
        if lowest < 1:
            raise ValueError(f"lowest must be >= 1 (got {lowest})")
        if highest < 2 * lowest:
            raise ValueError(f"highest must be >= 2 * lowest (got {highest} for lowest {lowest})")
        if not 1 <= significant_figures <= 5:
            raise ValueError(f"significant_figures must be in 1..5 (got {significant_figures})")

        self.lowest = lowest
        self.highest = highest
        self.significant_figures = significant_figures

        largest_single_unit = 2 * 10**significant_figures
        # ceil(log2(n)) and floor(log2(n)) for positive ints.
        sub_bucket_count_magnitude = (largest_single_unit - 1).bit_length()
        self._unit_magnitude = lowest.bit_length() - 1
        self._half_count_magnitude = max(sub_bucket_count_magnitude, 1) - 1
        self._sub_bucket_count = 1 << (self._half_count_magnitude + 1)
        self._sub_bucket_half_count = self._sub_bucket_count // 2
        self._sub_bucket_mask = (self._sub_bucket_count - 1) << self._unit_magnitude

        smallest_untrackable = self._sub_bucket_count << self._unit_magnitude
        bucket_count = 1
        while smallest_untrackable <= highest:
            smallest_untrackable <<= 1
            bucket_count += 1
        self._bucket_count = bucket_count

        self._counts = [0] * ((bucket_count + 1) * self._sub_bucket_half_count)
        self._total = 0
        self._min: int | None = None
        self._max: int | None = None

    # ------------------------------------------------------------------
    # Index arithmetic
    # ------------------------------------------------------------------

    def _bucket_index(self, value: int) -> int:
        pow2ceiling = (value | self._sub_bucket_mask).bit_length()
        return pow2ceiling - self._unit_magnitude - (self._half_count_magnitude + 1)

    def _sub_bucket_index(self, value: int, bucket_index: int) -> int:
        return value >> (bucket_index + self._unit_magnitude)

    def _counts_index(self, value: int) -> int:
        bucket = self._bucket_index(value)
        sub_bucket = self._sub_bucket_index(value, bucket)
        bucket_base = (bucket + 1) << self._half_count_magnitude
        return bucket_base + (sub_bucket - self._sub_bucket_half_count)

    def _value_at_index(self, index: int) -> int:
        bucket = (index >> self._half_count_magnitude) - 1
        sub_bucket = (index & (self._sub_bucket_half_count - 1)) + self._sub_bucket_half_count
        if bucket < 0:
            sub_bucket -= self._sub_bucket_half_count
            bucket = 0
        return sub_bucket << (bucket + self._unit_magnitude)

    def _equivalent_range(self, value: int) -> int:
        bucket = self._bucket_index(value)
        sub_bucket = self._sub_bucket_index(value, bucket)
        if sub_bucket >= self._sub_bucket_count:
            bucket += 1
        return 1 << (self._unit_magnitude + bucket)

    def lowest_equivalent(self, value: int) -> int:
        """Smallest value counted in the same bucket as *value*."""
        bucket = self._bucket_index(value)
        sub_bucket = self._sub_bucket_index(value, bucket)
        return sub_bucket << (bucket + self._unit_magnitude)

    def highest_equivalent(self, value: int) -> int:
        """Largest value counted in the same bucket as *value*."""
        return self.lowest_equivalent(value) + self._equivalent_range(value) - 1

    def median_equivalent(self, value: int) -> int:
        """Midpoint of the bucket holding *value*; used for mean/stddev."""
        return self.lowest_equivalent(value) + (self._equivalent_range(value) >> 1)

    def _recorded(self) -> Iterator[tuple[int, int]]:
        """Yield ``(bucket value, count)`` for every non-empty bucket, ascending."""
        for index, count in enumerate(self._counts):
            if count:
                yield self._value_at_index(index), count

    # ------------------------------------------------------------------
    # Recording
    # ------------------------------------------------------------------

    def record(self, value: float, count: int = 1) -> None:
        """Count *value* (truncated and clamped into the tracked range)."""
        v = min(max(int(value), self.lowest), self.highest)
        self._counts[self._counts_index(v)] += count
        self._total += count
        if self._min is None or v < self._min:
            self._min = v
        if self._max is None or v > self._max:
            self._max = v

    def reset(self) -> None:
        """Forget every recorded value."""
        self._counts = [0] * len(self._counts)
        self._total = 0
        self._min = None
        self._max = None

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def total_count(self) -> int:
        """Number of recorded values."""
        return self._total

    @property
    def min(self) -> int:
        """Smallest recorded value after clamping, 0 if empty."""
        return self._min if self._min is not None else 0

    @property
    def max(self) -> int:
        """Largest recorded value after clamping, 0 if empty."""
        return self._max if self._max is not None else 0

    def percentile(self, percentile: float) -> float:
        """Value at or below which *percentile* percent of records fall.

        Returns the highest value equivalent to the bucket where the
        cumulative count first reaches the requested rank, so the
        answer never understates a recorded value.  Empty histograms
        answer 0.0.
        """
        if self._total == 0:
            return 0.0
        p = min(max(percentile, 0.0), 100.0)
        count_at_percentile = max(int(p / 100.0 * self._total + 0.5), 1)
        running = 0
        for value, count in self._recorded():
            running += count
            if running >= count_at_percentile:
                return float(self.highest_equivalent(value))
        return float(self.max)

    def mean(self) -> float:
        """Mean of the recorded values (bucket midpoints), 0.0 if empty."""
        if self._total == 0:
            return 0.0
        total = 0
        for value, count in self._recorded():
            total += self.median_equivalent(value) * count
        return total / self._total

    def stddev(self) -> float:
        """Population standard deviation of the recorded values, 0.0 if empty."""
        if self._total == 0:
            return 0.0
        mean = self.mean()
        square_sum = 0.0
        for value, count in self._recorded():
            deviation = self.median_equivalent(value) - mean
            square_sum += deviation * deviation * count
        return math.sqrt(square_sum / self._total)
