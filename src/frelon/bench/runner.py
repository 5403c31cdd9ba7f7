"""Benchmark suite execution.

Orchestrates:
1. Option conversion and validation (before any body runs)
2. Priming: calibrating every benchmark once, in registration order
3. Passes: sampling every benchmark, in registration order, and
   printing one report row per benchmark per pass
4. Optional persistence of log ratios to the history file

Execution is strictly sequential.  Between samples, benchmarks and
passes the suite calls its yield point, which gives other threads a
chance to run without changing ordering or results.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Mapping

import click

from frelon.bench.benchmark import Benchmark
from frelon.bench.config import ConfigurationError, SuiteOptions, resolve_options
from frelon.bench.display import format_header, format_row
from frelon.bench.results import record_results
from frelon.bench.stats import LatencyStats, summarize
from frelon.bench.timing import BenchBody, Clock

log = logging.getLogger("frelon")


# ---------------------------------------------------------------------------
# Progress callback
# ---------------------------------------------------------------------------


@dataclass
class SuiteProgress:
    """Progress info passed to the callback."""

    phase: str  # "prime", "measure", "done"
    benchmark: str
    pass_index: int  # 1-based; 0 while priming
    pass_total: int
    benchmarks_done: int
    benchmarks_total: int
    detail: str = ""


ProgressCallback = Callable[[SuiteProgress], None]


def _cooperative_yield() -> None:
    """Let other threads run between steps."""
    time.sleep(0)


# ---------------------------------------------------------------------------
# Suite
# ---------------------------------------------------------------------------


class Suite:
    """An ordered collection of benchmarks and the options to run them.

    Usage::

        suite = Suite({"pass_count": 3})
        suite.register("sqrt", sqrt_body).register("md5", md5_body)
        rows = suite.run()
    """

    def __init__(
        self,
        options: SuiteOptions | Mapping[str, Any] | None = None,
        *,
        printer: Callable[..., None] | None = None,
        progress_callback: ProgressCallback | None = None,
        yield_point: Callable[[], None] | None = None,
        clock: Clock = time.perf_counter_ns,
    ) -> None:
        self.options = resolve_options(options)
        self.printer: Callable[..., None] = printer or click.echo
        self.progress: ProgressCallback = progress_callback or self._default_progress
        self.yield_point: Callable[[], None] = yield_point or _cooperative_yield
        self.clock = clock
        self._benchmarks: list[Benchmark] = []

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def register(self, name: str, body: BenchBody) -> Suite:
        """Add a named benchmark; returns the suite for chaining.

        The body is called as ``body(n, timer)`` and should run the
        code under test ``n`` times.  It may call ``timer.start()``
        after its setup to exclude that setup from the measurement.

        Raises:
            ConfigurationError: If *name* is empty or already registered.
        """
        if not name or not name.strip():
            raise ConfigurationError("Benchmark names must be non-empty.")
        if any(b.name == name for b in self._benchmarks):
            raise ConfigurationError(f"Benchmark '{name}' is already registered.")
        self._benchmarks.append(Benchmark(name, body, clock=self.clock))
        return self

    def benchmark(self, name: str) -> Callable[[BenchBody], BenchBody]:
        """Decorator form of :meth:`register`::

        @suite.benchmark("sqrt")
        def _(n, timer):
            for _ in range(n):
                math.sqrt(42)
        """

        def decorator(body: BenchBody) -> BenchBody:
            self.register(name, body)
            return body

        return decorator

    @property
    def benchmarks(self) -> list[Benchmark]:
        """Registered benchmarks, in registration order."""
        return list(self._benchmarks)

    def get(self, name: str) -> Benchmark:
        """Look up a registered benchmark by name.

        Raises:
            KeyError: If no benchmark has that name.
        """
        for bench in self._benchmarks:
            if bench.name == name:
                return bench
        raise KeyError(name)

    def __len__(self) -> int:
        return len(self._benchmarks)

    # ------------------------------------------------------------------
    # Running
    # ------------------------------------------------------------------

    def run(
        self,
        options: SuiteOptions | Mapping[str, Any] | None = None,
    ) -> list[LatencyStats]:
        """Prime every benchmark, then run ``pass_count`` passes.

        Args:
            options: Options for this run only; defaults to the options
                given to the constructor.

        Returns:
            Every report row, in the order it was printed.

        Raises:
            ConfigurationError: If *options* are invalid.  Raised before
                any benchmark body is called.
        """
        opts = resolve_options(options) if options is not None else self.options
        total = len(self._benchmarks)

        # Phase 1: Priming.
        self._print(opts, "Priming benchmarks...")
        for idx, bench in enumerate(self._benchmarks):
            calibration = bench.calibrate(opts)
            self.progress(
                SuiteProgress(
                    phase="prime",
                    benchmark=bench.name,
                    pass_index=0,
                    pass_total=opts.pass_count,
                    benchmarks_done=idx,
                    benchmarks_total=total,
                    detail=(
                        f"{calibration.iterations_per_sample} x "
                        f"{calibration.samples_per_pass}"
                    ),
                )
            )
            self.yield_point()

        # Phase 2: Passes.
        rows: list[LatencyStats] = []
        for pass_idx in range(1, opts.pass_count + 1):
            self._print(opts, f"Pass {pass_idx}...")
            self._print(opts, format_header())
            for idx, bench in enumerate(self._benchmarks):
                bench.run_pass(self.yield_point)
                row = summarize(bench, pass_idx)
                rows.append(row)
                self._print(opts, format_row(row))
                self.progress(
                    SuiteProgress(
                        phase="measure",
                        benchmark=bench.name,
                        pass_index=pass_idx,
                        pass_total=opts.pass_count,
                        benchmarks_done=idx + 1,
                        benchmarks_total=total,
                    )
                )
                self.yield_point()
            self._print(opts)
            self.yield_point()

        # Phase 3: Persistence.
        if opts.record_results:
            record_results(
                self._benchmarks,
                results_path=Path(opts.results_file),
                version_path=Path(opts.version_file),
            )

        self.progress(
            SuiteProgress(
                phase="done",
                benchmark="",
                pass_index=opts.pass_count,
                pass_total=opts.pass_count,
                benchmarks_done=total,
                benchmarks_total=total,
            )
        )
        return rows

    def _print(self, options: SuiteOptions, *args: str) -> None:
        if not options.quiet:
            self.printer(*args)

    @staticmethod
    def _default_progress(progress: SuiteProgress) -> None:
        """Default progress callback: log at DEBUG."""
        if progress.phase == "prime":
            log.debug(
                "Primed [%d/%d] %s: %s",
                progress.benchmarks_done + 1,
                progress.benchmarks_total,
                progress.benchmark,
                progress.detail,
            )
        elif progress.phase == "measure":
            log.debug(
                "Pass %d/%d [%d/%d] %s",
                progress.pass_index,
                progress.pass_total,
                progress.benchmarks_done,
                progress.benchmarks_total,
                progress.benchmark,
            )
        else:
            log.debug("Suite complete: %d benchmarks", progress.benchmarks_total)
