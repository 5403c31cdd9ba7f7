"""Terminal display formatting for benchmark results.

The per-pass report keeps a fixed-width layout so rows from different
runs line up when compared side by side::

           benchmark             p98 | min  max  stddev  CV  p80  p95  p99  samples

History tables summarize persisted log-ratio samples per version.
"""

from __future__ import annotations

import math

from frelon.bench.stats import LatencyStats, describe

_HEADER_FORMAT = "%32s %15s | %9s %9s %7s %5s %7s %7s %7s %10s"
_ROW_FORMAT = "%32s %9.2f %s/op | %9.2f %9.2f %7.2f %5.2f %7.2f %7.2f %7.2f %10d"
_RULE_WIDTH = 119


# ---------------------------------------------------------------------------
# Pass report
# ---------------------------------------------------------------------------


def format_header() -> str:
    """Column titles plus a dashed rule, as two lines."""
    titles = _HEADER_FORMAT % (
        "benchmark",
        "p98",
        "min",
        "max",
        "stddev",
        "CV",
        "p80",
        "p95",
        "p99",
        "samples",
    )
    return titles + "\n" + "-" * _RULE_WIDTH


def format_row(row: LatencyStats) -> str:
    """Format one benchmark's statistics under :func:`format_header`."""
    return _ROW_FORMAT % (
        row.name,
        row.p98,
        row.unit,
        row.min,
        row.max,
        row.stddev,
        row.cv,
        row.p80,
        row.p95,
        row.p99,
        row.operations,
    )


def format_report(rows: list[LatencyStats]) -> str:
    """Format rows grouped by pass, each pass under its own header."""
    lines: list[str] = []
    current_pass: int | None = None
    for row in rows:
        if row.pass_index != current_pass:
            if current_pass is not None:
                lines.append("")
            current_pass = row.pass_index
            lines.append(f"Pass {row.pass_index}...")
            lines.append(format_header())
        lines.append(format_row(row))
    return "\n".join(lines)


# ---------------------------------------------------------------------------
# History
# ---------------------------------------------------------------------------


def _format_ratio(log_ratio: float) -> str:
    if math.isnan(log_ratio):
        return "N/A"
    return f"{10**log_ratio:.2f}x"


def format_history(results: dict[str, dict[str, list[float]]]) -> str:
    """Format persisted log10 ratios per benchmark and version.

    The ratio column is ``10 ** mean``: how many times slower (at p80)
    the benchmark was than the suite's first benchmark.
    """
    if not results:
        return "No recorded results."

    header = (
        f"{'Benchmark':<32s} {'Version':<12s} {'n':>5s} "
        f"{'mean log10':>11s} {'stdev':>8s} {'ratio':>9s}"
    )
    lines = [header, "─" * len(header)]

    for name, versions in results.items():
        for version, samples in versions.items():
            ds = describe(samples)
            stdev = "N/A" if math.isnan(ds.stdev) else f"{ds.stdev:.4f}"
            mean = "N/A" if math.isnan(ds.mean) else f"{ds.mean:.4f}"
            lines.append(
                f"{name:<32s} {version:<12s} {ds.n:>5d} "
                f"{mean:>11s} {stdev:>8s} {_format_ratio(ds.mean):>9s}"
            )

    return "\n".join(lines)
