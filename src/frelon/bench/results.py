"""Result persistence.

Two formats:

``benchmark-results.json``
    Long-term history.  Maps benchmark name -> version -> list of
    ``log10(p80 / baseline p80)`` samples, where the baseline is the
    suite's first registered benchmark.  Every run appends one sample
    per benchmark under the current project version; existing samples
    are never replaced.

Row export (JSONL)
    One :class:`~frelon.bench.stats.LatencyStats` per line, for
    loading into other tools.
"""

from __future__ import annotations

import json
import logging
import math
import tomllib
from pathlib import Path
from typing import TYPE_CHECKING, Sequence

from frelon.bench.stats import LatencyStats

if TYPE_CHECKING:
    from frelon.bench.benchmark import Benchmark

log = logging.getLogger("frelon")

# Percentile compared across benchmarks for the history log.
BASELINE_PERCENTILE = 80.0

ResultsHistory = dict[str, dict[str, list[float]]]


# ---------------------------------------------------------------------------
# Version lookup
# ---------------------------------------------------------------------------


def read_project_version(version_path: Path) -> str | None:
    """Return ``[project] version`` from a pyproject-style TOML file.

    Returns None if the file has no version.  TOML syntax errors
    propagate.
    """
    data = tomllib.loads(version_path.read_text())
    version = data.get("project", {}).get("version")
    if version is None:
        return None
    return str(version)


# ---------------------------------------------------------------------------
# History file
# ---------------------------------------------------------------------------


def load_results(results_path: Path) -> ResultsHistory:
    """Load the history file.

    Raises:
        FileNotFoundError: If the file does not exist.
        json.JSONDecodeError: If the file is not valid JSON.
    """
    data = json.loads(results_path.read_text())
    if not isinstance(data, dict):
        raise ValueError(f"Results file must hold a JSON object: {results_path}")
    return data


def save_results(results_path: Path, results: ResultsHistory) -> None:
    """Write the history file with 4-space indentation."""
    results_path.write_text(json.dumps(results, indent=4))


def log_ratios(benchmarks: Sequence[Benchmark]) -> dict[str, float]:
    """``log10(p80 / first benchmark's p80)`` for every benchmark."""
    if not benchmarks:
        return {}
    baseline = benchmarks[0].histogram.percentile(BASELINE_PERCENTILE)
    ratios: dict[str, float] = {}
    for bench in benchmarks:
        p80 = bench.histogram.percentile(BASELINE_PERCENTILE)
        ratios[bench.name] = math.log10(p80 / baseline)
    return ratios


def merge_samples(
    results: ResultsHistory,
    version: str,
    samples: dict[str, float],
) -> ResultsHistory:
    """Append *samples* under *version* for each benchmark, in place."""
    for name, value in samples.items():
        results.setdefault(name, {}).setdefault(version, []).append(value)
    return results


def record_results(
    benchmarks: Sequence[Benchmark],
    *,
    results_path: Path,
    version_path: Path,
) -> bool:
    """Append this run's log ratios to the history file.

    Skipped (returns False) unless both *results_path* and
    *version_path* exist and the version file names a version.

    Returns:
        True if the history file was updated.
    """
    if not results_path.exists():
        log.debug("No results file at %s; not recording results", results_path)
        return False
    if not version_path.exists():
        log.debug("No version file at %s; not recording results", version_path)
        return False
    if not benchmarks:
        return False

    version = read_project_version(version_path)
    if version is None:
        log.debug("%s has no [project] version; not recording results", version_path)
        return False

    results = load_results(results_path)
    merge_samples(results, version, log_ratios(benchmarks))
    save_results(results_path, results)
    log.info("Recorded %d results for version %s in %s", len(benchmarks), version, results_path)
    return True


# ---------------------------------------------------------------------------
# Row export
# ---------------------------------------------------------------------------


def save_rows(path: Path, rows: Sequence[LatencyStats]) -> None:
    """Write report rows as JSONL, one row per line."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        for row in rows:
            f.write(json.dumps(row.to_dict(), separators=(",", ":")) + "\n")
    log.info("Wrote %d rows to %s", len(rows), path)


def load_rows(path: Path) -> list[LatencyStats]:
    """Read report rows written by :func:`save_rows`."""
    rows: list[LatencyStats] = []
    for line in path.read_text().splitlines():
        line = line.strip()
        if line:
            rows.append(LatencyStats.from_dict(json.loads(line)))
    return rows
