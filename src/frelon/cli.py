"""Command-line interface for frelon.

Subcommands:
    frelon run       Run the suites defined in a benchmark script
    frelon history   Display the recorded log-ratio history
"""

from __future__ import annotations

import logging
import runpy
from pathlib import Path

import click

from frelon import __version__
from frelon.bench.config import ConfigurationError
from frelon.bench.runner import Suite
from frelon.logging import setup_logging

log = logging.getLogger("frelon")


@click.group()
@click.version_option(version=__version__)
def main() -> None:
    """frelon — calibrated micro-benchmarks with latency percentiles."""


def _collect_suites(script: Path) -> list[Suite]:
    """Execute *script* and return the Suites it defines at module level.

    The script runs under a name other than ``__main__`` so that an
    ``if __name__ == "__main__": suite.run()`` guard does not fire.
    """
    namespace = runpy.run_path(str(script), run_name="__frelon__")
    return [value for value in namespace.values() if isinstance(value, Suite)]


# ---------------------------------------------------------------------------
# run
# ---------------------------------------------------------------------------


@main.command()
@click.argument("script", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--passes", "pass_count", type=int, default=None, help="Passes (default: 5).")
@click.option(
    "--target-duration-ms",
    type=float,
    default=None,
    help="Measured time per benchmark per pass (default: 1500).",
)
@click.option(
    "--prime-duration-ms",
    type=float,
    default=None,
    help="Minimum calibration probe duration (default: 50).",
)
@click.option(
    "--profile",
    "profile_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="YAML file of suite options.",
)
@click.option("-q", "--quiet", is_flag=True, default=False, help="Suppress report output.")
@click.option(
    "--no-record",
    is_flag=True,
    default=False,
    help="Do not append log ratios to the results file.",
)
@click.option(
    "--output",
    "-o",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Also write every report row to this JSONL file.",
)
@click.option("-v", "--verbose", is_flag=True, default=False, help="Show debug logging.")
@click.option(
    "--log-file",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Write a DEBUG log to this file.",
)
def run(  # noqa: PLR0913
    script: Path,
    pass_count: int | None,
    target_duration_ms: float | None,
    prime_duration_ms: float | None,
    profile_path: Path | None,
    quiet: bool,
    no_record: bool,
    output: Path | None,
    verbose: bool,
    log_file: Path | None,
) -> None:
    """Run every Suite defined at module level in SCRIPT.

    Options are layered: each suite's own options, then --profile,
    then the flags given here.

    \b
    Examples:
        frelon run examples/bench_01.py
        frelon run examples/bench_01.py --passes 2 --target-duration-ms 300
        frelon run benches.py --profile quick.yaml --no-record -o rows.jsonl
    """
    from frelon.bench.config import load_profile, merge_options, resolve_options
    from frelon.bench.results import save_rows

    setup_logging(verbose=verbose, quiet=quiet, log_file=log_file)

    cli_overrides: dict[str, object] = {
        "pass_count": pass_count,
        "target_duration_ms": target_duration_ms,
        "prime_duration_ms": prime_duration_ms,
        "quiet": True if quiet else None,
        "record_results": False if no_record else None,
    }

    try:
        profile_data = load_profile(profile_path) if profile_path else None
        suites = _collect_suites(script)
        if not suites:
            click.echo(f"Error: {script} defines no Suite at module level.", err=True)
            raise SystemExit(1)

        rows = []
        for suite in suites:
            options = resolve_options(merge_options(suite.options, profile_data, cli_overrides))
            rows.extend(suite.run(options))
    except ConfigurationError as exc:
        click.echo(f"Error: {exc}", err=True)
        raise SystemExit(1) from exc
    except KeyboardInterrupt:
        click.echo("\nBenchmark interrupted.", err=True)
        raise SystemExit(130)  # noqa: B904

    if output:
        save_rows(output, rows)
        if not quiet:
            click.echo(f"Rows saved to: {output}")


# ---------------------------------------------------------------------------
# history
# ---------------------------------------------------------------------------


@main.command()
@click.argument(
    "results_file",
    type=click.Path(dir_okay=False, path_type=Path),
    default=Path("dist/benchmark-results.json"),
)
def history(results_file: Path) -> None:
    """Show recorded log10 ratios per benchmark and version.

    RESULTS_FILE defaults to dist/benchmark-results.json.
    """
    from frelon.bench.display import format_history
    from frelon.bench.results import load_results

    if not results_file.exists():
        click.echo(f"Error: No results file at {results_file}", err=True)
        raise SystemExit(1)

    click.echo(format_history(load_results(results_file)))
