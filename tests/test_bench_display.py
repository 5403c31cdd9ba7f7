"""Tests for frelon.bench.display — report and history formatting."""

from __future__ import annotations

import unittest

from frelon.bench.display import format_header, format_history, format_report, format_row
from frelon.bench.stats import LatencyStats


def _row(name: str = "sqrt", pass_index: int = 1, unit: str = "ns", **kwargs: float) -> LatencyStats:
    values = {
        "min": 20.0,
        "max": 95.5,
        "p80": 23.0,
        "p95": 25.0,
        "p98": 27.25,
        "p99": 31.0,
        "stddev": 4.125,
        "mean": 23.5,
        "cv": 0.1755,
    }
    values.update(kwargs)
    return LatencyStats(
        name=name,
        pass_index=pass_index,
        unit=unit,
        operations=81_003_000,
        samples=1_500,
        **values,
    )


class TestFormatHeader(unittest.TestCase):
    """Tests for format_header()."""

    def test_two_lines(self) -> None:
        titles, rule = format_header().split("\n")
        self.assertEqual(rule, "-" * 119)
        self.assertEqual(len(titles), 119)

    def test_column_order(self) -> None:
        titles = format_header().split("\n")[0]
        order = ["benchmark", "p98", "min", "max", "stddev", "CV", "p80", "p95", "p99", "samples"]
        positions = [titles.index(word) for word in order]
        self.assertEqual(positions, sorted(positions))
        self.assertTrue(titles.rstrip().endswith("samples"))

    def test_names_right_aligned(self) -> None:
        titles = format_header().split("\n")[0]
        self.assertEqual(titles[:32], "benchmark".rjust(32))


class TestFormatRow(unittest.TestCase):
    """Tests for format_row()."""

    def test_layout(self) -> None:
        line = format_row(_row())
        left, right = line.split(" | ")
        self.assertEqual(left, "sqrt".rjust(32) + "     27.25 ns/op")
        self.assertEqual(
            right.split(),
            ["20.00", "95.50", "4.12", "0.18", "23.00", "25.00", "31.00", "81003000"],
        )

    def test_lines_up_with_header(self) -> None:
        titles = format_header().split("\n")[0]
        line = format_row(_row())
        self.assertEqual(len(line), len(titles))
        self.assertEqual(line.index("|"), titles.index("|"))

    def test_unit_suffix(self) -> None:
        self.assertIn(" us/op |", format_row(_row(unit="us")))
        self.assertIn(" ms/op |", format_row(_row(unit="ms")))

    def test_samples_column_counts_operations(self) -> None:
        line = format_row(_row())
        self.assertTrue(line.endswith("81003000"))

    def test_long_name_not_truncated(self) -> None:
        name = "x" * 40
        self.assertTrue(format_row(_row(name=name)).startswith(name))


class TestFormatReport(unittest.TestCase):
    """Tests for format_report()."""

    def test_groups_by_pass(self) -> None:
        rows = [
            _row("a", pass_index=1),
            _row("b", pass_index=1),
            _row("a", pass_index=2),
            _row("b", pass_index=2),
        ]
        lines = format_report(rows).split("\n")
        self.assertEqual(lines[0], "Pass 1...")
        self.assertEqual(lines[2], "-" * 119)
        self.assertIn("Pass 2...", lines)
        self.assertEqual(lines.count("-" * 119), 2)
        self.assertEqual(lines[lines.index("Pass 2...") - 1], "")

    def test_empty(self) -> None:
        self.assertEqual(format_report([]), "")


class TestFormatHistory(unittest.TestCase):
    """Tests for format_history()."""

    def test_empty(self) -> None:
        self.assertEqual(format_history({}), "No recorded results.")

    def test_rows_per_version(self) -> None:
        results = {
            "empty_loop": {"0.1.0": [0.0, 0.0]},
            "sqrt": {"0.1.0": [0.30103, 0.30103], "0.2.0": [0.0]},
        }
        lines = format_history(results).split("\n")
        self.assertIn("Benchmark", lines[0])
        self.assertTrue(set(lines[1]) == {"─"})
        self.assertEqual(len(lines), 5)
        sqrt_old = next(line for line in lines if line.startswith("sqrt") and "0.1.0" in line)
        self.assertIn("2.00x", sqrt_old)
        self.assertIn("0.3010", sqrt_old)

    def test_single_sample_stdev(self) -> None:
        lines = format_history({"a": {"1.0": [0.5]}}).split("\n")
        self.assertIn("0.0000", lines[2])
        self.assertIn("3.16x", lines[2])

    def test_empty_sample_list(self) -> None:
        lines = format_history({"a": {"1.0": []}}).split("\n")
        self.assertIn("N/A", lines[2])


if __name__ == "__main__":
    unittest.main()
