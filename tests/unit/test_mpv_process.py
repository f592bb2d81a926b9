#!/usr/bin/env python3
"""Tests for mpv_process.py - process runner and output parsers."""

import sys
import time
from pathlib import Path

import pytest

from mpv_process import (
    extract_coverage_percentage,
    extract_test_stats,
    format_percentage,
    run_command,
    summarize_test_output,
)


def python_command(code: str) -> tuple[str, list[str]]:
    return sys.executable, ["-c", code]


class TestRunCommand:
    """run_command never raises and classifies every outcome."""

    def test_success_builds_summary(self, tmp_path: Path) -> None:
        command, args = python_command("print('  12 passing (40ms)')")

        result = run_command(command, args, tmp_path)

        assert result.success
        assert "12 passing" in result.output
        assert result.summary == "12 tests passed"
        assert result.error == ""

    def test_success_without_count(self, tmp_path: Path) -> None:
        command, args = python_command("print('ok')")

        assert run_command(command, args, tmp_path).summary == "completed successfully"

    def test_failure_prefers_stderr(self, tmp_path: Path) -> None:
        command, args = python_command("import sys; print('out'); sys.stderr.write('boom'); sys.exit(3)")

        result = run_command(command, args, tmp_path)

        assert not result.success
        assert result.error == "boom"
        assert "out" in result.output

    def test_failure_falls_back_to_stdout(self, tmp_path: Path) -> None:
        command, args = python_command("import sys; print('1 failing'); sys.exit(1)")

        assert run_command(command, args, tmp_path).error == "1 failing"

    def test_failure_without_output_reports_exit_code(self, tmp_path: Path) -> None:
        command, args = python_command("import sys; sys.exit(4)")

        assert run_command(command, args, tmp_path).error == "Command failed with code 4"

    def test_missing_executable_is_a_failed_result(self, tmp_path: Path) -> None:
        result = run_command("definitely-not-an-installed-command-mpv", ["--version"], tmp_path)

        assert not result.success
        assert result.error

    def test_runs_in_given_directory(self, tmp_path: Path) -> None:
        command, args = python_command("import os; print(os.getcwd())")

        result = run_command(command, args, tmp_path)

        assert Path(result.output.strip()).resolve() == tmp_path.resolve()

    def test_timeout_kills_and_reports(self, tmp_path: Path) -> None:
        command, args = python_command("import time; time.sleep(30)")

        started = time.monotonic()
        result = run_command(command, args, tmp_path, timeout=1)
        elapsed = time.monotonic() - started

        assert not result.success
        assert result.error == "Command timed out after 1 seconds"
        assert elapsed < 10

    def test_combined_output_includes_stderr(self, tmp_path: Path) -> None:
        command, args = python_command("import sys; print('a'); sys.stderr.write('b')")

        result = run_command(command, args, tmp_path)

        assert "a" in result.combined_output
        assert "b" in result.combined_output


class TestSummarizeTestOutput:
    @pytest.mark.parametrize(
        ("stdout", "expected"),
        [
            ("  12 passing (30ms)", "12 tests passed"),
            ("5 tests passed", "5 tests passed"),
            ("1 test passed", "1 tests passed"),
            ("all good", "completed successfully"),
        ],
    )
    def test_summary(self, stdout: str, expected: str) -> None:
        assert summarize_test_output(stdout) == expected

    def test_count_found_in_stderr(self) -> None:
        assert summarize_test_output("", "7 passing") == "7 tests passed"


class TestExtractCoveragePercentage:
    """Each coverage output shape yields its number; anything else is unavailable."""

    @pytest.mark.parametrize(
        ("text", "expected"),
        [
            ("Lines        | 91.28 |", 91.28),
            ("Lines        : 91.28% ( 120/131 )", 91.28),
            ("91.28% lines covered", 91.28),
            ("All files |   90 |   85 |   88 |   91.28 |", 91.28),
            ("Lines | 100 |", 100.0),
        ],
    )
    def test_each_shape(self, text: str, expected: float) -> None:
        assert extract_coverage_percentage(text) == expected

    def test_c8_table(self) -> None:
        table = "\n".join(
            [
                "----------|---------|----------|---------|---------|-------------------",
                "File      | % Stmts | % Branch | % Funcs | % Lines | Uncovered Line #s",
                "----------|---------|----------|---------|---------|-------------------",
                "All files |   88.5  |    75    |   90    |  87.25  |",
                " index.js |   88.5  |    75    |   90    |  87.25  | 12-14",
            ]
        )

        assert extract_coverage_percentage(table) == 87.25

    def test_patterns_tried_in_order(self) -> None:
        assert extract_coverage_percentage("Lines | 50 |\n91% lines") == 50.0

    @pytest.mark.parametrize("text", ["", "no coverage here", "Lines | n/a |"])
    def test_unmatched_is_unavailable(self, text: str) -> None:
        assert extract_coverage_percentage(text) is None


class TestHelpers:
    def test_format_percentage(self) -> None:
        assert format_percentage(91.28) == "91.28"
        assert format_percentage(80.0) == "80"

    def test_stats_from_passing_and_failing(self) -> None:
        assert extract_test_stats("  10 passing\n  2 failing") == {"passing": 10, "failing": 2, "total": 12}

    def test_stats_total_only_means_all_passed(self) -> None:
        assert extract_test_stats("Ran 8 tests") == {"passing": 8, "failing": 0, "total": 8}

    def test_stats_empty(self) -> None:
        assert extract_test_stats("") == {"passing": 0, "failing": 0, "total": 0}
