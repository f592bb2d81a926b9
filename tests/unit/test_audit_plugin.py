#!/usr/bin/env python3
"""Tests for audit_plugin.py - weighted health scoring and the audit steps."""

import json
from pathlib import Path

import pytest

import audit_plugin as audit_module
from audit_plugin import (
    AuditResult,
    StepResult,
    audit_plugin,
    calculate_health_percentage,
    health_label,
    list_issues,
    needs_attention,
    render,
    render_console,
    render_markdown,
)
from mpv_process import ProcessResult


def fake_runner(outputs: dict[tuple[str, ...], ProcessResult]):
    calls: list[tuple[str, ...]] = []

    def run_command(command: str, args: list[str], cwd: Path, timeout: float = 60) -> ProcessResult:
        calls.append(tuple(args))
        return outputs.get(tuple(args), ProcessResult(success=True))

    run_command.calls = calls  # type: ignore[attr-defined]
    return run_command


def clean_step() -> StepResult:
    return StepResult(ran=True, passed=True)


class TestHealthLabel:
    @pytest.mark.parametrize(
        ("percentage", "label"),
        [
            (100, "EXCELLENT"),
            (90, "EXCELLENT"),
            (89.9, "GOOD"),
            (80, "GOOD"),
            (79.99, "FAIR"),
            (70, "FAIR"),
            (69.9, "NEEDS IMPROVEMENT"),
            (60, "NEEDS IMPROVEMENT"),
            (59.9, "POOR"),
            (0, "POOR"),
        ],
    )
    def test_boundaries(self, percentage: float, label: str) -> None:
        assert health_label(percentage) == label

    @pytest.mark.parametrize(
        ("health", "attention"),
        [("EXCELLENT", False), ("GOOD", False), ("FAIR", False), ("NEEDS IMPROVEMENT", True), ("POOR", True)],
    )
    def test_needs_attention(self, health: str, attention: bool) -> None:
        assert needs_attention(health) is attention


class TestHealthPercentage:
    def test_everything_perfect(self) -> None:
        result = AuditResult(
            plugin_name="p",
            plugin_path="/p",
            validation_score=100,
            linting=clean_step(),
            formatting=clean_step(),
            tests_passed=True,
            test_stats={"passing": 10, "failing": 0, "total": 10},
            coverage_percentage=100,
        )

        assert calculate_health_percentage(result) == 100
        assert result.health == "EXCELLENT"

    def test_steps_without_data_leave_the_denominator(self) -> None:
        # validation 40 of 40, lint/format 0 of 10
        result = AuditResult(plugin_name="p", plugin_path="/p", validation_score=100)

        assert calculate_health_percentage(result) == pytest.approx(80)
        assert result.health == "GOOD"

    def test_failing_tests_count_zero(self) -> None:
        result = AuditResult(
            plugin_name="p",
            plugin_path="/p",
            validation_score=100,
            tests_passed=False,
            test_stats={"passing": 3, "failing": 2, "total": 5},
        )

        assert calculate_health_percentage(result) == pytest.approx(50)
        assert result.health == "POOR"

    def test_coverage_is_proportional(self) -> None:
        result = AuditResult(
            plugin_name="p",
            plugin_path="/p",
            validation_score=50,
            linting=clean_step(),
            formatting=clean_step(),
            coverage_percentage=50,
        )

        # (20 + 10 + 10) / (40 + 20 + 10)
        assert calculate_health_percentage(result) == pytest.approx(40 / 70 * 100)

    def test_no_data_is_poor(self) -> None:
        result = AuditResult(plugin_name="p", plugin_path="/p")

        assert calculate_health_percentage(result) == 0
        assert result.health == "POOR"


class TestAuditPlugin:
    def test_read_only_audit(self, make_plugin, monkeypatch: pytest.MonkeyPatch) -> None:
        runner = fake_runner(
            {
                ("test",): ProcessResult(success=True, output="  12 passing (40ms)"),
                ("run", "test:coverage"): ProcessResult(success=True, output="Lines        | 95 |"),
            }
        )
        monkeypatch.setattr(audit_module, "run_command", runner)

        result = audit_plugin(make_plugin(), quiet=True)

        # No format:check script and no --fix: the formatter never runs
        assert runner.calls == [("run", "lint"), ("test",), ("run", "test:coverage")]
        assert result.plugin_name == "metalsmith-sample"
        assert result.linting == StepResult(ran=True, passed=True, fixed=False)
        assert result.formatting == StepResult()
        assert result.tests_passed is True
        assert result.test_stats == {"passing": 12, "failing": 0, "total": 12}
        assert result.coverage_percentage == 95
        assert result.coverage_passed is True

        expected = (result.validation_score / 100 * 40 + 30 + 19 + 5) / 100 * 100
        assert result.health_percentage == pytest.approx(expected)

    def test_fix_mode_runs_fixers(self, make_plugin, monkeypatch: pytest.MonkeyPatch) -> None:
        package = {
            "name": "metalsmith-fixable",
            "scripts": {"lint": "eslint .", "lint:fix": "eslint --fix .", "format": "prettier --write ."},
        }
        runner = fake_runner({})
        monkeypatch.setattr(audit_module, "run_command", runner)

        result = audit_plugin(make_plugin(package=package), fix=True, quiet=True)

        assert runner.calls == [("run", "lint:fix"), ("run", "format")]
        assert result.linting.fixed is True
        assert result.formatting.fixed is True

    def test_format_check_when_not_fixing(self, make_plugin, monkeypatch: pytest.MonkeyPatch) -> None:
        package = {"name": "metalsmith-x", "scripts": {"format": "prettier --write .", "format:check": "prettier -c ."}}
        runner = fake_runner({("run", "format:check"): ProcessResult(success=False, error="2 files")})
        monkeypatch.setattr(audit_module, "run_command", runner)

        result = audit_plugin(make_plugin(package=package), quiet=True)

        assert runner.calls == [("run", "format:check")]
        assert result.formatting == StepResult(ran=True, passed=False, fixed=False)
        assert "formatting issues" in list_issues(result)

    def test_failing_tests(self, make_plugin, monkeypatch: pytest.MonkeyPatch) -> None:
        runner = fake_runner(
            {("test",): ProcessResult(success=False, output="  3 passing\n  2 failing", error="exit code 1")}
        )
        monkeypatch.setattr(audit_module, "run_command", runner)

        result = audit_plugin(make_plugin(), quiet=True)

        assert result.tests_passed is False
        assert result.test_stats == {"passing": 3, "failing": 2, "total": 5}
        assert "2 test(s) failing" in list_issues(result)
        assert result.coverage_percentage is None

    def test_progress_on_stderr(self, make_plugin, monkeypatch: pytest.MonkeyPatch, capsys) -> None:
        monkeypatch.setattr(audit_module, "run_command", fake_runner({}))

        audit_plugin(make_plugin())

        captured = capsys.readouterr()
        assert captured.out == ""
        assert "Validation:" in captured.err
        assert "Coverage: No data" in captured.err

    def test_missing_path(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            audit_plugin(tmp_path / "missing", quiet=True)


class TestRendering:
    @staticmethod
    def result(**overrides) -> AuditResult:
        values = {
            "plugin_name": "metalsmith-sample",
            "plugin_path": "/plugins/metalsmith-sample",
            "validation_score": 95,
            "validation_passed": True,
            "linting": clean_step(),
            "formatting": clean_step(),
            "tests_passed": True,
            "test_stats": {"passing": 8, "failing": 0, "total": 8},
            "coverage_percentage": 95,
        }
        values.update(overrides)
        return AuditResult(**values)

    def test_markdown_rows(self) -> None:
        text = render_markdown(self.result())

        assert text.startswith("# Audit Report: metalsmith-sample")
        assert "**Overall Health**: EXCELLENT" in text
        assert "| Validation | ✅ | 95% |" in text
        assert "| Linting | ✅ | Clean |" in text
        assert "| Tests | ✅ | 8/8 passing |" in text
        assert "| Coverage | ✅ | 95% |" in text

    def test_markdown_low_coverage_is_soft(self) -> None:
        assert "| Coverage | ⚠️ | 50% |" in render_markdown(self.result(coverage_percentage=50))

    def test_console_healthy(self) -> None:
        assert render_console(self.result()) == "📊 Overall Health for metalsmith-sample: EXCELLENT"

    def test_console_lists_issues(self) -> None:
        result = self.result(
            validation_score=40,
            validation_passed=False,
            tests_passed=False,
            test_stats={"passing": 1, "failing": 7, "total": 8},
            coverage_percentage=10,
            linting=StepResult(ran=True, passed=False),
        )

        text = render_console(result)

        assert "⚠ Issues found:" in text
        assert "  • low validation (40%)" in text
        assert "  • 7 test(s) failing" in text
        assert "  • low coverage (10%)" in text
        assert "  • linting issues" in text
        assert text.endswith("💡 Run with --fix to automatically fix some issues")

    def test_json(self) -> None:
        data = json.loads(render(self.result(), "json"))

        assert data["pluginName"] == "metalsmith-sample"
        assert data["overallHealth"] == "EXCELLENT"
        assert data["results"]["coverage"] == {"percentage": 95, "passed": True}
        assert data["results"]["linting"] == {"ran": True, "passed": True, "fixed": False}


class TestMain:
    def test_missing_path_exits_two(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys) -> None:
        monkeypatch.setattr("sys.argv", ["audit_plugin.py", str(tmp_path / "missing")])

        assert audit_module.main() == 2
        assert capsys.readouterr().err.startswith("Error:")

    def test_json_output(self, make_plugin, monkeypatch: pytest.MonkeyPatch, capsys) -> None:
        runner = fake_runner(
            {
                ("test",): ProcessResult(success=True, output="5 passing"),
                ("run", "test:coverage"): ProcessResult(success=True, output="All files | 91 | 90 | 90 | 92 |"),
            }
        )
        monkeypatch.setattr(audit_module, "run_command", runner)
        monkeypatch.setattr("sys.argv", ["audit_plugin.py", str(make_plugin()), "--output", "json"])

        code = audit_module.main()

        captured = capsys.readouterr()
        data = json.loads(captured.out)
        assert data["results"]["tests"]["passed"] is True
        assert data["results"]["coverage"]["percentage"] == 92
        assert code == (1 if needs_attention(data["overallHealth"]) else 0)
        # Progress lines are suppressed for machine-readable output
        assert captured.err == ""
