#!/usr/bin/env python3
"""
Metalsmith Plugin Audit

Runs validation plus the plugin's own lint, format, test and coverage npm
scripts, then rates overall health from a weighted score.

Usage:
    uv run python scripts/audit_plugin.py /path/to/plugin
    uv run python scripts/audit_plugin.py --fix
    uv run python scripts/audit_plugin.py --output markdown

Health weights:
    validation score 40%, tests passing 30%, line coverage 20%,
    lint + format 10% (5% each). Steps that produced no data are left out
    of the denominator, except lint + format which always count.

Exit codes:
    0 - Health is EXCELLENT, GOOD or FAIR
    1 - Health is NEEDS IMPROVEMENT or POOR
    2 - Plugin path missing or not a directory
"""

from __future__ import annotations

import argparse
import json
import sys
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Literal

from mpv_process import extract_coverage_percentage, extract_test_stats, format_percentage, run_command
from mpv_validation_common import EXIT_FAILED, EXIT_INACCESSIBLE, EXIT_OK, COLORS, has_script
from validate_plugin import validate_plugin

Health = Literal["EXCELLENT", "GOOD", "FAIR", "NEEDS IMPROVEMENT", "POOR"]
OutputFormat = Literal["console", "json", "markdown"]

OUTPUT_FORMATS = ("console", "json", "markdown")

VALIDATION_WEIGHT = 40
TESTS_WEIGHT = 30
COVERAGE_WEIGHT = 20
LINT_WEIGHT = 5
FORMAT_WEIGHT = 5

# Per-step pass marks
VALIDATION_PASS_SCORE = 70
COVERAGE_PASS_PERCENT = 80

HEALTH_COLORS = {
    "EXCELLENT": COLORS["PASSED"],
    "GOOD": COLORS["PASSED"],
    "FAIR": COLORS["WARNING"],
    "NEEDS IMPROVEMENT": COLORS["FAILED"],
    "POOR": COLORS["FAILED"],
}


# =============================================================================
# Result Types
# =============================================================================


@dataclass
class StepResult:
    """Outcome of one npm script run (lint or format)."""

    ran: bool = False
    passed: bool = False
    fixed: bool = False


@dataclass
class AuditResult:
    """Everything one audit learned about a plugin."""

    plugin_name: str
    plugin_path: str
    validation_score: int | None = None
    validation_passed: bool = False
    linting: StepResult = field(default_factory=StepResult)
    formatting: StepResult = field(default_factory=StepResult)
    tests_passed: bool = False
    test_stats: dict[str, int] = field(default_factory=lambda: {"passing": 0, "failing": 0, "total": 0})
    coverage_percentage: float | None = None

    @property
    def coverage_passed(self) -> bool:
        return self.coverage_percentage is not None and self.coverage_percentage >= COVERAGE_PASS_PERCENT

    @property
    def health_percentage(self) -> float:
        return calculate_health_percentage(self)

    @property
    def health(self) -> Health:
        return health_label(self.health_percentage)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "pluginName": self.plugin_name,
            "path": self.plugin_path,
            "overallHealth": self.health,
            "healthPercentage": round(self.health_percentage, 1),
            "results": {
                "validation": {"score": self.validation_score, "passed": self.validation_passed},
                "linting": asdict(self.linting),
                "formatting": asdict(self.formatting),
                "tests": {"passed": self.tests_passed, "stats": dict(self.test_stats)},
                "coverage": {"percentage": self.coverage_percentage, "passed": self.coverage_passed},
            },
        }


# =============================================================================
# Health Scoring
# =============================================================================


def calculate_health_percentage(result: AuditResult) -> float:
    """Weighted health over the steps that produced data (0-100)."""
    score = 0.0
    total = 0

    if result.validation_score is not None:
        score += result.validation_score / 100 * VALIDATION_WEIGHT
        total += VALIDATION_WEIGHT

    if result.test_stats.get("total", 0) > 0:
        score += TESTS_WEIGHT if result.tests_passed else 0
        total += TESTS_WEIGHT

    if result.coverage_percentage is not None:
        score += result.coverage_percentage / 100 * COVERAGE_WEIGHT
        total += COVERAGE_WEIGHT

    if result.linting.passed:
        score += LINT_WEIGHT
    if result.formatting.passed:
        score += FORMAT_WEIGHT
    total += LINT_WEIGHT + FORMAT_WEIGHT

    return score / total * 100 if total else 0.0


def health_label(percentage: float) -> Health:
    if percentage >= 90:
        return "EXCELLENT"
    elif percentage >= 80:
        return "GOOD"
    elif percentage >= 70:
        return "FAIR"
    elif percentage >= 60:
        return "NEEDS IMPROVEMENT"
    else:
        return "POOR"


def needs_attention(health: str) -> bool:
    return health in ("NEEDS IMPROVEMENT", "POOR")


# =============================================================================
# Audit Steps
# =============================================================================


def _progress(message: str, quiet: bool) -> None:
    if not quiet:
        print(message, file=sys.stderr)


def _run_script_step(plugin_path: Path, script: str, fix: bool) -> StepResult:
    result = run_command("npm", ["run", script], plugin_path)
    return StepResult(ran=True, passed=result.success, fixed=fix and result.success)


def audit_plugin(plugin_path: str | Path, fix: bool = False, quiet: bool = False) -> AuditResult:
    """Audit one plugin directory.

    Args:
        plugin_path: Plugin root directory
        fix: Run lint:fix and format instead of the read-only variants
        quiet: Suppress per-step progress lines on stderr

    Raises:
        FileNotFoundError: plugin_path does not exist
        NotADirectoryError: plugin_path is not a directory
    """
    path = Path(plugin_path).resolve()
    result = AuditResult(plugin_name=path.name, plugin_path=str(path))

    report = validate_plugin(path)
    result.validation_score = report.score
    result.validation_passed = report.score >= VALIDATION_PASS_SCORE
    _progress(f"Validation: {report.score}%", quiet)

    try:
        package_json = json.loads((path / "package.json").read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError):
        package_json = {}
    if not isinstance(package_json, dict):
        package_json = {}

    if has_script(package_json, "lint"):
        script = "lint:fix" if fix and has_script(package_json, "lint:fix") else "lint"
        result.linting = _run_script_step(path, script, fix and script == "lint:fix")
        _progress(f"Linting: {'Passed' if result.linting.passed else 'Issues found'}", quiet)

    if fix and has_script(package_json, "format"):
        result.formatting = _run_script_step(path, "format", True)
    elif has_script(package_json, "format:check"):
        result.formatting = _run_script_step(path, "format:check", False)
    if result.formatting.ran:
        _progress(f"Formatting: {'Clean' if result.formatting.passed else 'Issues found'}", quiet)

    if has_script(package_json, "test"):
        tests = run_command("npm", ["test"], path)
        result.tests_passed = tests.success
        result.test_stats = extract_test_stats(tests.combined_output)
        stats = result.test_stats
        _progress(f"Tests: {stats['passing']}/{stats['total']} passing", quiet)

    coverage_script = next((name for name in ("test:coverage", "coverage") if has_script(package_json, name)), None)
    if coverage_script:
        coverage = run_command("npm", ["run", coverage_script], path)
        result.coverage_percentage = extract_coverage_percentage(coverage.combined_output)
        if result.coverage_percentage is None:
            _progress("Coverage: No data", quiet)
        else:
            _progress(f"Coverage: {format_percentage(result.coverage_percentage)}%", quiet)

    return result


# =============================================================================
# Output
# =============================================================================


def list_issues(result: AuditResult) -> list[str]:
    """Short descriptions of every step that fell below its pass mark."""
    issues: list[str] = []
    if result.validation_score is not None and not result.validation_passed:
        issues.append(f"low validation ({result.validation_score}%)")
    if result.test_stats.get("total", 0) > 0 and not result.tests_passed:
        issues.append(f"{result.test_stats.get('failing', 0)} test(s) failing")
    if result.coverage_percentage is not None and not result.coverage_passed:
        issues.append(f"low coverage ({format_percentage(result.coverage_percentage)}%)")
    if result.linting.ran and not result.linting.passed:
        issues.append("linting issues")
    if result.formatting.ran and not result.formatting.passed:
        issues.append("formatting issues")
    return issues


def render_console(result: AuditResult, color: bool = False) -> str:
    health = result.health
    if color:
        health = f"{HEALTH_COLORS[result.health]}{health}{COLORS['RESET']}"

    lines = [f"📊 Overall Health for {result.plugin_name}: {health}"]
    if needs_attention(result.health):
        lines.append("")
        lines.append("⚠ Issues found:")
        lines.extend(f"  • {issue}" for issue in list_issues(result))
        lines.append("")
        lines.append("💡 Run with --fix to automatically fix some issues")
    return "\n".join(lines)


def _status(passed: bool, soft: bool = False) -> str:
    if passed:
        return "✅"
    return "⚠️" if soft else "❌"


def render_markdown(result: AuditResult) -> str:
    lines = [
        f"# Audit Report: {result.plugin_name}",
        "",
        f"**Date**: {datetime.now(timezone.utc).isoformat()}",
        f"**Overall Health**: {result.health}",
        "",
        "## Results",
        "",
        "| Check | Status | Details |",
        "|-------|--------|---------|",
    ]

    if result.validation_score is not None:
        lines.append(f"| Validation | {_status(result.validation_passed)} | {result.validation_score}% |")
    if result.linting.ran:
        details = "Fixed issues" if result.linting.fixed else "Clean" if result.linting.passed else "Issues found"
        lines.append(f"| Linting | {_status(result.linting.passed)} | {details} |")
    if result.formatting.ran:
        details = "Fixed" if result.formatting.fixed else "Clean" if result.formatting.passed else "Issues found"
        lines.append(f"| Formatting | {_status(result.formatting.passed)} | {details} |")
    if result.test_stats.get("total", 0) > 0:
        stats = result.test_stats
        lines.append(f"| Tests | {_status(result.tests_passed)} | {stats['passing']}/{stats['total']} passing |")
    if result.coverage_percentage is not None:
        lines.append(
            f"| Coverage | {_status(result.coverage_passed, soft=True)} | "
            f"{format_percentage(result.coverage_percentage)}% |"
        )

    return "\n".join(lines)


def render(result: AuditResult, output: OutputFormat, color: bool = False) -> str:
    if output == "json":
        return json.dumps(result.to_dict(), indent=2, ensure_ascii=False)
    if output == "markdown":
        return render_markdown(result)
    return render_console(result, color=color)


def main() -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Audit a Metalsmith plugin (validation, lint, format, tests, coverage)")
    parser.add_argument("path", nargs="?", default=".", help="Plugin root path (default: current directory)")
    parser.add_argument("--fix", action="store_true", help="Run lint:fix and format to apply automatic fixes")
    parser.add_argument("--output", choices=OUTPUT_FORMATS, default="console", help="Report format")
    args = parser.parse_args()

    try:
        result = audit_plugin(args.path, fix=args.fix, quiet=args.output != "console")
    except OSError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_INACCESSIBLE

    print(render(result, args.output, color=sys.stdout.isatty()))
    return EXIT_FAILED if needs_attention(result.health) else EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
