#!/usr/bin/env python3
"""
Metalsmith Plugin Validator

Runs a configurable set of quality checks against a Metalsmith plugin
directory and prints a categorized, scored report.

Usage:
    uv run python scripts/validate_plugin.py /path/to/plugin
    uv run python scripts/validate_plugin.py --checks structure tests docs
    uv run python scripts/validate_plugin.py --functional
    uv run python scripts/validate_plugin.py --json

Flags:
    --checks:     Check names to run (default: structure tests docs
                  package-json jsdoc performance security metalsmith-patterns).
                  Unknown names are skipped; --verbose lists them.
    --functional: Also execute the plugin's own npm test/coverage scripts
                  (each command is killed after 60 seconds).

Exit codes:
    0 - No FAILED findings (plugin meets quality standards)
    1 - FAILED findings present
    2 - Plugin path missing or not a directory
"""

from __future__ import annotations

import argparse
import errno
import sys
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from mpv_config import load_validation_config, rule_enabled
from mpv_validation_common import (
    EXIT_INACCESSIBLE,
    CheckContext,
    CheckFunction,
    Level,
    ValidationReport,
    colorize_report,
    render_report,
)
from validate_coverage import check_coverage
from validate_documentation import check_documentation
from validate_eslint import check_eslint
from validate_integration import check_integration
from validate_jsdoc import check_jsdoc
from validate_metalsmith_patterns import check_metalsmith_patterns
from validate_package_json import check_package_json
from validate_performance import check_performance
from validate_security import check_security
from validate_structure import check_structure
from validate_tests import check_tests

# =============================================================================
# Check Registry
# =============================================================================


@dataclass(frozen=True)
class CheckSpec:
    """Registry entry for one named check.

    Attributes:
        func: The check itself
        rule: rules.<rule> section that can disable the check, if any
        fault_level: Finding level recorded when the check raises
    """

    func: CheckFunction
    rule: str | None = None
    fault_level: Level = "WARNING"


CHECKS: dict[str, CheckSpec] = {
    # Required checks - a crash is a hard failure
    "structure": CheckSpec(check_structure, rule="structure", fault_level="FAILED"),
    "tests": CheckSpec(check_tests, rule="tests", fault_level="FAILED"),
    "docs": CheckSpec(check_documentation, rule="documentation", fault_level="FAILED"),
    "package-json": CheckSpec(check_package_json, rule="packageJson", fault_level="FAILED"),
    # Best-effort heuristics - a crash is only a warning
    "eslint": CheckSpec(check_eslint),
    "coverage": CheckSpec(check_coverage),
    "jsdoc": CheckSpec(check_jsdoc),
    "performance": CheckSpec(check_performance),
    "security": CheckSpec(check_security),
    "integration": CheckSpec(check_integration),
    "metalsmith-patterns": CheckSpec(check_metalsmith_patterns),
}

DEFAULT_CHECKS = (
    "structure",
    "tests",
    "docs",
    "package-json",
    "jsdoc",
    "performance",
    "security",
    "metalsmith-patterns",
)


# =============================================================================
# Pipeline
# =============================================================================


def run_checks(ctx: CheckContext, checks: Iterable[str]) -> ValidationReport:
    """Dispatch each requested check in order against one plugin.

    Unknown names are recorded in report.skipped_checks. A check that raises
    becomes a single finding at its fault level and the pipeline continues.
    """
    report = ValidationReport()

    for name in checks:
        spec = CHECKS.get(name)
        if spec is None:
            report.skipped_checks.append(name)
            continue
        if spec.rule is not None and not rule_enabled(ctx.config, spec.rule):
            continue

        report.current_check = name
        try:
            spec.func(ctx, report)
        except Exception as e:
            report.add(spec.fault_level, f"Check {name} could not complete: {e}")
        finally:
            report.current_check = None

    return report


def validate_plugin(
    plugin_path: str | Path,
    checks: Iterable[str] | None = None,
    functional: bool = False,
) -> ValidationReport:
    """Validate a plugin directory.

    Args:
        plugin_path: Plugin root directory
        checks: Check names to run (default: DEFAULT_CHECKS)
        functional: Run the plugin's npm test/coverage scripts

    Returns:
        ValidationReport with every finding

    Raises:
        FileNotFoundError: plugin_path does not exist
        NotADirectoryError: plugin_path is not a directory
    """
    path = Path(plugin_path)
    if not path.exists():
        raise FileNotFoundError(errno.ENOENT, "Plugin directory not found", str(path))
    if not path.is_dir():
        raise NotADirectoryError(errno.ENOTDIR, "Plugin path is not a directory", str(path))

    ctx = CheckContext(plugin_path=path, config=load_validation_config(path), functional=functional)
    return run_checks(ctx, DEFAULT_CHECKS if checks is None else checks)


def validate_plugin_tool(args: dict[str, Any]) -> dict[str, Any]:
    """Tool-call entry point returning text content plus an error flag.

    Args:
        args: {"path": str, "checks": list[str] | None, "functional": bool}
    """
    try:
        report = validate_plugin(
            args.get("path", "."),
            checks=args.get("checks"),
            functional=bool(args.get("functional", False)),
        )
    except OSError as e:
        return {
            "content": [{"type": "text", "text": f"Failed to validate plugin: {e}"}],
            "isError": True,
        }

    return {"content": [{"type": "text", "text": render_report(report)}], "isError": False}


# =============================================================================
# Output
# =============================================================================


def print_results(report: ValidationReport) -> None:
    """Print the report, colored when stdout is a terminal."""
    text = render_report(report)
    if sys.stdout.isatty():
        text = colorize_report(text)
    print(text)


def print_json(report: ValidationReport) -> None:
    """Print validation results as JSON."""
    print(report.to_json())


def main() -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Validate a Metalsmith plugin")
    parser.add_argument("path", nargs="?", default=".", help="Plugin root path (default: current directory)")
    parser.add_argument(
        "--checks",
        nargs="+",
        metavar="NAME",
        default=list(DEFAULT_CHECKS),
        help=f"Checks to run. Available: {', '.join(CHECKS)}",
    )
    parser.add_argument(
        "--functional",
        action="store_true",
        help="Run the plugin's own test and coverage scripts",
    )
    parser.add_argument("--json", action="store_true", help="Output as JSON")
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Report skipped (unknown) check names on stderr",
    )
    args = parser.parse_args()

    try:
        report = validate_plugin(args.path, checks=args.checks, functional=args.functional)
    except OSError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_INACCESSIBLE

    if args.verbose:
        for name in report.skipped_checks:
            print(f"Skipped unknown check: {name}", file=sys.stderr)

    if args.json:
        print_json(report)
    else:
        print_results(report)

    return report.exit_code


if __name__ == "__main__":
    sys.exit(main())
