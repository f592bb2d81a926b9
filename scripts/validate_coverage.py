#!/usr/bin/env python3
"""
Metalsmith Plugin Validation - Coverage Artifacts Check

Inspects coverage output the plugin has already produced; it never runs
the test suite itself (the tests check does that in functional mode).

1. coverage/ reports exist (new plugins without node_modules are not penalized)
2. coverage/coverage-summary.json line percentage against the threshold
3. A c8/nyc configuration file exists and its lines threshold is not lax

c8 and nyc accept the same settings in JSON or YAML, so their rc files are
parsed with PyYAML, which reads both.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any

import yaml

from mpv_config import rule_section
from mpv_process import format_percentage
from mpv_validation_common import CheckContext, ValidationReport

COVERAGE_SUMMARY = "coverage/coverage-summary.json"

COVERAGE_CONFIG_FILES = (
    ".c8rc",
    ".c8rc.json",
    ".nycrc",
    ".nycrc.json",
    ".nycrc.yml",
    ".nycrc.yaml",
)

DEFAULT_THRESHOLD = 80
EXCELLENT_COVERAGE = 90


def coverage_threshold(ctx: CheckContext) -> float:
    threshold = rule_section(ctx.config, "tests").get("coverageThreshold")
    if isinstance(threshold, (int, float)) and not isinstance(threshold, bool) and threshold:
        return threshold
    return DEFAULT_THRESHOLD


def has_coverage_reports(ctx: CheckContext) -> bool:
    # ctx.glob skips coverage/ as build output, so walk it directly
    return any(path.is_file() for path in ctx.path("coverage").rglob("*"))


def read_summary_line_pct(ctx: CheckContext) -> float | None:
    """Read total.lines.pct from the istanbul json-summary report.

    Returns None when the summary is missing, malformed or has no line total.
    """
    try:
        summary = json.loads(ctx.read_text(COVERAGE_SUMMARY))
    except (OSError, json.JSONDecodeError):
        return None

    total = summary.get("total") if isinstance(summary, Mapping) else None
    lines = total.get("lines") if isinstance(total, Mapping) else None
    pct = lines.get("pct") if isinstance(lines, Mapping) else None
    if isinstance(pct, (int, float)) and not isinstance(pct, bool):
        return float(pct)
    return None


def load_coverage_config(ctx: CheckContext, filename: str) -> Mapping[str, Any] | None:
    """Parse a c8/nyc rc file; None when unreadable or not a mapping."""
    try:
        data = yaml.safe_load(ctx.read_text(filename))
    except (OSError, yaml.YAMLError):
        return None
    return data if isinstance(data, Mapping) else None


def _check_reports(ctx: CheckContext, report: ValidationReport) -> None:
    # No node_modules means the tests have never been installed and run
    is_new_plugin = not ctx.path("node_modules").exists()

    if not has_coverage_reports(ctx):
        if is_new_plugin:
            report.passed("Coverage reports will be generated after running 'npm run test:coverage'")
        else:
            report.recommend("No coverage reports found - run 'npm run test:coverage' to generate")
        return

    report.passed("Coverage reports found")

    coverage = read_summary_line_pct(ctx)
    if coverage is None:
        return

    threshold = coverage_threshold(ctx)
    if coverage >= EXCELLENT_COVERAGE:
        report.passed(f"Excellent test coverage: {format_percentage(coverage)}%")
    elif coverage >= threshold:
        report.passed(f"Good test coverage: {format_percentage(coverage)}%")
    else:
        report.warning(
            f"Low test coverage: {format_percentage(coverage)}% (threshold: {format_percentage(threshold)}%)"
        )


def _check_configuration(ctx: CheckContext, report: ValidationReport) -> None:
    config_files = [filename for filename in COVERAGE_CONFIG_FILES if ctx.exists(filename)]
    if not config_files:
        report.recommend("Consider adding coverage configuration. Create .c8rc.json with coverage thresholds")
        return

    report.passed(f"Coverage configuration found: {config_files[0]}")

    config = load_coverage_config(ctx, config_files[0])
    if config is None:
        report.warning(f"Could not parse coverage configuration: {config_files[0]}")
        return

    lines = config.get("lines")
    threshold = coverage_threshold(ctx)
    if isinstance(lines, (int, float)) and not isinstance(lines, bool) and lines < threshold:
        report.recommend(
            f"Coverage configuration enforces {format_percentage(lines)}% lines, "
            f"below the {format_percentage(threshold)}% threshold"
        )


def check_coverage(ctx: CheckContext, report: ValidationReport) -> None:
    """Check coverage reports and coverage tool configuration."""
    _check_reports(ctx, report)
    _check_configuration(ctx, report)
