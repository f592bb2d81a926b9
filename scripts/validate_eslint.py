#!/usr/bin/env python3
"""
Metalsmith Plugin Validation - ESLint Configuration Check
"""

from __future__ import annotations

from mpv_validation_common import CheckContext, ValidationReport, scaffold_command, suggest

# Searched in order; the first one found is reported
ESLINT_CONFIG_FILES = ("eslint.config.js", ".eslintrc.js", ".eslintrc.json")

FLAT_CONFIG_FILE = "eslint.config.js"


def find_eslint_config(ctx: CheckContext) -> str | None:
    for filename in ESLINT_CONFIG_FILES:
        if ctx.exists(filename):
            return filename
    return None


def check_eslint(ctx: CheckContext, report: ValidationReport) -> None:
    """Check for an ESLint configuration, preferring the flat config format."""
    config_file = find_eslint_config(ctx)
    if config_file:
        report.passed(f"ESLint configuration found: {config_file}")
    else:
        report.recommend(
            suggest(
                ctx,
                "Consider adding ESLint configuration",
                scaffold_command(ctx, FLAT_CONFIG_FILE, "eslint"),
            )
        )

    if ctx.exists(FLAT_CONFIG_FILE):
        report.passed("Using modern ESLint flat config")
