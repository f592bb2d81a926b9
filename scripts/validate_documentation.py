#!/usr/bin/env python3
"""
Metalsmith Plugin Validation - Documentation Check

Validates README.md against the documentation rules:

1. README.md must exist at plugin root
2. Required sections must be present (FAILED when missing)
3. Recommended sections should be present (Installation, Usage, Options, Examples)
4. README should show badges
5. README should contain fenced code examples
6. A LICENSE file should exist
"""

from __future__ import annotations

import re

from mpv_config import recommendation_enabled, rule_list
from mpv_validation_common import README_TEMPLATE, CheckContext, ValidationReport, scaffold_command, suggest


def section_pattern(name: str) -> re.Pattern[str]:
    """Match a markdown heading (levels 1-4) that mentions the section name."""
    return re.compile(rf"^#{{1,4}}\s+.*{re.escape(name)}", re.IGNORECASE | re.MULTILINE)


def _check_sections(ctx: CheckContext, readme: str, report: ValidationReport) -> None:
    for name in rule_list(ctx.config, "documentation", "requiredSections"):
        if section_pattern(name).search(readme):
            report.passed(f"README includes required {name} section")
        else:
            report.failed(f"README missing required {name} section")

    template_suggestions = recommendation_enabled(ctx.config, "templateSuggestions")
    for name in rule_list(ctx.config, "documentation", "recommendedSections"):
        if section_pattern(name).search(readme):
            report.passed(f"README includes {name} section")
        elif template_suggestions:
            report.recommend(f"Consider adding {name} section to README. See template: {README_TEMPLATE}")
        else:
            report.recommend(f"Consider adding {name} section to README")


def check_documentation(ctx: CheckContext, report: ValidationReport) -> None:
    """Check README content and LICENSE presence.

    Args:
        ctx: Check context (plugin path, config, functional flag)
        report: ValidationReport to add results to
    """
    try:
        readme = ctx.read_text("README.md")
    except FileNotFoundError:
        report.failed("README.md not found - cannot check documentation")
        readme = None

    if readme is not None:
        _check_sections(ctx, readme, report)

        if "![" in readme:
            report.passed("README includes badges")
        else:
            report.recommend(
                "Consider adding badges to README. Common badges: npm version, build status, coverage"
            )

        if "```" in readme:
            report.passed("README includes code examples")
        elif recommendation_enabled(ctx.config, "templateSuggestions"):
            report.recommend(f"Consider adding code examples to README. See template: {README_TEMPLATE}")
        else:
            report.recommend("Consider adding code examples to README")

    if ctx.exists("LICENSE"):
        report.passed("LICENSE file exists")
    else:
        report.recommend(
            suggest(ctx, "Consider adding a LICENSE file", scaffold_command(ctx, "LICENSE", "<license-type>"))
        )
