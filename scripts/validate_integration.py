#!/usr/bin/env python3
"""
Metalsmith Plugin Validation - Ecosystem Integration Heuristics

Looks for signs that a plugin cooperates with the rest of a Metalsmith
pipeline: it respects metadata other plugins attach, handles file
extensions, documents where it belongs in the pipeline and is tested
alongside common plugins.
"""

from __future__ import annotations

import re

from mpv_validation_common import CheckContext, ValidationReport, search

# (plugin, detection pattern, what the match suggests)
COMMON_PLUGIN_PATTERNS = [
    ("layouts", re.compile(r"layout|template"), "layout property handling"),
    ("collections", re.compile(r"collection|group"), "collection membership"),
    ("markdown", re.compile(r"\.md|markdown"), "markdown file processing"),
    ("frontmatter", re.compile(r"frontmatter|yaml|title|date"), "frontmatter data usage"),
]

_READS_METADATA = re.compile(r"files\[.*?\]\.(?!contents)")
_WRITES_METADATA = re.compile(r"files\[.*?\]\.\w+\s*=|Object\.assign\(files\[.*?\]")
_GLOBAL_METADATA = re.compile(r"metalsmith\.metadata\(\)")
_EXTENSION_LOGIC = re.compile(r"\.endsWith\(|path\.extname|\.ext\b|\.extension")
_ORDERING_KEYWORDS = re.compile(r"order|before|after|sequence|pipeline|placement|position", re.IGNORECASE)
_INTEGRATION_TEST = re.compile(r"metalsmith-|@metalsmith/|layouts|markdown|collections")
_PIPELINE_EXAMPLE = re.compile(r"\.use\([^)]*\)[\s\S]*\.use\([^)]*\)")
_COMMON_PLUGIN_MENTION = re.compile(r"@metalsmith/|metalsmith-layouts|metalsmith-markdown|metalsmith-collections")


def has_ordering_documentation(readme: str | None) -> bool:
    return readme is not None and search(_ORDERING_KEYWORDS, readme)


def has_integration_tests(ctx: CheckContext) -> bool:
    for test_file in ctx.glob("test/**/*.js") + ctx.glob("test/**/*.cjs") + ctx.glob("test/**/*.mjs"):
        try:
            if search(_INTEGRATION_TEST, ctx.read_text(test_file)):
                return True
        except OSError:
            continue
    return False


def _check_readme(readme: str, report: ValidationReport) -> None:
    if search(_PIPELINE_EXAMPLE, readme):
        report.passed("README includes plugin pipeline examples")
    else:
        report.recommend("Add complete Metalsmith pipeline examples to README showing integration with other plugins")

    if search(_COMMON_PLUGIN_MENTION, readme):
        report.passed("Documentation references common Metalsmith plugins")
    else:
        report.recommend("Consider mentioning compatibility with common plugins in documentation")


def check_integration(ctx: CheckContext, report: ValidationReport) -> None:
    try:
        content = ctx.read_main_file()
    except OSError as e:
        report.warning(f"Could not check integration patterns: {e}")
        return

    try:
        readme: str | None = ctx.read_text("README.md")
    except OSError:
        readme = None

    if search(_READS_METADATA, content) or search(_WRITES_METADATA, content):
        report.passed("Plugin respects/modifies file metadata appropriately")
    else:
        report.recommend("Ensure plugin works with file metadata from other plugins (e.g., frontmatter, collections)")

    if search(_GLOBAL_METADATA, content):
        report.passed("Plugin accesses global metadata")
    else:
        report.recommend("Consider using metalsmith.metadata() to access site-wide information")

    for plugin, pattern, evidence in COMMON_PLUGIN_PATTERNS:
        if pattern.search(content):
            report.passed(f"Plugin appears compatible with {plugin} ({evidence})")

    if search(_EXTENSION_LOGIC, content):
        report.passed("Plugin handles file extensions properly")
    else:
        report.recommend("Consider adding file extension validation for better plugin integration")

    if has_ordering_documentation(readme):
        report.passed("Plugin documentation includes ordering considerations")
    else:
        report.recommend("Document plugin ordering requirements in README (before/after other plugins)")

    if has_integration_tests(ctx):
        report.passed("Integration tests with other plugins detected")
    else:
        report.recommend("Consider adding integration tests with common Metalsmith plugins")

    if readme is not None:
        _check_readme(readme, report)
