#!/usr/bin/env python3
"""
Metalsmith Plugin Validation - Structure Check

Verifies the plugin directory layout against the configured rules:

1. Required directories exist (src/, test/)
2. Required files exist (src/index.js, README.md, package.json)
3. Recommended files exist (.release-it.json)
4. Recommended directories exist (src/utils, src/processors, test/fixtures)
5. Functional mode only: main file complexity suggests a module split
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from mpv_config import rule_list
from mpv_validation_common import MAIN_FILE, CheckContext, ValidationReport, scaffold_command, suggest

# Complexity thresholds for src/index.js
MAX_MAIN_LINES = 150
MAX_MAIN_FUNCTIONS = 8
MAX_MAIN_IMPORTS = 10
MAX_FUNCTIONS_WITH_PROCESSING = 5

_FUNCTION_PATTERN = re.compile(r"function\s+\w+|const\s+\w+\s*=\s*\([^)]*\)\s*=>")
_CLASS_PATTERN = re.compile(r"class\s+\w+")
_IMPORT_PATTERN = re.compile(r"^import\s+", re.MULTILINE)
_PROCESSING_KEYWORDS = ("process", "transform", "parse")


@dataclass(frozen=True)
class FileComplexity:
    """Regex-derived shape of a source file."""

    lines: int
    functions: int
    classes: int
    imports: int
    has_processors: bool

    @property
    def needs_utils(self) -> bool:
        return (
            self.lines > MAX_MAIN_LINES
            or self.functions > MAX_MAIN_FUNCTIONS
            or self.imports > MAX_MAIN_IMPORTS
        )

    @property
    def needs_processors(self) -> bool:
        return self.has_processors and self.functions > MAX_FUNCTIONS_WITH_PROCESSING


def analyze_file_complexity(content: str) -> FileComplexity:
    """Count code lines, functions, classes and imports in JavaScript source.

    Blank lines and lines starting with // are not counted.
    """
    code_lines = [line for line in content.split("\n") if line.strip() and not line.strip().startswith("//")]
    return FileComplexity(
        lines=len(code_lines),
        functions=len(_FUNCTION_PATTERN.findall(content)),
        classes=len(_CLASS_PATTERN.findall(content)),
        imports=len(_IMPORT_PATTERN.findall(content)),
        has_processors=any(keyword in content for keyword in _PROCESSING_KEYWORDS),
    )


def analyze_code_complexity(ctx: CheckContext, report: ValidationReport) -> None:
    """Recommend splitting the main file when it has outgrown one module."""
    try:
        content = ctx.read_main_file()
    except OSError:
        report.warning(f"Could not analyze main file complexity: {MAIN_FILE} is not readable")
        return

    analysis = analyze_file_complexity(content)
    shape = f"{analysis.lines} lines, {analysis.functions} functions, {analysis.imports} imports"

    if analysis.needs_utils:
        report.recommend(f"Main file is complex ({shape}) - consider splitting utilities into src/utils/")
    else:
        report.passed(f"Main file complexity is appropriate ({shape})")

    if analysis.needs_processors:
        report.recommend("Multiple processing functions detected - consider organizing into src/processors/")
    elif analysis.has_processors:
        report.passed("Processing logic is well-organized")


def check_structure(ctx: CheckContext, report: ValidationReport) -> None:
    """Validate plugin directory structure.

    Args:
        ctx: Check context (plugin path, config, functional flag)
        report: ValidationReport to add results to
    """
    for directory in rule_list(ctx.config, "structure", "requiredDirs"):
        if ctx.path(directory).is_dir():
            report.passed(f"Directory {directory} exists")
        else:
            report.failed(f"Missing required directory: {directory}")

    for file in rule_list(ctx.config, "structure", "requiredFiles"):
        if ctx.exists(file):
            report.passed(f"File {file} exists")
        else:
            report.failed(f"Missing required file: {file}")

    for file in rule_list(ctx.config, "structure", "recommendedFiles"):
        if ctx.exists(file):
            report.passed(f"Recommended file {file} exists")
        elif file == ".release-it.json":
            report.recommend(
                suggest(
                    ctx,
                    f"Consider adding {file} for automated releases",
                    scaffold_command(ctx, ".release-it.json", "release-config"),
                )
            )
        else:
            report.recommend(f"Consider adding recommended file: {file}")

    for directory in rule_list(ctx.config, "structure", "recommendedDirs"):
        if ctx.path(directory).is_dir():
            report.passed(f"Recommended directory {directory} exists")
        elif directory == "test/fixtures":
            report.recommend(
                suggest(
                    ctx,
                    f"Consider adding {directory}",
                    scaffold_command(ctx, "test/fixtures/basic/sample.md", "basic"),
                )
            )
        else:
            report.recommend(f"Consider adding directory: {directory}")

    if ctx.functional:
        analyze_code_complexity(ctx, report)
