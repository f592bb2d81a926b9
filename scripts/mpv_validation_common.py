#!/usr/bin/env python3
"""
Metalsmith Plugin Validation - Common Module

Shared validation infrastructure for all Metalsmith plugin checks.
This module contains:
- Type definitions (Level, ValidationResult, ValidationReport, CheckContext)
- Common constants (main file, scaffold command, report markers)
- Scoring and plain-text report rendering

All individual checks should import from this module to ensure consistency.
"""

from __future__ import annotations

import json
import math
import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Literal

from mpv_config import recommendation_enabled

# =============================================================================
# Type Definitions
# =============================================================================

# Finding categories
# - PASSED: check passed, counts toward the score numerator
# - FAILED: hard quality gate, any FAILED finding fails the plugin
# - WARNING: quality concern, never blocks
# - RECOMMENDATION: optional improvement, never blocks
Level = Literal["PASSED", "FAILED", "WARNING", "RECOMMENDATION"]

LEVELS: tuple[Level, ...] = ("PASSED", "FAILED", "WARNING", "RECOMMENDATION")

# =============================================================================
# Exit Codes
# =============================================================================

EXIT_OK = 0  # No FAILED findings
EXIT_FAILED = 1  # At least one FAILED finding
EXIT_INACCESSIBLE = 2  # Plugin path missing or not a directory

# =============================================================================
# Common Constants
# =============================================================================

# Entry point every heuristic check inspects
MAIN_FILE = "src/index.js"

# External scaffolding command quoted in recommendations
SCAFFOLD_COMMAND = "npx metalsmith-plugin-mcp-server scaffold"

# README template referenced by documentation suggestions
README_TEMPLATE = "templates/plugin/README.md.template"

REPORT_TITLE = "Plugin Validation Report"

# Section order is fixed: passed, warnings, recommendations, failed
REPORT_SECTIONS: tuple[tuple[Level, str, str], ...] = (
    ("PASSED", "Passed", "✓"),
    ("WARNING", "Warnings", "⚠"),
    ("RECOMMENDATION", "Recommendations", "💡"),
    ("FAILED", "Failed", "✗"),
)

PASS_BANNER = "✅ Plugin meets quality standards!"
FAIL_BANNER = "❌ Plugin needs improvements"

# Directories never descended into when scanning a plugin tree
SKIP_DIRS = {
    ".git",
    "node_modules",
    "coverage",
    ".nyc_output",
}


# =============================================================================
# Results
# =============================================================================


@dataclass(frozen=True)
class ValidationResult:
    """Single finding emitted by a check.

    Attributes:
        level: Finding category (PASSED, FAILED, WARNING, RECOMMENDATION)
        message: Human-readable description of the finding
        check: Name of the check that emitted it
    """

    level: Level
    message: str
    check: str | None = None

    def to_dict(self) -> dict[str, str]:
        """Convert to dictionary for JSON serialization."""
        result = {"level": self.level, "message": self.message}
        if self.check is not None:
            result["check"] = self.check
        return result


@dataclass
class ValidationReport:
    """Append-only result set for a single validation run.

    Each check appends findings through the level helpers. Findings are
    never removed or mutated; per-category views are derived on demand.
    """

    results: list[ValidationResult] = field(default_factory=list)
    skipped_checks: list[str] = field(default_factory=list)
    current_check: str | None = None

    def add(self, level: Level, message: str) -> None:
        """Add a finding tagged with the currently running check."""
        self.results.append(ValidationResult(level, message, self.current_check))

    def passed(self, message: str) -> None:
        """Add a passed check."""
        self.add("PASSED", message)

    def failed(self, message: str) -> None:
        """Add a failed check."""
        self.add("FAILED", message)

    def warning(self, message: str) -> None:
        """Add a warning."""
        self.add("WARNING", message)

    def recommend(self, message: str) -> None:
        """Add a recommendation."""
        self.add("RECOMMENDATION", message)

    def messages(self, level: Level) -> list[str]:
        """Get messages of one category, in emission order."""
        return [r.message for r in self.results if r.level == level]

    def count_by_level(self) -> dict[str, int]:
        """Get count of results by level."""
        counts: dict[str, int] = {level: 0 for level in LEVELS}
        for r in self.results:
            counts[r.level] += 1
        return counts

    @property
    def total(self) -> int:
        return len(self.results)

    @property
    def has_failed(self) -> bool:
        """Check if any FAILED findings exist."""
        return any(r.level == "FAILED" for r in self.results)

    @property
    def meets_standards(self) -> bool:
        """Binary quality gate: warnings and recommendations never affect it."""
        return not self.has_failed

    @property
    def score(self) -> int:
        """Quality score (0-100).

        score = floor(100 * passed / (passed + failed + warnings + recommendations) + 0.5)

        Halves round up. Warnings and recommendations only grow the
        denominator. An empty result set scores 0.
        """
        if not self.results:
            return 0
        counts = self.count_by_level()
        return math.floor(100 * counts["PASSED"] / self.total + 0.5)

    @property
    def exit_code(self) -> int:
        return EXIT_FAILED if self.has_failed else EXIT_OK

    def to_summary(self) -> dict[str, Any]:
        """Machine-readable summary for batch aggregation."""
        counts = self.count_by_level()
        return {
            "score": self.score,
            "grade": calculate_letter_grade(self.score),
            "meets_standards": self.meets_standards,
            "total": self.total,
            "counts": {
                "passed": counts["PASSED"],
                "failed": counts["FAILED"],
                "warnings": counts["WARNING"],
                "recommendations": counts["RECOMMENDATION"],
            },
            "skipped_checks": list(self.skipped_checks),
        }

    def to_dict(self) -> dict[str, object]:
        """Convert to dictionary for JSON serialization."""
        output: dict[str, object] = self.to_summary()
        output["exit_code"] = self.exit_code
        output["results"] = [r.to_dict() for r in self.results]
        return output

    def to_json(self, indent: int = 2) -> str:
        """Convert report to JSON string."""
        return json.dumps(self.to_dict(), indent=indent, ensure_ascii=False)


# =============================================================================
# Check Context
# =============================================================================


@dataclass(frozen=True)
class CheckContext:
    """Read-only bundle handed to every check.

    Attributes:
        plugin_path: Plugin root directory
        config: Resolved validation configuration (read-only)
        functional: Whether checks may execute the plugin's own commands
    """

    plugin_path: Path
    config: Mapping[str, Any]
    functional: bool = False

    def path(self, relative: str) -> Path:
        return self.plugin_path / relative

    def exists(self, relative: str) -> bool:
        return self.path(relative).exists()

    def read_text(self, relative: str) -> str:
        """Read a plugin file as UTF-8. Raises OSError when unreadable."""
        return self.path(relative).read_text(encoding="utf-8", errors="replace")

    def read_main_file(self) -> str:
        return self.read_text(MAIN_FILE)

    def load_package_json(self) -> dict[str, Any]:
        """Parse the plugin's package.json.

        Raises:
            FileNotFoundError: package.json does not exist
            json.JSONDecodeError: package.json is not valid JSON
        """
        data = json.loads(self.read_text("package.json"))
        if not isinstance(data, dict):
            raise ValueError("package.json must contain a JSON object")
        return data

    def glob(self, pattern: str) -> list[str]:
        """Glob relative to the plugin root, skipping dependency/output dirs.

        Returns sorted POSIX-style relative paths of files.
        """
        matches: set[str] = set()
        for path in self.plugin_path.glob(pattern):
            rel = path.relative_to(self.plugin_path)
            if any(part in SKIP_DIRS for part in rel.parts[:-1]):
                continue
            if path.is_file():
                matches.add(rel.as_posix())
        return sorted(matches)


# Check signature shared by every pipeline stage
CheckFunction = Callable[[CheckContext, ValidationReport], None]


# =============================================================================
# Utility Functions
# =============================================================================


def suggest(ctx: CheckContext, message: str, command: str | None = None) -> str:
    """Append an actionable command when recommendations.showCommands is on."""
    if command and recommendation_enabled(ctx.config, "showCommands"):
        return f"{message}. Run: {command}"
    return message


def scaffold_command(ctx: CheckContext, *args: str) -> str:
    return " ".join([SCAFFOLD_COMMAND, str(ctx.plugin_path), *args])


def has_script(package_json: Mapping[str, Any], name: str) -> bool:
    scripts = package_json.get("scripts")
    return isinstance(scripts, Mapping) and bool(scripts.get(name))


def search(pattern: str | re.Pattern[str], text: str, flags: int = 0) -> bool:
    """Shorthand for a boolean regex probe over file content."""
    if isinstance(pattern, re.Pattern):
        return pattern.search(text) is not None
    return re.search(pattern, text, flags) is not None


def calculate_letter_grade(score: int) -> str:
    """Convert numeric score (0-100) to letter grade.

    Grade scale:
    - A : 90-100
    - B : 80-89
    - C : 70-79
    - D : 60-69
    - F : 0-59
    """
    if score >= 90:
        return "A"
    elif score >= 80:
        return "B"
    elif score >= 70:
        return "C"
    elif score >= 60:
        return "D"
    else:
        return "F"


# =============================================================================
# Report Rendering
# =============================================================================


def render_report(report: ValidationReport) -> str:
    """Render the plain-text validation report.

    Sections appear in fixed order and only when non-empty, followed by
    the summary block. Colorization is left to the presentation layer.
    """
    lines = [f"🔍 {REPORT_TITLE}", ""]

    for level, label, marker in REPORT_SECTIONS:
        messages = report.messages(level)
        if not messages:
            continue
        lines.append(f"{label} ({len(messages)}):")
        lines.extend(f"{marker} {message}" for message in messages)
        lines.append("")

    lines.append("Summary:")
    lines.append(f"Total checks: {report.total}")
    lines.append(f"Quality score: {report.score}%")
    lines.append(PASS_BANNER if report.meets_standards else FAIL_BANNER)

    return "\n".join(lines)


# =============================================================================
# Color Formatting (for terminal output)
# =============================================================================

# ANSI color codes
COLORS = {
    "PASSED": "\033[92m",  # Green
    "WARNING": "\033[93m",  # Yellow
    "RECOMMENDATION": "\033[94m",  # Blue
    "FAILED": "\033[91m",  # Red
    "RESET": "\033[0m",
    "BOLD": "\033[1m",
}

_MARKER_LEVELS = {marker: level for level, _label, marker in REPORT_SECTIONS}
_LABEL_LEVELS = {label: level for level, label, _marker in REPORT_SECTIONS}


def colorize(text: str, level: str) -> str:
    """Apply color to text based on level."""
    color = COLORS.get(level, "")
    return f"{color}{text}{COLORS['RESET']}"


def colorize_report(text: str) -> str:
    """Color a rendered report line by line for terminal display."""
    colored: list[str] = []
    for line in text.split("\n"):
        head = line.split(" ", 1)[0]
        label = line.split(" (", 1)[0]
        if head in _MARKER_LEVELS:
            colored.append(colorize(line, _MARKER_LEVELS[head]))
        elif label in _LABEL_LEVELS and line.endswith("):"):
            colored.append(COLORS["BOLD"] + colorize(line, _LABEL_LEVELS[label]))
        elif line == PASS_BANNER:
            colored.append(colorize(line, "PASSED"))
        elif line == FAIL_BANNER:
            colored.append(colorize(line, "FAILED"))
        else:
            colored.append(line)
    return "\n".join(colored)
