#!/usr/bin/env python3
"""
Metalsmith Plugin Batch Audit

Discovers every Metalsmith plugin directly under a directory, audits them
concurrently and summarizes how many are healthy.

Usage:
    uv run python scripts/batch_audit.py ~/projects/metalsmith-plugins
    uv run python scripts/batch_audit.py --jobs 8 --output markdown

A directory counts as a plugin when its package.json lists the
"metalsmith" or "metalsmith-plugin" keyword, or its name starts with
"metalsmith-". A plugin whose audit raises is reported as FAILED.

Exit codes:
    0 - Every plugin is EXCELLENT, GOOD or FAIR
    1 - At least one plugin needs attention (or failed)
    2 - Search path missing or not a directory
"""

from __future__ import annotations

import argparse
import json
import os
import sys
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from audit_plugin import OUTPUT_FORMATS, AuditResult, OutputFormat, audit_plugin, list_issues, needs_attention
from mpv_process import format_percentage
from mpv_validation_common import EXIT_FAILED, EXIT_INACCESSIBLE, EXIT_OK

PLUGIN_KEYWORDS = ("metalsmith", "metalsmith-plugin")
PLUGIN_NAME_PREFIX = "metalsmith-"

# Each audit spawns npm processes; keep the pool modest by default
DEFAULT_JOBS = min(4, os.cpu_count() or 1)

# (health, summary key, label, icon), in display order
HEALTH_DISPLAY = (
    ("EXCELLENT", "excellent", "Excellent", "✅"),
    ("GOOD", "good", "Good", "✅"),
    ("FAIR", "fair", "Fair", "⚠️"),
    ("NEEDS IMPROVEMENT", "needsImprovement", "Needs Improvement", "⚠️"),
    ("POOR", "poor", "Poor", "❌"),
    ("FAILED", "failed", "Failed", "💥"),
)

_ICONS = {health: icon for health, _key, _label, icon in HEALTH_DISPLAY}


@dataclass
class BatchEntry:
    """Audit outcome for one discovered plugin."""

    plugin_name: str
    path: str
    audit: AuditResult | None = None
    error: str | None = None

    @property
    def health(self) -> str:
        if self.audit is None:
            return "FAILED"
        return self.audit.health

    def to_dict(self) -> dict[str, Any]:
        if self.audit is None:
            return {"pluginName": self.plugin_name, "path": self.path, "overallHealth": "FAILED", "error": self.error}
        return {
            "pluginName": self.plugin_name,
            "path": self.path,
            "overallHealth": self.audit.health,
            "validationScore": self.audit.validation_score,
            "testsPassed": self.audit.tests_passed,
            "coverage": self.audit.coverage_percentage,
            "linting": self.audit.linting.passed,
            "formatting": self.audit.formatting.passed,
        }


# =============================================================================
# Discovery
# =============================================================================


def is_plugin_directory(path: Path) -> bool:
    """Whether path holds a package.json that identifies a Metalsmith plugin."""
    try:
        package_json = json.loads((path / "package.json").read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError):
        return False
    if not isinstance(package_json, dict):
        return False

    keywords = package_json.get("keywords")
    if isinstance(keywords, list) and any(keyword in keywords for keyword in PLUGIN_KEYWORDS):
        return True

    name = package_json.get("name")
    return isinstance(name, str) and name.startswith(PLUGIN_NAME_PREFIX)


def find_plugin_directories(search_path: Path) -> list[Path]:
    """Immediate child directories that are Metalsmith plugins, sorted."""
    return sorted(child for child in search_path.iterdir() if child.is_dir() and is_plugin_directory(child))


# =============================================================================
# Batch Execution
# =============================================================================


def _audit_entry(plugin_path: Path, fix: bool) -> BatchEntry:
    entry = BatchEntry(plugin_name=plugin_path.name, path=str(plugin_path))
    try:
        entry.audit = audit_plugin(plugin_path, fix=fix, quiet=True)
    except Exception as e:
        entry.error = str(e) or type(e).__name__
    return entry


def batch_audit(search_path: str | Path, fix: bool = False, jobs: int = DEFAULT_JOBS) -> list[BatchEntry]:
    """Audit every plugin under search_path concurrently.

    Returns:
        One BatchEntry per plugin, sorted by plugin name

    Raises:
        FileNotFoundError: search_path does not exist
        NotADirectoryError: search_path is not a directory
    """
    root = Path(search_path).resolve()
    plugin_dirs = find_plugin_directories(root)
    print(f"Found {len(plugin_dirs)} plugin directories in {root}", file=sys.stderr)

    entries: list[BatchEntry] = []
    if not plugin_dirs:
        return entries

    max_workers = min(max(1, jobs), len(plugin_dirs))
    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        future_map = {executor.submit(_audit_entry, plugin_dir, fix): plugin_dir for plugin_dir in plugin_dirs}
        for future in as_completed(future_map):
            entry = future.result()
            entries.append(entry)
            detail = f" - {entry.error}" if entry.error else ""
            print(f"{_ICONS[entry.health]} {entry.plugin_name}: {entry.health}{detail}", file=sys.stderr)

    return sorted(entries, key=lambda entry: entry.plugin_name)


def summarize(entries: list[BatchEntry]) -> dict[str, int]:
    summary = {key: 0 for _health, key, _label, _icon in HEALTH_DISPLAY}
    summary["total"] = len(entries)
    keys = {health: key for health, key, _label, _icon in HEALTH_DISPLAY}
    for entry in entries:
        summary[keys[entry.health]] += 1
    return summary


def count_needing_attention(summary: dict[str, int]) -> int:
    return summary["fair"] + summary["needsImprovement"] + summary["poor"] + summary["failed"]


# =============================================================================
# Output
# =============================================================================


def render_console(entries: list[BatchEntry], summary: dict[str, int]) -> str:
    lines = ["📊 Batch Audit Summary", "", f"Total plugins audited: {summary['total']}"]
    for _health, key, label, icon in HEALTH_DISPLAY:
        if summary[key]:
            lines.append(f"  {icon} {label}: {summary[key]}")

    passed = summary["excellent"] + summary["good"]
    lines.append("")
    lines.append(f"Summary: {passed} plugins passed, {count_needing_attention(summary)} need attention")

    problems = [entry for entry in entries if entry.error or needs_attention(entry.health)]
    if problems:
        lines.append("")
        lines.append("⚠ Plugins needing attention:")
        for entry in problems:
            if entry.audit is None:
                lines.append(f"  💥 {entry.plugin_name}: Failed - {entry.error}")
            else:
                lines.append(f"  {_ICONS[entry.health]} {entry.plugin_name}: {', '.join(list_issues(entry.audit))}")
        lines.append("")
        lines.append("💡 Run individual audits with --fix to resolve some issues")

    return "\n".join(lines)


def render_markdown(entries: list[BatchEntry], summary: dict[str, int]) -> str:
    lines = [
        "# Batch Audit Report",
        "",
        f"**Date**: {datetime.now(timezone.utc).isoformat()}",
        f"**Total Plugins**: {summary['total']}",
        "",
        "## Summary",
        "",
        "| Status | Count |",
        "|--------|-------|",
    ]
    for _health, key, label, icon in HEALTH_DISPLAY:
        if summary[key]:
            lines.append(f"| {icon} {label} | {summary[key]} |")

    lines.extend(["", "## Plugin Details", "", "| Plugin | Health | Validation | Tests | Coverage |"])
    lines.append("|--------|--------|------------|-------|----------|")
    for entry in entries:
        if entry.audit is None:
            lines.append(f"| {entry.plugin_name} | 💥 Failed | - | - | - |")
            continue
        audit = entry.audit
        coverage = "N/A" if audit.coverage_percentage is None else f"{format_percentage(audit.coverage_percentage)}%"
        tests = "✅" if audit.tests_passed else "❌"
        lines.append(
            f"| {entry.plugin_name} | {_ICONS[entry.health]} {entry.health} | "
            f"{audit.validation_score}% | {tests} | {coverage} |"
        )

    return "\n".join(lines)


def render(entries: list[BatchEntry], output: OutputFormat) -> str:
    summary = summarize(entries)
    if output == "json":
        return json.dumps(
            {"summary": summary, "results": [entry.to_dict() for entry in entries]},
            indent=2,
            ensure_ascii=False,
        )
    if output == "markdown":
        return render_markdown(entries, summary)
    return render_console(entries, summary)


def main() -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Audit every Metalsmith plugin in a directory")
    parser.add_argument("path", nargs="?", default=".", help="Directory containing plugins (default: current directory)")
    parser.add_argument("--fix", action="store_true", help="Apply automatic lint/format fixes during each audit")
    parser.add_argument("--output", choices=OUTPUT_FORMATS, default="console", help="Report format")
    parser.add_argument("--jobs", "-j", type=int, default=DEFAULT_JOBS, help="Plugins audited in parallel")
    args = parser.parse_args()

    try:
        entries = batch_audit(args.path, fix=args.fix, jobs=args.jobs)
    except OSError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_INACCESSIBLE

    if not entries:
        print("No plugin directories found")
        return EXIT_OK

    print(render(entries, args.output))
    return EXIT_FAILED if any(needs_attention(entry.health) or entry.error for entry in entries) else EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
