#!/usr/bin/env python3
"""
Metalsmith Plugin Validation - Process Runner and Output Parsers

Runs a plugin's own commands (npm test, npm run coverage, ...) with a hard
timeout and extracts structured facts from their heterogeneous output.

The runner never raises: a missing executable, a non-zero exit or a timeout
all come back as a failed ProcessResult carrying the captured output. The
parsers are pure functions with ordered fallback patterns; when nothing
matches they report the value as unavailable instead of failing.
"""

from __future__ import annotations

import os
import re
import shutil
import signal
import subprocess
from dataclasses import dataclass
from pathlib import Path

# Hard ceiling for any external command started by a check
COMMAND_TIMEOUT_SECONDS = 60

# Grace period for collecting pipes after a forced kill
_KILL_GRACE_SECONDS = 5


@dataclass(frozen=True)
class ProcessResult:
    """Outcome of one external command.

    Attributes:
        success: True when the command exited with code 0
        output: Captured stdout
        stderr_output: Captured stderr
        summary: One-line human summary (only set on success)
        error: Failure description (stderr, stdout, or exit code/timeout text)
    """

    success: bool
    output: str = ""
    stderr_output: str = ""
    summary: str = ""
    error: str = ""

    @property
    def combined_output(self) -> str:
        return f"{self.output}\n{self.stderr_output}"


# =============================================================================
# Process Runner
# =============================================================================


def _kill_process_tree(proc: subprocess.Popen[str]) -> None:
    """Forcibly terminate a process and everything it spawned."""
    if os.name == "posix":
        try:
            os.killpg(proc.pid, signal.SIGKILL)
        except (ProcessLookupError, PermissionError):
            proc.kill()
    else:
        proc.kill()


def run_command(
    command: str,
    args: list[str],
    cwd: Path,
    timeout: float = COMMAND_TIMEOUT_SECONDS,
) -> ProcessResult:
    """Run an external command and classify the outcome.

    The child runs in its own process group so a timeout kills npm together
    with the test runner it started.

    Args:
        command: Executable name, resolved through PATH (npm -> npm.cmd on Windows)
        args: Command arguments
        cwd: Working directory (the plugin root)
        timeout: Seconds before the process tree is killed

    Returns:
        ProcessResult; never raises for process-level faults
    """
    executable = shutil.which(command) or command
    try:
        proc = subprocess.Popen(
            [executable, *args],
            cwd=cwd,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            encoding="utf-8",
            errors="replace",
            start_new_session=os.name == "posix",
        )
    except OSError as e:
        return ProcessResult(success=False, error=str(e))

    try:
        stdout, stderr = proc.communicate(timeout=timeout)
    except subprocess.TimeoutExpired:
        _kill_process_tree(proc)
        try:
            stdout, stderr = proc.communicate(timeout=_KILL_GRACE_SECONDS)
        except subprocess.TimeoutExpired:
            stdout, stderr = "", ""
        return ProcessResult(
            success=False,
            output=stdout or "",
            stderr_output=stderr or "",
            error=f"Command timed out after {timeout:g} seconds",
        )

    if proc.returncode == 0:
        return ProcessResult(
            success=True,
            output=stdout,
            stderr_output=stderr,
            summary=summarize_test_output(stdout, stderr),
        )

    return ProcessResult(
        success=False,
        output=stdout,
        stderr_output=stderr,
        error=stderr.strip() or stdout.strip() or f"Command failed with code {proc.returncode}",
    )


# =============================================================================
# Output Parsers
# =============================================================================

_TEST_SUMMARY_PATTERN = re.compile(r"(\d+)\s+passing|(\d+)\s+tests?\s+passed", re.IGNORECASE)

# Tried in order; different coverage tools print the same number differently
COVERAGE_PATTERNS = (
    # c8/istanbul table: "Lines | 91.28 |"
    re.compile(r"Lines\s*\|\s*(\d+(?:\.\d+)?)\s*\|", re.IGNORECASE),
    # text-summary: "Lines : 91.28% ( 120/131 )"
    re.compile(r"Lines\s*:\s*(\d+(?:\.\d+)?)%", re.IGNORECASE),
    # inline: "91.28% lines covered"
    re.compile(r"(\d+(?:\.\d+)?)%\s+lines", re.IGNORECASE),
    # aggregate row, lines is the 4th numeric column: "All files | 90 | 85 | 88 | 91.28 |"
    re.compile(r"All files\s*\|[^|]*\|[^|]*\|[^|]*\|\s*(\d+(?:\.\d+)?)\s*\|", re.IGNORECASE),
)


def summarize_test_output(stdout: str, stderr: str = "") -> str:
    """Build a one-line test summary like "12 tests passed".

    Falls back to "completed successfully" when no count is printed.
    """
    match = _TEST_SUMMARY_PATTERN.search(stdout) or _TEST_SUMMARY_PATTERN.search(stderr)
    if match:
        return f"{match.group(1) or match.group(2)} tests passed"
    return "completed successfully"


def extract_coverage_percentage(text: str) -> float | None:
    """Extract the line-coverage percentage from coverage tool output.

    Returns:
        The first matching percentage, or None when no pattern matches
    """
    for pattern in COVERAGE_PATTERNS:
        match = pattern.search(text)
        if match:
            return float(match.group(1))
    return None


def format_percentage(value: float) -> str:
    """Render 91.28 as "91.28" and 80.0 as "80"."""
    return f"{value:g}"


def extract_test_stats(text: str) -> dict[str, int]:
    """Extract passing/failing/total counts from test runner output."""
    stats = {"passing": 0, "failing": 0, "total": 0}

    passing = re.search(r"(\d+) passing", text)
    failing = re.search(r"(\d+) failing", text)
    total = re.search(r"(\d+) tests?\b", text)

    if passing:
        stats["passing"] = int(passing.group(1))
    if failing:
        stats["failing"] = int(failing.group(1))
    if total:
        stats["total"] = int(total.group(1))

    if stats["total"] == 0 and (stats["passing"] or stats["failing"]):
        stats["total"] = stats["passing"] + stats["failing"]

    # Only a total was printed: every test passed
    if stats["total"] and not stats["passing"] and not stats["failing"]:
        stats["passing"] = stats["total"]

    return stats
