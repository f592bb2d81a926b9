#!/usr/bin/env python3
"""
Metalsmith Plugin Validation - Security Heuristics

Build-time security checks for a Metalsmith plugin. Plugins run inside the
site build with full filesystem access, so the concerns are code execution,
leaked secrets in build logs and crashes on malformed input rather than
request handling.

Security Checks Implemented:
1. Dynamic code execution (eval, Function constructor, vm contexts)
2. Hardcoded secrets (passwords, API keys, long tokens)
3. ReDoS-shaped regular expressions (nested quantifiers)
4. Shell execution without visible input sanitization
5. Error handling around file transforms and async work
6. Dependency hygiene (audit script, pinned versions)
7. Environment variables written to logs
8. file.contents validation before processing
"""

from __future__ import annotations

import re
from collections.abc import Mapping

from mpv_validation_common import CheckContext, ValidationReport, has_script, search

# =============================================================================
# Detection Patterns
# =============================================================================

# Dynamic code execution - eval-like constructs
CODE_EXECUTION_PATTERNS = [
    (re.compile(r"eval\s*\("), "eval() usage detected - avoid dynamic code execution in build tools"),
    (re.compile(r"Function\s*\("), "Function constructor usage - potential code injection risk"),
    (re.compile(r"vm\.runInNewContext|vm\.runInThisContext"), "VM context execution detected - use with caution"),
]

# Credentials assigned to string literals
SECRET_PATTERNS = [
    (
        re.compile(r"""password\s*[:=]\s*['"][^'"]+['"]|secret\s*[:=]\s*['"][^'"]+['"]"""),
        "Hardcoded secrets detected",
    ),
    (re.compile(r"""api_?key\s*[:=]\s*['"][^'"]+['"]"""), "Hardcoded API keys detected"),
    (re.compile(r"""token\s*[:=]\s*['"][^'"]{20,}['"]"""), "Hardcoded tokens detected"),
]

# A group containing a quantifier, itself quantified: (a+)+, (.*)*, (\w+\s?){2,}
REDOS_PATTERN = re.compile(r"\((?:[^()\\\s]|\\.)*[+*](?:[^()\\\s]|\\.)*\)(?:[+*]|\{\d)")

SHELL_EXECUTION_PATTERN = re.compile(r"exec\s*\(|spawn\s*\(|execSync|spawnSync")
SANITIZATION_PATTERN = re.compile(r"validate|sanitize|escape|shell-escape|shell-quote")

ERROR_HANDLING_PATTERN = re.compile(r"try\s*\{[\s\S]*catch|\.catch\s*\(")
ASYNC_PATTERN = re.compile(r"await|Promise|async")
FILE_OPERATION_PATTERN = re.compile(r"files\[.*?\]\.contents|Buffer|transform")

ENV_LOGGING_PATTERN = re.compile(r"console\.log.*process\.env|debug.*process\.env|log.*process\.env")

CONTENT_VALIDATION_PATTERN = re.compile(r"contents.*length|Buffer.*isBuffer|typeof.*contents")

PINNED_VERSION_PATTERN = re.compile(r"^\d+\.\d+\.\d+$")


# =============================================================================
# Checks
# =============================================================================


def _check_dependencies(ctx: CheckContext, report: ValidationReport) -> None:
    try:
        package_json = ctx.load_package_json()
    except (OSError, ValueError):
        # Missing or malformed package.json is reported by the package-json check
        return

    if has_script(package_json, "audit") or has_script(package_json, "audit:fix"):
        report.passed("Security audit script defined for dependency monitoring")
    else:
        report.recommend('Add "audit": "npm audit" script for dependency security monitoring')

    versions: list[object] = []
    for key in ("dependencies", "devDependencies"):
        section = package_json.get(key)
        if isinstance(section, Mapping):
            versions.extend(section.values())

    if any(isinstance(version, str) and PINNED_VERSION_PATTERN.match(version) for version in versions):
        report.passed("Some dependencies use pinned versions")
    else:
        report.recommend("Consider pinning critical dependency versions for build reproducibility")


def check_security(ctx: CheckContext, report: ValidationReport) -> None:
    """Run build-time security heuristics over src/index.js and package.json."""
    try:
        content = ctx.read_main_file()
    except OSError as e:
        report.warning(f"Could not check security patterns: {e}")
        return

    for pattern, message in CODE_EXECUTION_PATTERNS:
        if pattern.search(content):
            report.warning(f"Security concern: {message}")

    if search(SHELL_EXECUTION_PATTERN, content):
        if search(SANITIZATION_PATTERN, content):
            report.passed("Shell execution with input validation detected")
        else:
            report.warning("Shell execution without input validation - sanitize user options before shell commands")

    for pattern, message in SECRET_PATTERNS:
        if pattern.search(content):
            report.warning(f"Security concern: {message} - use environment variables instead")

    if search(REDOS_PATTERN, content):
        report.warning(
            "Security concern: Regular expression with nested quantifiers detected - "
            "vulnerable to catastrophic backtracking (ReDoS)"
        )

    has_error_handling = search(ERROR_HANDLING_PATTERN, content)

    if search(FILE_OPERATION_PATTERN, content):
        if has_error_handling:
            report.passed("Error handling detected for file operations")
        else:
            report.recommend("Add error handling for file transformations to prevent build failures")

    if search(ASYNC_PATTERN, content):
        if has_error_handling:
            report.passed("Error handling detected for async operations")
        else:
            report.recommend("Add error handling for async operations to prevent build failures")

    _check_dependencies(ctx, report)

    if search(ENV_LOGGING_PATTERN, content):
        report.warning("Environment variables in logging - avoid exposing secrets in build logs")

    if ".contents" in content:
        if search(CONTENT_VALIDATION_PATTERN, content):
            report.passed("File content validation detected")
        else:
            report.recommend("Validate file.contents before processing to prevent crashes on malformed files")
