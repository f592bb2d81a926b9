#!/usr/bin/env python3
"""
Metalsmith Plugin Validation - JSDoc Check

Text heuristics over src/index.js and src/utils/ for the JSDoc annotations
that give plugin users IDE support:

1. @typedef for the Options type
2. JSDoc block above the default export
3. @returns {import('metalsmith').Plugin}
4. @param tags
5. Object.defineProperty(fn, 'name', ...) for readable stack traces
6. Comments describing the two-phase (factory -> plugin) pattern
7. At least 80% of utility modules carry a /** block
"""

from __future__ import annotations

import re

from mpv_validation_common import CheckContext, ValidationReport

INDEX_TEMPLATE = "templates/plugin/index.js.template"

# Share of src/utils files that must carry a JSDoc block
UTILS_DOC_RATIO = 0.8

_TYPEDEF_OPTIONS = re.compile(r"@typedef\s+\{[^}]*\}\s+Options", re.IGNORECASE)
_DEFAULT_EXPORT = re.compile(r"export\s+default\s+function\s+\w+")
_DOCUMENTED_DEFAULT_EXPORT = re.compile(r"/\*\*[\s\S]*?\*/\s*export\s+default\s+function")
_PLUGIN_RETURN_TYPE = re.compile(r"""@returns?\s+\{[^}]*import\(['"]metalsmith['"]\)\.Plugin\}""", re.IGNORECASE)
_PARAM_TAG = re.compile(r"@param\s+\{[^}]+\}", re.IGNORECASE)
_DEFINE_NAME = re.compile(r"""Object\.defineProperty\([^,]+,\s*['"]name['"],""")
_TWO_PHASE_COMMENT = re.compile(r"two-phase|factory.*return.*plugin|return.*actual.*plugin", re.IGNORECASE)


def _check_utils(ctx: CheckContext, report: ValidationReport) -> None:
    util_files = ctx.glob("src/utils/**/*.js")
    if not util_files:
        return

    documented = 0
    for util_file in util_files:
        try:
            if "/**" in ctx.read_text(util_file):
                documented += 1
        except OSError:
            continue

    if documented >= len(util_files) * UTILS_DOC_RATIO:
        report.passed("Utility files have good JSDoc coverage")
    else:
        report.recommend("Add JSDoc documentation to utility functions for better maintainability")


def check_jsdoc(ctx: CheckContext, report: ValidationReport) -> None:
    try:
        content = ctx.read_main_file()
    except OSError as e:
        report.warning(f"Could not check JSDoc documentation: {e}")
        return

    if _TYPEDEF_OPTIONS.search(content):
        report.passed("JSDoc @typedef for Options found")
    else:
        report.recommend(f"Consider adding @typedef for Options type to improve IDE support. See template: {INDEX_TEMPLATE}")

    exports = _DEFAULT_EXPORT.findall(content)
    if exports:
        if len(_DOCUMENTED_DEFAULT_EXPORT.findall(content)) >= len(exports):
            report.passed("Main export function has JSDoc documentation")
        else:
            report.recommend("Add JSDoc documentation to main export function with @param and @returns")

    if _PLUGIN_RETURN_TYPE.search(content):
        report.passed("JSDoc return type annotation includes Metalsmith.Plugin type")
    else:
        report.recommend("Use @returns {import('metalsmith').Plugin} for better IDE support")

    if _PARAM_TAG.search(content):
        report.passed("JSDoc parameter documentation found")
    else:
        report.recommend("Add @param documentation for function parameters")

    if _DEFINE_NAME.search(content):
        report.passed("Function name set with Object.defineProperty for debugging")
    else:
        report.recommend("Use Object.defineProperty to set function name for better debugging. See template pattern")

    if _TWO_PHASE_COMMENT.search(content):
        report.passed("Two-phase plugin pattern documented")
    else:
        report.recommend("Document the two-phase plugin pattern in comments for clarity")

    _check_utils(ctx, report)
