#!/usr/bin/env python3
"""
Metalsmith Plugin Validation - Performance Heuristics

Regex probes over src/index.js for patterns that matter when a plugin
processes thousands of files in one build. Loops are approximated as
"loop header, then the first brace block", which is enough to spot
loop-invariant work without parsing JavaScript.
"""

from __future__ import annotations

import re

from mpv_validation_common import CheckContext, ValidationReport, search

# Body of a for/while/forEach up to the first closing brace
_LOOP_BODY = r"(?:for|while|forEach)\s*\([^}]*\{[^}]*"

_FILES_ITERATION = (
    re.compile(r"Object\.keys\(files\)"),
    re.compile(r"for\s*\(\s*\w+\s+in\s+files\s*\)"),
    re.compile(r"files\[.*?\]"),
)
_REGEXP_IN_LOOP = re.compile(_LOOP_BODY + r"new\s+RegExp", re.DOTALL)
_ANY_REGEXP = re.compile(r"new\s+RegExp|/[^/\n]+/[gimuy]*")
_LOOKUP_IN_LOOP = re.compile(_LOOP_BODY + r"\.(?:includes|indexOf)\(", re.DOTALL)
_SET_OR_MAP = re.compile(r"new\s+(?:Set|Map)\s*\(")
_PROMISE_ALL = re.compile(r"Promise\.all(?:Settled)?\s*\(")
_CHUNKING = re.compile(r"\.slice\(|chunk|batch", re.IGNORECASE)
_AWAIT_IN_LOOP = re.compile(r"for\s*\([^)]*\)\s*\{[^}]*\bawait\b", re.DOTALL)
_BUFFER_OPERATIONS = re.compile(r"\.contents|Buffer\.from|\.toString\(")
_STRING_CONCATENATION = re.compile(r"""\+\s*['"`]|['"`]\s*\+""")
_FILE_FILTERING = re.compile(r"Object\.keys\(files\)\.filter|\.filter\(")
_FILE_PROCESSING = re.compile(r"files\[.*?\]\.contents|transform|process")
_DESTRUCTURING = re.compile(r"const\s*\{[^}]*contents[^}]*\}\s*=|const\s*\{[^}]*stats[^}]*\}\s*=")
_ASYNC_OPERATIONS = re.compile(r"await|Promise|async")
_DONE_CALL = re.compile(r"done\s*\(\)")
_FILES_CLONING = re.compile(r"JSON\.parse\(JSON\.stringify|Object\.assign\(\{\}|\.\.\.files|lodash\.clone")
_METADATA_ACCESS = re.compile(r"metalsmith\.metadata\(\)|files\[.*?\]\.\w+")


def _check_lookups(content: str, report: ValidationReport) -> None:
    uses_set = search(_SET_OR_MAP, content)
    if search(_LOOKUP_IN_LOOP, content) and not uses_set:
        report.recommend("Use a Set or Map for repeated lookups inside loops instead of Array.includes/indexOf")
    elif uses_set:
        report.passed("Set/Map used for constant-time lookups")


def _check_batching(content: str, report: ValidationReport) -> None:
    parallel = search(_PROMISE_ALL, content)
    if parallel and search(_CHUNKING, content):
        report.passed("Batched parallel processing with Promise.all detected")
    elif parallel:
        report.passed("Parallel processing with Promise.all detected")
    elif search(_AWAIT_IN_LOOP, content):
        report.recommend(
            "Sequential await inside a loop detected - consider Promise.all over chunked batches for large sites"
        )


def check_performance(ctx: CheckContext, report: ValidationReport) -> None:
    try:
        content = ctx.read_main_file()
    except OSError as e:
        report.warning(f"Could not check performance patterns: {e}")
        return

    if any(search(pattern, content) for pattern in _FILES_ITERATION):
        report.passed("Proper files object iteration detected")
    elif search(r"files|metalsmith", content):
        report.recommend("Use Object.keys(files) or for...in to iterate over files object")

    if search(_REGEXP_IN_LOOP, content):
        report.recommend("Pre-compile RegExp patterns outside loops when processing file contents")
    elif search(_ANY_REGEXP, content):
        report.passed("RegExp patterns appear optimally placed")

    _check_lookups(content, report)
    _check_batching(content, report)

    has_buffer_operations = search(_BUFFER_OPERATIONS, content)
    if has_buffer_operations and search(_STRING_CONCATENATION, content):
        report.recommend("Use Buffer methods instead of string concatenation for file.contents manipulation")
    elif has_buffer_operations:
        report.passed("Efficient Buffer handling for file.contents detected")

    if search(_FILE_PROCESSING, content):
        if search(_FILE_FILTERING, content):
            report.passed("File filtering before processing detected")
        else:
            report.recommend("Consider filtering files before expensive content transformations")

    if search(_DESTRUCTURING, content):
        report.passed("Efficient destructuring of file properties detected")
    elif has_buffer_operations:
        report.recommend("Consider destructuring file properties: const { contents, stats } = file")

    has_async = search(_ASYNC_OPERATIONS, content)
    has_done = search(_DONE_CALL, content)
    if has_async and has_done:
        report.passed("Proper async plugin pattern with done() callback")
    elif has_async:
        report.warning("Async operations detected but no done() callback - may cause build issues")
    elif not has_done:
        report.passed("Synchronous plugin pattern (no done() needed)")

    if search(_FILES_CLONING, content):
        report.recommend("Avoid cloning the entire files object - modify files in place when possible")

    if search(_METADATA_ACCESS, content):
        report.passed("Proper metadata access patterns detected")
