#!/usr/bin/env python3
"""
Metalsmith Plugin Validation - Plugin Pattern Check

Checks src/index.js for the shape every Metalsmith plugin shares:

    export default function myPlugin(options) {
      options = { ...defaults, ...options }
      return function myPlugin(files, metalsmith, done) { ... }
    }

1. Two-phase factory (options in, plugin function out)
2. (files, metalsmith, done) signature
3. Interaction with the files object and file metadata
4. Buffer validation of file.contents
5. Global metadata usage and file filtering
6. Layout/collection/draft conventions
7. Options defaults, function name, chainability
8. Error propagation via done(err) in async plugins
"""

from __future__ import annotations

import re

from mpv_validation_common import CheckContext, ValidationReport, search

_FACTORY = re.compile(r"export\s+default\s+function\s+\w+\s*\([^)]*\)\s*\{.*return\s+function", re.DOTALL)
_DIRECT_EXPORT = re.compile(r"export\s+default\s+function\s+\w+\s*\(\s*files\s*,\s*metalsmith\s*(?:,\s*done\s*)?\)")
_PLUGIN_SIGNATURE = re.compile(r"function\s*\w*\s*\(\s*files\s*,\s*metalsmith\s*(?:,\s*done\s*)?\)")
_WRITES_FILES = re.compile(r"files\[.*?\]\s*=|delete\s+files\[|Object\.assign\(files\[")
_READS_FILES = re.compile(r"files\[.*?\](?!\s*=)|Object\.keys\(files\)")
_PRESERVES_METADATA = re.compile(r"Object\.assign\(.*file.*,|\.\.\.file|file\.\w+\s*=")
_ACCESSES_METADATA = re.compile(r"file\.\w+(?!contents)")
_PROCESSES_CONTENTS = re.compile(r"\.contents|Buffer\.from|\.toString\(")
_BUFFER_CHECK = re.compile(r"Buffer\.isBuffer|instanceof\s+Buffer")
_GLOBAL_METADATA = re.compile(r"metalsmith\.metadata\(\)")
_FILE_FILTERING = re.compile(r"Object\.keys\(files\)\.filter|\.filter\(")
_FILE_PATTERN = re.compile(r"\.\w+$|endsWith\(|extname\(", re.MULTILINE)
_OPTIONS_DEFAULTS = re.compile(r"options\s*=\s*\{[\s\S]*\}|Object\.assign\(.*options|\.\.\.options")
_NAME_PROPERTY = re.compile(r"""Object\.defineProperty\([^,]+,\s*['"]name['"]""")
_RETURNS_METALSMITH = re.compile(r"return\s+metalsmith")
_ASYNC_OPERATIONS = re.compile(r"await|Promise|async")
_DONE_CALL = re.compile(r"done\s*\(")
_ERROR_PROPAGATION = re.compile(r"done\s*\(\s*err\s*\)|\.catch\s*\(\s*done\s*\)")

CONVENTIONS = ("layout", "collection", "draft")


def check_metalsmith_patterns(ctx: CheckContext, report: ValidationReport) -> None:
    """Check src/index.js against the canonical Metalsmith plugin shape.

    Args:
        ctx: Check context (plugin path, config, functional flag)
        report: ValidationReport to add results to
    """
    try:
        content = ctx.read_main_file()
    except OSError as e:
        report.warning(f"Could not check Metalsmith patterns: {e}")
        return

    has_factory = search(_FACTORY, content)
    has_direct_export = search(_DIRECT_EXPORT, content)
    if has_factory:
        report.passed("Proper two-phase plugin factory pattern detected")
    elif has_direct_export:
        report.recommend(
            "Consider using factory pattern: export default function(options) "
            "{ return function(files, metalsmith, done) {...} }"
        )

    if search(_PLUGIN_SIGNATURE, content):
        report.passed("Correct Metalsmith plugin function signature detected")
    else:
        report.warning("Plugin function should accept (files, metalsmith, done) parameters")

    if search(_WRITES_FILES, content) or search(_READS_FILES, content):
        report.passed("Plugin properly interacts with files object")
    else:
        report.warning("Plugin should interact with the files object to transform content")

    if search(_PRESERVES_METADATA, content) or search(_ACCESSES_METADATA, content):
        report.passed("Plugin works with file metadata")
    else:
        report.recommend("Consider preserving or enhancing file metadata for better plugin integration")

    processes_contents = search(_PROCESSES_CONTENTS, content)
    if processes_contents:
        if search(_BUFFER_CHECK, content):
            report.passed("Proper Buffer validation for file.contents")
        else:
            report.recommend("Validate file.contents is a Buffer before processing")

    if search(_GLOBAL_METADATA, content):
        report.passed("Plugin accesses global metadata")
    else:
        report.recommend("Consider using metalsmith.metadata() for site-wide configuration")

    has_filtering = search(_FILE_FILTERING, content)
    if has_filtering and search(_FILE_PATTERN, content):
        report.passed("Plugin filters files by type/pattern")
    elif not has_filtering and processes_contents:
        report.recommend("Consider filtering files by extension/pattern before processing")

    convention_count = sum(1 for convention in CONVENTIONS if convention in content)
    if convention_count:
        report.passed(f"Plugin respects {convention_count} common Metalsmith convention(s)")

    if search(_OPTIONS_DEFAULTS, content):
        report.passed("Plugin handles options properly")
    else:
        report.recommend("Add default options handling: options = { ...defaults, ...options }")

    if search(_NAME_PROPERTY, content):
        report.passed("Plugin function name set for debugging")
    else:
        report.recommend(
            'Set function name for better debugging: Object.defineProperty(plugin, "name", { value: "pluginName" })'
        )

    if not (has_factory or has_direct_export) and not search(_RETURNS_METALSMITH, content):
        report.recommend("Non-plugin functions should return metalsmith instance for chainability")

    if search(_ASYNC_OPERATIONS, content) and search(_DONE_CALL, content):
        if search(_ERROR_PROPAGATION, content):
            report.passed("Proper error propagation in async plugin")
        else:
            report.warning("Async plugin should propagate errors via done(err)")
