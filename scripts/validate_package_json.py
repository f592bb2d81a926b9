#!/usr/bin/env python3
"""
Metalsmith Plugin Validation - Package Metadata Check

Validates package.json against Metalsmith plugin conventions:

1. Required fields: name, version, description, license
2. Entry point: exports or main
3. Naming convention prefix (configurable, "" disables it)
4. Recommended fields: repository, keywords, engines, files
5. ES module signaling: "type": "module" or exports
6. Required and recommended scripts
7. release-it dependency
8. Release automation consistent with the project's CLAUDE.md policy

Release automation policy
-------------------------
Two mutually exclusive ways exist to hand a GitHub token to release-it:

- inline:  "release:patch": "GH_TOKEN=$(gh auth token) npx release-it patch --ci"
- wrapper: "release:patch": "./scripts/release.sh patch --ci"

When CLAUDE.md already documents one of them, advice names only that one.
"""

from __future__ import annotations

import json
import re
from collections.abc import Mapping
from typing import Any, Literal

from mpv_config import rule_list, rule_section
from mpv_validation_common import CheckContext, ValidationReport

ReleaseStrategy = Literal["inline", "wrapper"]

REQUIRED_FIELDS = ("name", "version", "description", "license")
RECOMMENDED_FIELDS = ("repository", "keywords", "engines", "files")

POLICY_DOCUMENT = "CLAUDE.md"
RELEASE_WRAPPER = "scripts/release.sh"

SCRIPT_EXAMPLES = {
    "lint": '"lint": "eslint src test"',
    "format": '"format": "prettier --write src test"',
    "test:coverage": '"test:coverage": "c8 npm test"',
}

_TOKEN_RETRIEVAL = re.compile(r"\$\(\s*gh\s+auth\s+token\s*\)|\b(?:GH_TOKEN|GITHUB_TOKEN)=")
_WRAPPER_REFERENCE = re.compile(r"(?:\./)?scripts/release\.sh")
# An npm script in the policy document that fetches the token inline
_POLICY_INLINE = re.compile(r"GH_TOKEN=\$\(\s*gh\s+auth\s+token\s*\)\s+(?:npx\s+)?release-it")

INLINE_ADVICE = 'inline token retrieval in the npm script ("GH_TOKEN=$(gh auth token) npx release-it patch --ci")'
WRAPPER_ADVICE = f'the wrapper script ./{RELEASE_WRAPPER} ("export GH_TOKEN=$(gh auth token)" then "npx release-it $@")'


# =============================================================================
# Release Policy Resolution
# =============================================================================


def classify_release_policy(policy_text: str) -> ReleaseStrategy | None:
    """Classify which release strategy a policy document endorses.

    Returns:
        "inline" or "wrapper" when exactly one is documented, else None
    """
    inline = bool(_POLICY_INLINE.search(policy_text))
    wrapper = bool(_WRAPPER_REFERENCE.search(policy_text))
    if inline and not wrapper:
        return "inline"
    if wrapper and not inline:
        return "wrapper"
    return None


def classify_release_script(command: str) -> Literal["inline", "wrapper", "plain"]:
    if _WRAPPER_REFERENCE.search(command):
        return "wrapper"
    if _TOKEN_RETRIEVAL.search(command):
        return "inline"
    return "plain"


def release_scripts(package_json: Mapping[str, Any]) -> dict[str, str]:
    scripts = package_json.get("scripts")
    if not isinstance(scripts, Mapping):
        return {}
    return {
        name: command
        for name, command in scripts.items()
        if (name == "release" or name.startswith("release:")) and isinstance(command, str)
    }


def _advice_for(policy: ReleaseStrategy | None) -> str:
    if policy == "inline":
        return f"use {INLINE_ADVICE} as documented in {POLICY_DOCUMENT}"
    if policy == "wrapper":
        return f"use {WRAPPER_ADVICE} as documented in {POLICY_DOCUMENT}"
    return f"use either {INLINE_ADVICE} or {WRAPPER_ADVICE}"


def check_release_automation(ctx: CheckContext, package_json: Mapping[str, Any], report: ValidationReport) -> None:
    """Cross-check release scripts against the strategy CLAUDE.md endorses."""
    scripts = release_scripts(package_json)
    if not scripts:
        return

    try:
        policy = classify_release_policy(ctx.read_text(POLICY_DOCUMENT))
    except FileNotFoundError:
        policy = None

    kinds = {classify_release_script(command) for command in scripts.values()}

    if "inline" in kinds:
        if policy == "inline":
            report.passed(f"Release scripts retrieve the GitHub token inline as documented in {POLICY_DOCUMENT}")
        elif policy == "wrapper":
            report.recommend(
                f"Release scripts embed token retrieval inline - move it into ./{RELEASE_WRAPPER} "
                f"as documented in {POLICY_DOCUMENT}"
            )
        else:
            report.recommend(f"Release scripts embed token retrieval - keep one consistent strategy: {_advice_for(None)}")

    if "wrapper" in kinds:
        if policy == "inline":
            report.recommend(
                f"Release scripts delegate to ./{RELEASE_WRAPPER} - {POLICY_DOCUMENT} documents "
                f"inline token retrieval instead: {INLINE_ADVICE}"
            )
        else:
            report.passed(f"Release scripts use the ./{RELEASE_WRAPPER} wrapper")
        if not ctx.exists(RELEASE_WRAPPER):
            report.warning(f"Release scripts reference ./{RELEASE_WRAPPER} but the file does not exist")

    if kinds == {"plain"}:
        report.recommend(f"Release scripts do not provide a GitHub token to release-it - {_advice_for(policy)}")


# =============================================================================
# package.json Check
# =============================================================================


def _check_scripts(ctx: CheckContext, package_json: Mapping[str, Any], report: ValidationReport) -> None:
    scripts = package_json.get("scripts")
    scripts = scripts if isinstance(scripts, Mapping) else {}

    for script in rule_list(ctx.config, "packageJson", "requiredScripts"):
        if scripts.get(script):
            report.passed(f'Required script "{script}" defined')
        else:
            report.failed(f"Missing required script: {script}")

    for script in rule_list(ctx.config, "packageJson", "recommendedScripts"):
        if scripts.get(script):
            report.passed(f'Script "{script}" defined')
        elif script in SCRIPT_EXAMPLES:
            report.recommend(f"Consider adding script: {script}. Example: {SCRIPT_EXAMPLES[script]}")
        elif script.startswith("release:"):
            release_type = script.split(":", 1)[1]
            report.recommend(f'Consider adding script: {script}. Example: "{script}": "release-it {release_type}"')
        else:
            report.recommend(f"Consider adding script: {script}")


def check_package_json(ctx: CheckContext, report: ValidationReport) -> None:
    """Validate package.json metadata, scripts and release automation.

    Args:
        ctx: Check context (plugin path, config, functional flag)
        report: ValidationReport to add results to
    """
    try:
        package_json = ctx.load_package_json()
    except FileNotFoundError:
        report.failed("package.json not found")
        return
    except (json.JSONDecodeError, ValueError) as e:
        report.failed(f"Invalid package.json: {e}")
        return

    for fld in REQUIRED_FIELDS:
        if package_json.get(fld):
            report.passed(f"package.json has {fld}")
        else:
            report.failed(f"package.json missing {fld}")

    if package_json.get("exports"):
        report.passed("package.json has exports field (modern ES modules)")
    elif package_json.get("main"):
        report.passed("package.json has main field")
    else:
        report.failed("package.json missing entry point (main or exports)")

    name_prefix = rule_section(ctx.config, "packageJson").get("namePrefix")
    if name_prefix:
        name = package_json.get("name")
        if isinstance(name, str) and name.startswith(name_prefix):
            report.passed("Plugin name follows convention")
        else:
            report.recommend(
                f'Consider using "{name_prefix}" prefix for better discoverability in the Metalsmith ecosystem'
            )

    for fld in RECOMMENDED_FIELDS:
        if package_json.get(fld):
            report.passed(f"package.json has {fld}")
        else:
            report.recommend(f"Consider adding {fld} to package.json")

    if package_json.get("type") == "module" or package_json.get("exports"):
        report.passed("Modern module system configured")
    else:
        report.recommend('Consider using ES modules (add "type": "module" or use exports field)')

    _check_scripts(ctx, package_json, report)

    dependencies = {}
    for key in ("dependencies", "devDependencies"):
        section = package_json.get(key)
        if isinstance(section, Mapping):
            dependencies.update(section)
    if "release-it" in dependencies:
        report.passed("release-it dependency found")
    else:
        report.recommend("Consider adding release-it for automated releases. Run: npm install --save-dev release-it")

    check_release_automation(ctx, package_json, report)
