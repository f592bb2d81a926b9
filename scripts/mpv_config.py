#!/usr/bin/env python3
"""
Metalsmith Plugin Validation - Configuration Resolver

Locates a plugin's validation config and deep-merges it onto the built-in
defaults. Candidate files are tried in fixed priority order; the first one
that parses as JSON wins. Missing or malformed files are skipped silently.

Merge semantics (override wins):
- A plain-object override value is merged recursively
- Any other value (false, 0, "", [], null) replaces the default wholesale

The defaults are frozen once at import time and never mutated by a merge.
"""

from __future__ import annotations

import json
from collections.abc import Mapping, Sequence
from pathlib import Path
from types import MappingProxyType
from typing import Any

# Tried in this order; the first readable, parseable file wins
CONFIG_FILENAMES = (
    ".metalsmith-plugin-validation.json",
    ".validation.json",
    ".validationrc.json",
)


def freeze(value: Any) -> Any:
    """Recursively convert mappings to read-only proxies and lists to tuples."""
    if isinstance(value, Mapping):
        return MappingProxyType({key: freeze(item) for key, item in value.items()})
    if isinstance(value, Sequence) and not isinstance(value, (str, bytes)):
        return tuple(freeze(item) for item in value)
    return value


DEFAULT_CONFIG: Mapping[str, Any] = freeze(
    {
        "rules": {
            "structure": {
                "enabled": True,
                "requiredDirs": ["src", "test"],
                "requiredFiles": ["src/index.js", "README.md", "package.json"],
                "recommendedDirs": ["src/utils", "src/processors", "test/fixtures"],
                "recommendedFiles": [".release-it.json"],
            },
            "tests": {
                "enabled": True,
                "coverageThreshold": 80,
                "requireFixtures": False,
            },
            "documentation": {
                "enabled": True,
                "requiredSections": [],
                "recommendedSections": ["Installation", "Usage", "Options", "Examples"],
            },
            "packageJson": {
                "enabled": True,
                # Set to "" to disable the prefix recommendation
                "namePrefix": "metalsmith-",
                "requiredScripts": ["test"],
                "recommendedScripts": [
                    "lint",
                    "format",
                    "test:coverage",
                    "release:patch",
                    "release:minor",
                    "release:major",
                ],
            },
        },
        "recommendations": {
            "showCommands": True,
            "templateSuggestions": True,
        },
    }
)


def deep_merge(base: Mapping[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    """Merge override onto base without mutating either.

    Only plain-object override values are merged recursively; every other
    value, including falsy ones and lists, replaces the base value.
    """
    result: dict[str, Any] = dict(base)
    for key, value in override.items():
        if isinstance(value, Mapping):
            current = base.get(key)
            result[key] = deep_merge(current if isinstance(current, Mapping) else {}, value)
        else:
            result[key] = value
    return result


def load_validation_config(plugin_path: Path) -> Mapping[str, Any]:
    """Resolve the effective validation config for a plugin.

    Args:
        plugin_path: Plugin root directory

    Returns:
        Defaults merged with the first parseable config file, or the
        defaults unchanged when no candidate exists or parses
    """
    for filename in CONFIG_FILENAMES:
        config_path = plugin_path / filename
        try:
            user_config = json.loads(config_path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError):
            continue
        if not isinstance(user_config, Mapping):
            continue
        return deep_merge(DEFAULT_CONFIG, user_config)

    return DEFAULT_CONFIG


# =============================================================================
# Accessors
# =============================================================================


def rule_section(config: Mapping[str, Any], name: str) -> Mapping[str, Any]:
    """Get a rules.<name> section, or an empty mapping if unset/not an object."""
    rules = config.get("rules")
    if not isinstance(rules, Mapping):
        return {}
    section = rules.get(name)
    return section if isinstance(section, Mapping) else {}


def rule_enabled(config: Mapping[str, Any], name: str) -> bool:
    """Whether rules.<name> is enabled.

    A section replaced by a non-object value is enabled only if truthy,
    so ``"packageJson": false`` turns the rule off.
    """
    rules = config.get("rules")
    if not isinstance(rules, Mapping) or name not in rules:
        return True
    section = rules[name]
    if isinstance(section, Mapping):
        return bool(section.get("enabled", True))
    return bool(section)


def rule_list(config: Mapping[str, Any], section: str, key: str) -> tuple[Any, ...]:
    """Get a list-valued rule parameter; null or a missing key yields ()."""
    value = rule_section(config, section).get(key)
    if value is None:
        return ()
    if isinstance(value, str):
        return (value,)
    return tuple(value)


def recommendation_enabled(config: Mapping[str, Any], name: str) -> bool:
    recommendations = config.get("recommendations")
    if not isinstance(recommendations, Mapping):
        return True
    return recommendations.get(name, True) is not False
