"""Shared fixtures: on-disk Metalsmith plugin trees built under tmp_path."""

import json
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

WELL_FORMED_INDEX = """\
import { extname } from 'path'

/**
 * @typedef {Object} Options
 * @property {string} [pattern] - Files to process
 */

const defaults = { pattern: '.md' }

/**
 * Two-phase plugin: the factory receives options and returns the actual plugin.
 * @param {Options} options
 * @returns {import('metalsmith').Plugin}
 */
export default function sample(options) {
  options = { ...defaults, ...options }

  const plugin = function sample(files, metalsmith, done) {
    const site = metalsmith.metadata()
    Object.keys(files)
      .filter((path) => extname(path) === options.pattern)
      .forEach((path) => {
        const file = files[path]
        if (!Buffer.isBuffer(file.contents)) {
          return
        }
        const { contents } = file
        file.title = file.title || site.title
        file.contents = Buffer.from(contents.toString().trim())
      })
    done()
  }

  Object.defineProperty(plugin, 'name', { value: 'sample' })
  return plugin
}
"""

WELL_FORMED_README = """\
# metalsmith-sample

[![npm version](https://img.shields.io/npm/v/metalsmith-sample.svg)](https://npmjs.org/package/metalsmith-sample)

## Installation

```bash
npm install metalsmith-sample
```

## Usage

```js
metalsmith.use(markdown()).use(sample())
```

## Options

| Option | Default |
|--------|---------|
| pattern | `.md` |

## Examples

Place this plugin after @metalsmith/markdown in the pipeline.
"""


def well_formed_package(name: str = "metalsmith-sample") -> dict[str, Any]:
    return {
        "name": name,
        "version": "1.0.0",
        "description": "Sample Metalsmith plugin",
        "license": "MIT",
        "type": "module",
        "exports": {"import": "./src/index.js"},
        "repository": "github:example/metalsmith-sample",
        "keywords": ["metalsmith", "metalsmith-plugin"],
        "engines": {"node": ">=18"},
        "files": ["src"],
        "scripts": {
            "test": "mocha",
            "lint": "eslint src test",
            "format": "prettier --write src test",
            "test:coverage": "c8 npm test",
            "release:patch": "./scripts/release.sh patch --ci",
            "release:minor": "./scripts/release.sh minor --ci",
            "release:major": "./scripts/release.sh major --ci",
            "audit": "npm audit",
        },
        "devDependencies": {"release-it": "17.0.0", "mocha": "^10.0.0"},
    }


def well_formed_files() -> dict[str, str]:
    return {
        "src/index.js": WELL_FORMED_INDEX,
        "src/utils/helpers.js": "/**\n * Trim text.\n */\nexport const trim = (text) => text.trim()\n",
        "src/processors/markdown.js": "/** Process markdown. */\nexport function process() {}\n",
        "test/index.test.js": "import sample from '../src/index.js'\nimport markdown from '@metalsmith/markdown'\n",
        "test/fixtures/basic/sample.md": "# Sample\n",
        "README.md": WELL_FORMED_README,
        "LICENSE": "MIT License\n",
        ".release-it.json": "{}\n",
        "scripts/release.sh": "#!/bin/sh\nexport GH_TOKEN=$(gh auth token)\nnpx release-it \"$@\"\n",
    }


PluginFactory = Callable[..., Path]


@pytest.fixture
def make_plugin(tmp_path: Path) -> PluginFactory:
    """Build a plugin directory.

    Args (of the returned factory):
        name: Directory name under tmp_path
        files: Relative path -> content; None values drop a default file
        package: package.json content; None means the conventional one when
            well_formed, otherwise no package.json at all
        well_formed: Start from a complete, conventional plugin
    """

    def factory(
        name: str = "metalsmith-sample",
        files: dict[str, str | None] | None = None,
        package: dict[str, Any] | None = None,
        well_formed: bool = True,
    ) -> Path:
        root = tmp_path / name
        root.mkdir(parents=True, exist_ok=True)

        contents: dict[str, str | None] = dict(well_formed_files()) if well_formed else {}
        contents.update(files or {})
        if package is None and well_formed:
            package = well_formed_package(name)

        for relative, text in contents.items():
            if text is None:
                continue
            path = root / relative
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(text, encoding="utf-8")

        if package is not None:
            (root / "package.json").write_text(json.dumps(package, indent=2), encoding="utf-8")

        return root

    return factory
