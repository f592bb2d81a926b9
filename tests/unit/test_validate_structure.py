#!/usr/bin/env python3
"""Tests for validate_structure.py - layout checks and main-file complexity."""

from pathlib import Path

from mpv_config import DEFAULT_CONFIG, deep_merge
from mpv_validation_common import CheckContext, ValidationReport
from validate_structure import analyze_file_complexity, check_structure


def run_structure(root: Path, functional: bool = False, config=DEFAULT_CONFIG) -> ValidationReport:
    report = ValidationReport()
    check_structure(CheckContext(root, config, functional), report)
    return report


class TestCheckStructure:
    def test_empty_plugin_fails_every_required_item(self, tmp_path: Path) -> None:
        failed = run_structure(tmp_path).messages("FAILED")

        assert failed == [
            "Missing required directory: src",
            "Missing required directory: test",
            "Missing required file: src/index.js",
            "Missing required file: README.md",
            "Missing required file: package.json",
        ]

    def test_well_formed_plugin_passes(self, make_plugin) -> None:
        report = run_structure(make_plugin())

        assert report.messages("FAILED") == []
        assert "Directory src exists" in report.messages("PASSED")
        assert "File package.json exists" in report.messages("PASSED")
        assert "Recommended file .release-it.json exists" in report.messages("PASSED")

    def test_missing_recommended_items_are_recommendations(self, tmp_path: Path) -> None:
        recommendations = run_structure(tmp_path).messages("RECOMMENDATION")

        assert any(m.startswith("Consider adding .release-it.json") and "Run: npx" in m for m in recommendations)
        assert "Consider adding directory: src/utils" in recommendations
        assert any(m.startswith("Consider adding test/fixtures") for m in recommendations)

    def test_show_commands_off_drops_scaffold_command(self, tmp_path: Path) -> None:
        config = deep_merge(DEFAULT_CONFIG, {"recommendations": {"showCommands": False}})

        recommendations = run_structure(tmp_path, config=config).messages("RECOMMENDATION")

        assert "Consider adding .release-it.json for automated releases" in recommendations
        assert not any("Run:" in m for m in recommendations)

    def test_configured_required_dirs(self, tmp_path: Path) -> None:
        (tmp_path / "lib").mkdir()
        config = deep_merge(DEFAULT_CONFIG, {"rules": {"structure": {"requiredDirs": ["lib"], "requiredFiles": []}}})

        report = run_structure(tmp_path, config=config)

        assert report.messages("FAILED") == []
        assert "Directory lib exists" in report.messages("PASSED")

    def test_complexity_only_in_functional_mode(self, make_plugin) -> None:
        root = make_plugin()

        structural = run_structure(root).messages("PASSED")
        functional = run_structure(root, functional=True).messages("PASSED")

        assert not any("complexity" in m for m in structural)
        assert any(m.startswith("Main file complexity is appropriate") for m in functional)

    def test_complex_main_file_recommends_utils(self, make_plugin) -> None:
        functions = "\n".join(f"function step{i}() {{ return {i} }}" for i in range(9))
        root = make_plugin(files={"src/index.js": functions})

        recommendations = run_structure(root, functional=True).messages("RECOMMENDATION")

        assert any("consider splitting utilities into src/utils/" in m for m in recommendations)

    def test_unreadable_main_file_warns(self, make_plugin) -> None:
        root = make_plugin(files={"src/index.js": None})

        report = run_structure(root, functional=True)

        assert report.messages("WARNING") == ["Could not analyze main file complexity: src/index.js is not readable"]


class TestAnalyzeFileComplexity:
    def test_counts_ignore_blank_and_comment_lines(self) -> None:
        content = "// header\n\nimport a from 'a'\nimport b from 'b'\nconst f = (x) => x\nfunction g() {}\n"

        analysis = analyze_file_complexity(content)

        assert analysis.lines == 4
        assert analysis.imports == 2
        assert analysis.functions == 2
        assert not analysis.needs_utils

    def test_long_file_needs_utils(self) -> None:
        assert analyze_file_complexity("x()\n" * 151).needs_utils

    def test_many_imports_need_utils(self) -> None:
        content = "\n".join(f"import m{i} from 'm{i}'" for i in range(11))

        assert analyze_file_complexity(content).needs_utils

    def test_processing_functions_need_processors(self) -> None:
        content = "\n".join(f"function process{i}() {{}}" for i in range(6))

        analysis = analyze_file_complexity(content)

        assert analysis.has_processors
        assert analysis.needs_processors

    def test_few_processing_functions_are_fine(self) -> None:
        content = "function transform() {}\nfunction parse() {}"

        assert not analyze_file_complexity(content).needs_processors
