"""Tests for the archscan CLI (scan and rules commands)."""

import json

import pytest
from typer.testing import CliRunner

from archscan import __version__
from archscan.cli import app

runner = CliRunner()

CLEAN_TREE = {"src/Acme.Core/Clean.cs": "namespace Acme.Core;\npublic class Clean { }\n"}

BAD_RULE = """
[[rules]]
type = "placement"
id = "bad"
pattern = "("
"""


def _flat(output: str) -> str:
    """Output with rich's line wrapping undone."""
    return " ".join(output.split())


@pytest.fixture(autouse=True)
def _isolated(isolated_config):
    return isolated_config


class TestScanCommand:
    def test_violations_exit_one(self, csharp_solution):
        result = runner.invoke(app, ["scan", str(csharp_solution)])
        assert result.exit_code == 1
        assert "# Architecture Conformance Report" in result.stdout
        assert "**Result**: FAILED" in result.stdout
        assert "## enum-in-interface (1)" in result.stdout

    def test_clean_tree_exit_zero(self, write_tree):
        root = write_tree(CLEAN_TREE)
        result = runner.invoke(app, ["scan", str(root)])
        assert result.exit_code == 0
        assert "**Result**: PASSED" in result.stdout

    def test_json_output(self, csharp_solution):
        result = runner.invoke(app, ["scan", str(csharp_solution), "--format", "json", "--workers", "1"])
        assert result.exit_code == 1
        data = json.loads(result.stdout)
        assert data["passed"] is False
        assert data["files_scanned"] == 12
        assert data["generated_at"] is None

    def test_output_file(self, csharp_solution, tmp_path):
        target = tmp_path / "report.md"
        result = runner.invoke(app, ["scan", str(csharp_solution), "--output", str(target), "--timestamp"])
        assert result.exit_code == 1
        text = target.read_text(encoding="utf-8")
        assert text.startswith("# Architecture Conformance Report")
        assert "**Generated**:" in text

    def test_single_scope_mode_misses_allman_containers(self, csharp_solution):
        stack = runner.invoke(app, ["scan", str(csharp_solution), "-f", "json"])
        single = runner.invoke(app, ["scan", str(csharp_solution), "--scope-mode", "single", "-f", "json"])
        assert single.exit_code == 1
        stack_rules = {v["rule_id"] for v in json.loads(stack.stdout)["violations"]}
        single_rules = {v["rule_id"] for v in json.loads(single.stdout)["violations"]}
        assert "enum-in-interface" in stack_rules
        assert "enum-in-interface" not in single_rules
        assert "no-direct-clock" in single_rules

    def test_bad_rule_exit_two(self, write_tree, tmp_path):
        root = write_tree(CLEAN_TREE)
        config = tmp_path / "rules.toml"
        config.write_text(BAD_RULE, encoding="utf-8")
        result = runner.invoke(app, ["scan", str(root), "--config", str(config)])
        assert result.exit_code == 2
        assert "Invalid rule 'bad'" in _flat(result.output)

    def test_wrongly_typed_rule_field_exit_two(self, write_tree, tmp_path):
        root = write_tree(CLEAN_TREE)
        config = tmp_path / "rules.toml"
        config.write_text(
            '[[rules]]\ntype = "placement"\nid = "unique"\nmax_count = "3"\n', encoding="utf-8"
        )
        result = runner.invoke(app, ["scan", str(root), "--config", str(config)])
        assert result.exit_code == 2
        assert "Invalid rule 'unique'" in _flat(result.output)
        assert "max_count" in _flat(result.output)

    def test_unknown_format_suggests(self, write_tree):
        root = write_tree(CLEAN_TREE)
        result = runner.invoke(app, ["scan", str(root), "--format", "markdwn"])
        assert result.exit_code == 2
        assert "Did you mean: markdown?" in _flat(result.output)

    def test_unknown_scope_mode(self, write_tree):
        root = write_tree(CLEAN_TREE)
        result = runner.invoke(app, ["scan", str(root), "--scope-mode", "nested"])
        assert result.exit_code == 2
        assert "scope_mode" in _flat(result.output)

    def test_missing_path(self, tmp_path):
        result = runner.invoke(app, ["scan", str(tmp_path / "missing")])
        assert result.exit_code == 2


class TestRulesCommand:
    def test_default_pack(self):
        result = runner.invoke(app, ["rules"])
        assert result.exit_code == 0
        assert "11 rules" in result.output

    def test_configured_rules(self, tmp_path):
        config = tmp_path / "rules.toml"
        config.write_text('[[rules]]\ntype = "usage"\nid = "clock"\npattern = "UtcNow"\n', encoding="utf-8")
        result = runner.invoke(app, ["rules", "--config", str(config)])
        assert result.exit_code == 0
        assert "1 rules" in result.output
        assert "clock" in result.output

    def test_invalid_rules(self, tmp_path):
        config = tmp_path / "rules.toml"
        config.write_text(BAD_RULE, encoding="utf-8")
        result = runner.invoke(app, ["rules", "--config", str(config)])
        assert result.exit_code == 2


class TestVersion:
    def test_version(self):
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert f"archscan {__version__}" in result.output
