"""Tests for the formatters package."""

import json
from datetime import datetime

import pytest

from archscan.formatters import (
    GithubFormatter,
    JsonFormatter,
    MarkdownFormatter,
    RichFormatter,
    get_formatter,
)
from archscan.report import aggregate
from archscan.rules.models import PlacementRule, RuleMode, Severity, SimilarityRule, Violation
from archscan.similarity.models import SimilarityPair


def _make_report(generated_at=None, skipped=()):
    """A report with one failing rule, one advisory rule and one pair."""
    rules = [
        PlacementRule(id="enum-in-interface", description="Enums must not be declared inside interfaces"),
        PlacementRule(id="type-has-namespace", mode=RuleMode.ADVISORY, severity=Severity.WARNING),
        SimilarityRule(id="enum-overlap", mode=RuleMode.ADVISORY, severity=Severity.WARNING),
    ]
    violations = [
        Violation(
            path="src/Acme.Core/Routing/IRouteService.cs",
            line=7,
            rule_id="enum-in-interface",
            subject="RouteKind",
            message="enum RouteKind must not be declared inside interface IRouteService",
        ),
        Violation(
            path="src/Acme.Host/Program.cs",
            line=1,
            rule_id="type-has-namespace",
            subject="Program",
            severity=Severity.WARNING,
            message="type Program has no namespace declaration",
        ),
    ]
    pair = SimilarityPair(
        rule_id="enum-overlap",
        subject_a="ParcelState",
        subject_b="ParcelStatus",
        shared=4,
        total=5,
        ratio=0.8,
        shared_members=("failed", "pending", "sorted", "sorting"),
        location_a="src/Acme.Execution/Enums/ParcelState.cs:3",
        location_b="src/Acme.Core/Enums/ParcelStatus.cs:3",
        message="ParcelState overlaps ParcelStatus (80%)",
    )
    return aggregate(
        violations,
        [pair],
        rules,
        files_scanned=12,
        files_skipped=skipped,
        root="/repo",
        generated_at=generated_at,
    )


class TestGetFormatter:
    def test_known_formatters(self):
        for name in ("markdown", "json", "rich", "github"):
            assert get_formatter(name) is not None

    def test_unknown_formatter(self):
        with pytest.raises(ValueError, match="Unknown formatter"):
            get_formatter("xml")


class TestMarkdownFormatter:
    def test_structure(self):
        text = MarkdownFormatter().format(_make_report())
        assert text.startswith("# Architecture Conformance Report\n")
        assert "**Result**: FAILED" in text
        assert "**Files scanned**: 12, **skipped**: 0, **findings**: 3" in text
        assert "| enum-in-interface | enforcing | error | 1 | - | FAIL |" in text
        assert "| type-has-namespace | advisory | warning | 1 | - | ADVISORY |" in text
        assert "## enum-in-interface (1)" in text
        assert "_Enums must not be declared inside interfaces_" in text
        assert "### `src/Acme.Core/Routing/IRouteService.cs`" in text
        assert "- line 7: `RouteKind`: enum RouteKind must not be declared inside interface IRouteService" in text
        assert "| `ParcelState` | `ParcelStatus` | 4 | 5 | 80% | failed, pending, sorted, sorting |" in text
        assert text.endswith("\n")

    def test_layers(self):
        text = MarkdownFormatter().format(_make_report())
        assert "| Core | 1 |" in text
        assert "| Execution | 1 |" in text
        assert "| Host | 1 |" in text

    def test_deterministic_without_timestamp(self):
        formatter = MarkdownFormatter()
        first = formatter.format(_make_report())
        assert first == formatter.format(_make_report())
        assert "Generated" not in first

    def test_root_not_rendered(self):
        text = MarkdownFormatter().format(_make_report())
        assert "/repo" not in text
        assert "Root" not in text

    def test_timestamp_only_when_set(self):
        text = MarkdownFormatter().format(_make_report(generated_at=datetime(2026, 3, 4, 5, 6, 7)))
        assert "**Generated**: 2026-03-04 05:06:07" in text

    def test_skipped_files_listed(self):
        text = MarkdownFormatter().format(_make_report(skipped=["src/Bad.cs"]))
        assert "## Skipped files" in text
        assert "- `src/Bad.cs`" in text

    def test_passing_report(self):
        report = aggregate([], [], [PlacementRule(id="r")], files_scanned=3)
        text = MarkdownFormatter().format(report)
        assert "**Result**: PASSED" in text
        assert "## r (" not in text

    def test_render_prints(self, capsys):
        MarkdownFormatter().render(_make_report())
        assert "# Architecture Conformance Report" in capsys.readouterr().out


class TestJsonFormatter:
    def test_valid_json(self):
        data = json.loads(JsonFormatter().format(_make_report(generated_at=datetime(2026, 3, 4))))
        assert data["passed"] is False
        assert data["files_scanned"] == 12
        assert data["generated_at"] == "2026-03-04T00:00:00"
        assert data["root"] == "/repo"
        assert data["by_rule"] == {"enum-in-interface": 1, "enum-overlap": 1, "type-has-namespace": 1}
        assert data["violations"][0]["severity"] == "error"
        assert data["violations"][0]["subject"] == "RouteKind"
        assert data["similarity_pairs"][0]["shared_members"] == ["failed", "pending", "sorted", "sorting"]

    def test_verdict_modes_serialized(self):
        data = json.loads(JsonFormatter().format(_make_report()))
        modes = {v["rule_id"]: v["mode"] for v in data["verdicts"]}
        assert modes["type-has-namespace"] == "advisory"


class TestGithubFormatter:
    def test_annotations(self):
        lines = GithubFormatter().format(_make_report()).splitlines()
        assert lines[0] == (
            "::error file=src/Acme.Core/Routing/IRouteService.cs,line=7,title=enum-in-interface::"
            "enum RouteKind must not be declared inside interface IRouteService"
        )
        assert lines[1].startswith("::notice file=src/Acme.Host/Program.cs,line=1,title=type-has-namespace::")
        assert lines[2] == (
            "::notice file=src/Acme.Execution/Enums/ParcelState.cs,line=3,title=enum-overlap::"
            "ParcelState overlaps ParcelStatus (80%25)"
        )
        assert lines[-1] == "archscan failed: enum-in-interface (3 findings)"

    def test_newlines_escaped(self):
        report = aggregate(
            [Violation(path="a.cs", line=1, rule_id="r", subject="A", message="two\nlines")],
            [],
            [PlacementRule(id="r")],
        )
        assert "two%0Alines" in GithubFormatter().format(report)


class TestRichFormatter:
    def test_format_contains_findings(self):
        text = RichFormatter().format(_make_report())
        assert "FAILED" in text
        assert "enum-in-interface" in text
        assert "RouteKind" in text
        assert "ParcelState" in text

    def test_markup_in_names_not_interpreted(self):
        report = aggregate(
            [Violation(path="a.cs", line=1, rule_id="r", subject="[bold]X[/bold]", message="[red]m[/red]")],
            [],
            [PlacementRule(id="r")],
        )
        text = RichFormatter().format(report)
        assert "[bold]X[/bold]" in text
