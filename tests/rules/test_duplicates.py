"""Tests for rules/duplicates.py and the duplicate rule in the engine."""

from archscan.rules.defaults import SHAPE_SUFFIXES
from archscan.rules.duplicates import find_duplicate_groups
from archscan.rules.engine import RuleEngine
from archscan.rules.models import DuplicateRule
from archscan.scanning.models import Declaration, DeclarationKind


def _type(name, path=None, line=3, modifiers=("public",), kind=DeclarationKind.TYPE, file_scoped=False):
    return Declaration(
        kind=kind,
        name=name,
        path=path or f"src/{name}.cs",
        line=line,
        namespace="Acme",
        modifiers=modifiers,
        is_file_scoped=file_scoped,
    )


def _compiled(**kwargs):
    rule = DuplicateRule(id="dup", **kwargs)
    rule.compile()
    return rule


class TestBaseKey:
    def test_default_suffixes(self):
        rule = _compiled()
        assert rule.base_key("FooServiceImpl") == "FooService"
        assert rule.base_key("RouterV2") == "Router"
        assert rule.base_key("ParserOld") == "Parser"
        assert rule.base_key("FooService") == "FooService"

    def test_name_that_is_only_a_suffix(self):
        assert _compiled().base_key("New") == "New"

    def test_longest_family_suffix_wins(self):
        rule = _compiled(suffixes=("Config", "Configuration"), require_distinct_suffixes=True)
        assert rule.base_key("RouterConfiguration") == "Router"
        assert rule.suffix_of("RouterConfiguration") == "Configuration"


class TestFindGroups:
    def test_impl_twin(self):
        groups = find_duplicate_groups(_compiled(), [_type("FooService"), _type("FooServiceImpl"), _type("Bar")])
        assert len(groups) == 1
        assert groups[0].base == "FooService"
        assert groups[0].names == ["FooService", "FooServiceImpl"]

    def test_same_name_in_two_files(self):
        decls = [_type("Clock", "src/A/Clock.cs"), _type("Clock", "src/B/Clock.cs")]
        groups = find_duplicate_groups(_compiled(), decls)
        assert [m.path for m in groups[0].members] == ["src/A/Clock.cs", "src/B/Clock.cs"]

    def test_partial_declarations_merge(self):
        partial = ("public", "partial")
        decls = [_type("Order", "src/Order.cs", modifiers=partial), _type("Order", "src/Order.Rules.cs", modifiers=partial)]
        assert find_duplicate_groups(_compiled(), decls) == []

    def test_all_file_scoped_group_ignored(self):
        decls = [
            _type("Helper", "src/A.cs", file_scoped=True),
            _type("HelperImpl", "src/B.cs", file_scoped=True),
        ]
        assert find_duplicate_groups(_compiled(), decls) == []
        assert len(find_duplicate_groups(_compiled(ignore_file_scoped=False), decls)) == 1

    def test_allow_list_by_base_or_name(self):
        decls = [_type("FooService"), _type("FooServiceImpl")]
        assert find_duplicate_groups(_compiled(allow_list=frozenset({"FooService"})), decls) == []
        assert find_duplicate_groups(_compiled(allow_list=frozenset({"FooServiceImpl"})), decls) == []

    def test_kinds(self):
        decls = [_type("Mode", kind=DeclarationKind.ENUM), _type("ModeV2", kind=DeclarationKind.ENUM)]
        assert find_duplicate_groups(_compiled(kinds=("type",)), decls) == []
        assert len(find_duplicate_groups(_compiled(kinds=("enum",)), decls)) == 1

    def test_min_group(self):
        decls = [_type("Router"), _type("RouterV2"), _type("Parser"), _type("ParserV2"), _type("ParserV3")]
        groups = find_duplicate_groups(_compiled(min_group=3), decls)
        assert [g.base for g in groups] == ["Parser"]

    def test_distinct_suffix_family(self):
        rule = _compiled(suffixes=SHAPE_SUFFIXES, require_distinct_suffixes=True)
        decls = [
            _type("ParcelDto"),
            _type("ParcelOptions"),
            _type("RouteDto", "src/A/RouteDto.cs"),
            _type("RouteDto", "src/B/RouteDto.cs"),
            _type("Chute"),
        ]
        groups = find_duplicate_groups(rule, decls)
        assert [(g.base, g.names) for g in groups] == [("Parcel", ["ParcelDto", "ParcelOptions"])]


class TestDuplicateViolations:
    def test_every_member_reported(self):
        engine = RuleEngine([DuplicateRule(id="duplicate-types")])
        violations = engine.evaluate_global([_type("FooServiceImpl"), _type("FooService")])
        assert [v.subject for v in sorted(violations)] == ["FooService", "FooServiceImpl"]
        assert violations[0].message == (
            "FooService duplicates FooService (2 declarations: FooService, FooServiceImpl)"
        )

    def test_template_fields(self):
        rule = DuplicateRule(id="dup", message="{base}:{count}:{group}")
        violations = RuleEngine([rule]).evaluate_global([_type("A"), _type("AOld")])
        assert {v.message for v in violations} == {"A:2:A, AOld"}
