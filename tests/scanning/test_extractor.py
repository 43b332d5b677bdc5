"""Tests for scanning/extractor.py - regex declaration extraction."""

from archscan.scanning.extractor import DeclarationExtractor
from archscan.scanning.models import UNKNOWN_NAMESPACE, DeclarationKind
from archscan.scanning.scope import ScopeTracker


def _by_name(file_decls, name, kind=None):
    matches = [d for d in file_decls.declarations if d.name == name and (kind is None or d.kind is kind)]
    assert matches, f"{name} not extracted"
    return matches[0]


class TestNamespace:
    def test_file_scoped(self):
        assert DeclarationExtractor.extract_namespace("namespace Acme.Core.Routing;\n") == "Acme.Core.Routing"

    def test_block_scoped_brace_on_next_line(self):
        text = "using System;\n\nnamespace Acme.Host\n{\n}\n"
        assert DeclarationExtractor.extract_namespace(text) == "Acme.Host"

    def test_first_match_wins(self):
        text = "namespace First;\nnamespace Second;\n"
        assert DeclarationExtractor.extract_namespace(text) == "First"

    def test_missing_namespace_is_unknown(self):
        assert DeclarationExtractor.extract_namespace("public class Program {}") == UNKNOWN_NAMESPACE
        assert DeclarationExtractor.extract_namespace("") == UNKNOWN_NAMESPACE

    def test_namespace_declaration_emitted(self, unit_factory):
        result = DeclarationExtractor().extract(unit_factory("using System;\nnamespace Acme.Core;"))
        ns = result.of_kind(DeclarationKind.NAMESPACE)
        assert [(d.name, d.line) for d in ns] == [("Acme.Core", 2)]


class TestTypes:
    def test_kinds_from_keywords(self, unit_factory):
        source = """
            namespace Acme.Core;
            public interface IRouter { }
            public sealed class Router : IRouter { }
            internal readonly struct Point { }
            public enum Mode { A }
            public record struct Span(int Start, int End);
        """
        result = DeclarationExtractor().extract(unit_factory(source))
        assert _by_name(result, "IRouter").kind is DeclarationKind.INTERFACE
        assert _by_name(result, "Router").kind is DeclarationKind.TYPE
        assert _by_name(result, "Point").kind is DeclarationKind.TYPE
        assert _by_name(result, "Mode").kind is DeclarationKind.ENUM
        assert _by_name(result, "Span").kind is DeclarationKind.TYPE
        assert all(d.namespace == "Acme.Core" for d in result.declarations)

    def test_event_payload_emitted_twice(self, unit_factory):
        source = "public sealed class ParcelSortedEventArgs : EventArgs\n{\n}"
        result = DeclarationExtractor().extract(unit_factory(source))
        kinds = sorted(d.kind.value for d in result.declarations if d.name == "ParcelSortedEventArgs")
        assert kinds == ["event_payload", "type"]
        assert _by_name(result, "ParcelSortedEventArgs").bases == ("EventArgs",)

    def test_file_scoped_modifier(self, unit_factory):
        result = DeclarationExtractor().extract(unit_factory("file sealed class Helper { }"))
        helper = _by_name(result, "Helper")
        assert helper.is_file_scoped
        assert helper.modifiers == ("file", "sealed")

    def test_generic_base_list(self, unit_factory):
        source = "public class Repository<T> : IRepository<T>, IDisposable where T : class\n{\n}"
        repo = _by_name(DeclarationExtractor().extract(unit_factory(source)), "Repository")
        assert repo.bases == ("IRepository<T>", "IDisposable")

    def test_attributes_before_declaration(self, unit_factory):
        result = DeclarationExtractor().extract(unit_factory("[Flags] public enum Access { None = 0, Read = 1 }"))
        assert _by_name(result, "Access").members == ("None", "Read")

    def test_visibility_required_at_line_start(self, unit_factory):
        result = DeclarationExtractor().extract(unit_factory("class Hidden { }"))
        assert result.declarations == []


class TestMembers:
    def test_multi_line_enum_members(self, unit_factory):
        source = """
            public enum Color
            {
                [Description("red")]
                Red = 1,
                Green = 2, // comment
                Blue
            }
        """
        result = DeclarationExtractor().extract(unit_factory(source))
        assert _by_name(result, "Color").members == ("Red", "Green", "Blue")
        members = result.of_kind(DeclarationKind.ENUM_MEMBER)
        assert sorted(d.name for d in members) == ["Blue", "Green", "Red"]
        assert all(d.line == 1 for d in members)

    def test_positional_record_parameters(self, unit_factory):
        source = "public record OrderDto(long Id, string Name, [property: Required] decimal Amount = 0m);"
        order = _by_name(DeclarationExtractor().extract(unit_factory(source)), "OrderDto")
        assert order.members == ("Id", "Name", "Amount")

    def test_properties_attach_to_owning_type(self, unit_factory):
        source = """
            namespace Acme.Api;
            public class OrderDto
            {
                public long Id { get; set; }
                public string Name { get; init; }
                public decimal Total => 0m;
                public void Recalculate() { }

                public class Line
                {
                    public int Quantity { get; set; }
                }
            }
        """
        result = DeclarationExtractor().extract(unit_factory(source))
        assert _by_name(result, "OrderDto").members == ("Id", "Name", "Total")
        assert _by_name(result, "Line").members == ("Quantity",)

    def test_properties_attach_in_single_mode(self, unit_factory):
        source = "public class Dto\n{\n    public int A { get; set; }\n}"
        extractor = DeclarationExtractor(ScopeTracker("single"))
        assert _by_name(extractor.extract(unit_factory(source)), "Dto").members == ("A",)

    def test_methods_and_properties(self, unit_factory):
        source = """
            public class Service {
                public async Task<int> RunAsync(CancellationToken token) { return 0; }
                public static IReadOnlyList<string> Names { get; } = new();
                private int _count;
            }
        """
        result = DeclarationExtractor().extract(unit_factory(source))
        run = _by_name(result, "RunAsync", DeclarationKind.METHOD)
        assert run.container.name == "Service"
        assert run.modifiers == ("public", "async")
        names = _by_name(result, "Names", DeclarationKind.PROPERTY)
        assert names.container.name == "Service"

    def test_record_line_is_not_a_method(self, unit_factory):
        result = DeclarationExtractor().extract(unit_factory("public record Point(int X, int Y);"))
        assert result.of_kind(DeclarationKind.METHOD) == []


class TestContainers:
    def test_same_line_nested_enum(self, unit_factory):
        source = "namespace Acme;\ninternal interface IFoo { enum Bar { X, Y } }"
        bar = _by_name(DeclarationExtractor().extract(unit_factory(source)), "Bar")
        assert bar.container is not None
        assert bar.container.name == "IFoo"
        assert bar.line == bar.container.start_line
        assert bar.members == ("X", "Y")

    def test_declaration_lines_after_container_start(self, unit_factory):
        source = """
            public interface IOuter
            {
                public class Inner
                {
                    public enum Deep { A, B }
                }
            }
        """
        result = DeclarationExtractor().extract(unit_factory(source))
        for decl in result.declarations:
            if decl.container is not None:
                assert decl.line > decl.container.start_line
        deep = _by_name(result, "Deep")
        assert deep.container.name == "Inner"
        assert [f.name for f in deep.ancestors] == ["IOuter", "Inner"]

    def test_top_level_type_has_no_container(self, unit_factory):
        result = DeclarationExtractor().extract(unit_factory("namespace A\n{\n    public class B { }\n}"))
        assert _by_name(result, "B").container is None

    def test_declarations_sorted_by_position(self, unit_factory):
        source = "public class A { }\npublic class B { }\npublic class C { }"
        result = DeclarationExtractor().extract(unit_factory(source))
        assert [d.line for d in result.declarations] == sorted(d.line for d in result.declarations)
