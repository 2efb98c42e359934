import pytest

from component_migrator.exceptions import ParseError
from component_migrator.syntax import (
    TextEdit,
    TreeSitterParser,
    language_for_path,
    parse_to_tree,
    string_value,
    tree_to_text,
    unwrap,
)


@pytest.mark.unit
class TestSyntaxTree:
    """Test the tree-sitter adapter."""

    def test_language_for_path(self) -> None:
        assert language_for_path("a/B.tsx") == "tsx"
        assert language_for_path("a/B.jsx") == "javascript"
        assert language_for_path("a/b.js") == "javascript"

    def test_round_trip_is_byte_identical(self) -> None:
        text = "// header\nexport const A = () => <div>é</div>;\n"
        assert tree_to_text(parse_to_tree(text, "A.jsx")) == text

    def test_strict_parse_reports_line(self) -> None:
        with pytest.raises(ParseError) as excinfo:
            parse_to_tree("const a = 1;\nconst = ;\n", "broken.js")
        assert excinfo.value.line == 2

    def test_lenient_parse(self) -> None:
        tree = parse_to_tree("const = ;\n", "broken.js", strict=False)
        assert tree.root.has_error

    def test_apply_edits(self) -> None:
        tree = parse_to_tree("const a = 'x';\n", "a.js")
        edited = tree.apply([TextEdit(6, 7, "b"), TextEdit(0, 0, "// top\n")])
        assert edited.text == "// top\nconst b = 'x';\n"
        assert tree.text == "const a = 'x';\n"

    def test_apply_handles_multibyte_offsets(self) -> None:
        text = "const s = 'é'; const t = 1;\n"
        tree = parse_to_tree(text, "a.js")
        name = tree.root.named_children[1].named_children[0].child_by_field_name("name")
        assert name is not None
        edited = tree.apply([TextEdit(name.start_byte, name.end_byte, "u")])
        assert edited.text == "const s = 'é'; const u = 1;\n"

    def test_overlapping_edits_rejected(self) -> None:
        tree = parse_to_tree("const a = 1;\n", "a.js")
        with pytest.raises(ValueError, match="Overlapping"):
            tree.apply([TextEdit(0, 5, "let"), TextEdit(3, 7, "x")])

    def test_edit_producing_invalid_code_raises(self) -> None:
        tree = parse_to_tree("const a = 1;\n", "a.js")
        with pytest.raises(ParseError):
            tree.apply([TextEdit(10, 11, "")])

    def test_string_value_and_unwrap(self) -> None:
        tree = parse_to_tree("x = ('a');\ny = `b${c}`;\n", "a.js")
        first = tree.root.named_children[0].named_children[0].child_by_field_name("right")
        second = tree.root.named_children[1].named_children[0].child_by_field_name("right")
        assert first is not None and second is not None
        unwrapped = unwrap(first)
        assert unwrapped is not None
        assert string_value(tree, unwrapped) == "a"
        assert string_value(tree, second) is None

    def test_parser_protocol_implementation(self) -> None:
        parser = TreeSitterParser()
        tree = parser.parse_to_tree("export const A = () => <a />;\n", "A.tsx")
        assert tree.language == "tsx"
        assert parser.tree_to_text(tree) == "export const A = () => <a />;\n"
