"""Tests for TypeLowerer — tree-sitter TypeScript type AST to IR lowering."""

from __future__ import annotations

from tree_sitter_language_pack import get_parser

from typelower.ir import (
    BOOL,
    DYNAMIC,
    FLOAT64,
    INT128,
    NULL,
    STRING,
    UNIT,
    BoolLiteral,
    ChoiceType,
    ContainerType,
    IRType,
    LiteralType,
    NumericLiteral,
    StringLiteral,
    TypeVariant,
    UnresolvedReference,
    UnsupportedType,
)
from typelower.lowering import TypeLowerer, construct_name, normalize_union


def _find(node, node_type: str):
    if node.type == node_type:
        return node
    return next(
        (
            found
            for child in node.children
            if (found := _find(child, node_type)) is not None
        ),
        None,
    )


def _lower_alias(source: str, preserve_parens: bool = True) -> IRType:
    """Lower the value of the first type alias in *source*."""
    source_bytes = source.encode("utf-8")
    tree = get_parser("typescript").parse(source_bytes)
    alias = _find(tree.root_node, "type_alias_declaration")
    lowerer = TypeLowerer(source_bytes, preserve_parens=preserve_parens)
    return lowerer.lower(alias.child_by_field_name("value"))


def _string(value: str) -> LiteralType:
    return LiteralType(value=StringLiteral(value=value))


class TestNormalizeUnion:
    def test_null_literal_is_extracted(self):
        result = normalize_union([STRING, NULL])
        assert result == ChoiceType(variants=[STRING], has_none=True)

    def test_unit_is_extracted(self):
        result = normalize_union([UNIT, FLOAT64])
        assert result == ChoiceType(variants=[FLOAT64], has_none=True)

    def test_no_none_members(self):
        result = normalize_union([STRING, FLOAT64])
        assert result == ChoiceType(variants=[STRING, FLOAT64], has_none=False)

    def test_variant_count_is_input_minus_none_members(self):
        members = [STRING, NULL, BOOL, UNIT, NULL, FLOAT64]
        result = normalize_union(members)
        assert len(result.variants) == len(members) - 3

    def test_duplicates_are_kept(self):
        result = normalize_union([STRING, STRING])
        assert result.variants == [STRING, STRING]

    def test_order_is_preserved(self):
        result = normalize_union([BOOL, NULL, STRING, FLOAT64])
        assert result.variants == [BOOL, STRING, FLOAT64]

    def test_empty_input(self):
        assert normalize_union([]) == ChoiceType(variants=[], has_none=False)


class TestKeywords:
    def test_boolean(self):
        assert _lower_alias("type A = boolean;") == BOOL

    def test_number(self):
        assert _lower_alias("type A = number;") == FLOAT64

    def test_string(self):
        assert _lower_alias("type A = string;") == STRING

    def test_symbol_is_string(self):
        assert _lower_alias("type A = symbol;") == STRING

    def test_bigint(self):
        assert _lower_alias("type A = bigint;") == INT128

    def test_dynamic_keywords(self):
        for keyword in ("any", "unknown", "object"):
            assert _lower_alias(f"type A = {keyword};") == DYNAMIC

    def test_unit_keywords(self):
        for keyword in ("never", "void"):
            assert _lower_alias(f"type A = {keyword};") == UNIT

    def test_null_and_undefined_are_null_literals(self):
        assert _lower_alias("type A = null;") == NULL
        assert _lower_alias("type A = undefined;") == NULL


class TestContainers:
    def test_array(self):
        assert _lower_alias("type A = string[];") == ContainerType(element=STRING)

    def test_nested_array(self):
        assert _lower_alias("type A = number[][];") == ContainerType(
            element=ContainerType(element=FLOAT64)
        )

    def test_tuple_becomes_container_of_choice(self):
        assert _lower_alias("type T = [string, number];") == ContainerType(
            element=ChoiceType(variants=[STRING, FLOAT64], has_none=False)
        )

    def test_tuple_with_null_member(self):
        assert _lower_alias("type T = [string, null];") == ContainerType(
            element=ChoiceType(variants=[STRING], has_none=True)
        )

    def test_tuple_optional_and_rest_members_are_skipped(self):
        assert _lower_alias("type T = [string, boolean?, ...number[]];") == ContainerType(
            element=ChoiceType(variants=[STRING], has_none=False)
        )

    def test_named_tuple_members_are_wrapped(self):
        assert _lower_alias("type T = [name: string, age: number];") == ContainerType(
            element=ChoiceType(
                variants=[
                    LiteralType(value=TypeVariant(inner=STRING)),
                    LiteralType(value=TypeVariant(inner=FLOAT64)),
                ],
                has_none=False,
            )
        )


class TestUnions:
    def test_string_or_null(self):
        assert _lower_alias("type A = string | null;") == ChoiceType(
            variants=[STRING], has_none=True
        )

    def test_undefined_sets_has_none(self):
        assert _lower_alias("type A = string | undefined | number;") == ChoiceType(
            variants=[STRING, FLOAT64], has_none=True
        )

    def test_void_member_sets_has_none(self):
        assert _lower_alias("type A = string | void;") == ChoiceType(
            variants=[STRING], has_none=True
        )

    def test_long_union_is_flattened(self):
        assert _lower_alias('type A = "a" | "b" | "c";') == ChoiceType(
            variants=[_string("a"), _string("b"), _string("c")], has_none=False
        )

    def test_duplicate_members_are_kept(self):
        assert _lower_alias("type A = string | string;") == ChoiceType(
            variants=[STRING, STRING], has_none=False
        )

    def test_leading_bar(self):
        assert _lower_alias("type A =\n  | string\n  | number;") == ChoiceType(
            variants=[STRING, FLOAT64], has_none=False
        )


class TestLiterals:
    def test_string_literal(self):
        assert _lower_alias('type A = "hello";') == _string("hello")

    def test_single_quoted_string_literal(self):
        assert _lower_alias("type A = 'hi';") == _string("hi")

    def test_string_literal_escapes(self):
        assert _lower_alias('type A = "a\\"b";') == _string('a"b')

    def test_hex_escape_is_decoded(self):
        assert _lower_alias(r'type S = "\x41";') == _string("A")

    def test_empty_string_literal(self):
        assert _lower_alias('type A = "";') == _string("")

    def test_boolean_literals(self):
        assert _lower_alias("type A = true;") == LiteralType(value=BoolLiteral(value=True))
        assert _lower_alias("type A = false;") == LiteralType(value=BoolLiteral(value=False))

    def test_numeric_literal_keeps_raw_text(self):
        assert _lower_alias("type A = 0x1F;") == LiteralType(value=NumericLiteral(raw="0x1F"))

    def test_negative_number_is_unsupported(self):
        result = _lower_alias("type A = -1;")
        assert isinstance(result, UnsupportedType)
        assert result.source_snippet == "-1"


class TestReferences:
    def test_plain_reference(self):
        assert _lower_alias("type A = Foo;") == UnresolvedReference(name="Foo")

    def test_reference_has_no_specifier(self):
        assert _lower_alias("type A = Foo;").module_specifier is None

    def test_generic_reference_becomes_union_of_arguments(self):
        assert _lower_alias("type A = Map<string, number>;") == ChoiceType(
            variants=[STRING, FLOAT64], has_none=False
        )

    def test_generic_reference_with_null_argument(self):
        assert _lower_alias("type A = Array<Foo | null>;") == ChoiceType(
            variants=[ChoiceType(variants=[UnresolvedReference(name="Foo")], has_none=True)],
            has_none=False,
        )

    def test_generic_discards_reference_name(self):
        result = _lower_alias("type A = Promise<Bar>;")
        assert result == ChoiceType(variants=[UnresolvedReference(name="Bar")], has_none=False)


class TestDynamic:
    def test_type_literal(self):
        assert _lower_alias("type A = { a: string };") == DYNAMIC

    def test_mapped_type(self):
        assert _lower_alias("type A = { [K in Keys]: string };") == DYNAMIC


class TestUnsupported:
    def test_function_type(self):
        result = _lower_alias("type A = (a: string) => void;")
        assert result == UnsupportedType(
            construct_name="FunctionType", source_snippet="(a: string) => void"
        )

    def test_intersection_type(self):
        result = _lower_alias("type A = B & C;")
        assert result == UnsupportedType(
            construct_name="IntersectionType", source_snippet="B & C"
        )

    def test_keyof(self):
        result = _lower_alias("type A = keyof Foo;")
        assert isinstance(result, UnsupportedType)
        assert result.source_snippet == "keyof Foo"

    def test_conditional_type(self):
        result = _lower_alias("type A = B extends string ? C : D;")
        assert isinstance(result, UnsupportedType)
        assert result.source_snippet == "B extends string ? C : D"

    def test_parenthesized_type_is_unsupported_by_default(self):
        result = _lower_alias("type A = (string);")
        assert result == UnsupportedType(
            construct_name="ParenthesizedType", source_snippet="(string)"
        )

    def test_parenthesized_type_unwraps_without_preserve_parens(self):
        assert _lower_alias("type A = (string | null)[];", preserve_parens=False) == (
            ContainerType(element=ChoiceType(variants=[STRING], has_none=True))
        )

    def test_unsupported_member_inside_union(self):
        result = _lower_alias("type A = string | (() => void);")
        assert result.variants[0] == STRING
        assert isinstance(result.variants[1], UnsupportedType)

    def test_construct_name(self):
        assert construct_name("template_literal_type") == "TemplateLiteralType"
        assert construct_name("this_type") == "ThisType"
