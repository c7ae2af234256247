"""TypeLowerer — tree-sitter TypeScript type AST → IR lowering."""

from __future__ import annotations

import logging
from typing import Callable, Iterable

from .ir import (
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
    OptionalType,
    RecordType,
    StringLiteral,
    TypeVariant,
    UnresolvedReference,
    UnsupportedType,
    is_none_signal,
)
from .parser import named_children, node_text, string_value

logger = logging.getLogger(__name__)


def normalize_union(members: Iterable[IRType]) -> ChoiceType:
    """Fold none-signalling members into ``has_none``; keep the rest in order.

    Duplicates are kept as written.
    """
    variants: list[IRType] = []
    has_none = False
    for member in members:
        if is_none_signal(member):
            has_none = True
        else:
            variants.append(member)
    return ChoiceType(variants=variants, has_none=has_none)


def construct_name(node_type: str) -> str:
    """``conditional_type`` → ``ConditionalType``."""
    return "".join(part.capitalize() for part in node_type.split("_"))


class TypeLowerer:
    """Lowers tree-sitter type nodes of one module to IR.

    Every node maps to some IR: kinds without a handler in
    ``_TYPE_DISPATCH`` become ``UnsupportedType`` carrying the node's exact
    source text.
    """

    KEYWORD_TYPES: dict[str, IRType] = {
        "boolean": BOOL,
        "number": FLOAT64,
        "string": STRING,
        "symbol": STRING,
        "bigint": INT128,
        "any": DYNAMIC,
        "unknown": DYNAMIC,
        "object": DYNAMIC,
        "never": UNIT,
        "void": UNIT,
        "null": NULL,
        "undefined": NULL,
    }

    # Keywords tree-sitter reports as plain type identifiers.
    IDENTIFIER_KEYWORDS: frozenset[str] = frozenset({"bigint", "undefined"})

    NAMED_TUPLE_MEMBER_TYPES: frozenset[str] = frozenset(
        {
            "required_parameter",
            "optional_parameter",
            "tuple_parameter",
            "optional_tuple_parameter",
        }
    )

    SKIPPED_TUPLE_MEMBER_TYPES: frozenset[str] = frozenset({"optional_type", "rest_type"})

    def __init__(self, source: bytes, preserve_parens: bool = True):
        self._source = source
        self._TYPE_DISPATCH: dict[str, Callable[..., IRType]] = {
            "predefined_type": self._lower_predefined,
            "type_identifier": self._lower_type_identifier,
            "generic_type": self._lower_generic,
            "array_type": self._lower_array,
            "tuple_type": self._lower_tuple,
            "union_type": self._lower_union,
            "literal_type": self._lower_literal,
            "object_type": lambda _: DYNAMIC,
            "type_annotation": self._lower_first_named,
        }
        self._TYPE_DISPATCH.update(
            {t: self._lower_named_tuple_member for t in self.NAMED_TUPLE_MEMBER_TYPES}
        )
        if not preserve_parens:
            self._TYPE_DISPATCH["parenthesized_type"] = self._lower_first_named

    # ── entry point ──────────────────────────────────────────────

    def lower(self, node) -> IRType:
        handler = self._TYPE_DISPATCH.get(node.type)
        if handler:
            return handler(node)
        return self._unsupported(node)

    def lower_all(self, nodes: Iterable) -> list[IRType]:
        return [self.lower(n) for n in nodes]

    # ── helpers ──────────────────────────────────────────────────

    def _text(self, node) -> str:
        return node_text(node, self._source)

    def _unsupported(self, node) -> UnsupportedType:
        logger.debug("Unsupported type construct %s", node.type)
        return UnsupportedType(
            construct_name=construct_name(node.type),
            source_snippet=self._text(node),
        )

    def _lower_first_named(self, node) -> IRType:
        children = named_children(node)
        if not children:
            return self._unsupported(node)
        return self.lower(children[0])

    # ── keywords and references ──────────────────────────────────

    def _lower_predefined(self, node) -> IRType:
        keyword = " ".join(self._text(node).split())
        if keyword not in self.KEYWORD_TYPES:
            return self._unsupported(node)
        return self.KEYWORD_TYPES[keyword]

    def _lower_type_identifier(self, node) -> IRType:
        name = self._text(node)
        if name in self.IDENTIFIER_KEYWORDS:
            return self.KEYWORD_TYPES[name]
        return UnresolvedReference(name=name)

    def _lower_generic(self, node) -> IRType:
        # Type arguments stand in for the reference: Foo<A, B> lowers as A | B.
        arguments = node.child_by_field_name("type_arguments")
        if arguments is None:
            return self._unsupported(node)
        return normalize_union(self.lower_all(named_children(arguments)))

    # ── containers ───────────────────────────────────────────────

    def _lower_array(self, node) -> IRType:
        children = named_children(node)
        if not children:
            return self._unsupported(node)
        return ContainerType(element=self.lower(children[0]))

    def _lower_tuple(self, node) -> IRType:
        elements = [
            c
            for c in named_children(node)
            if c.type not in self.SKIPPED_TUPLE_MEMBER_TYPES
        ]
        return ContainerType(element=normalize_union(self.lower_all(elements)))

    def _lower_named_tuple_member(self, node) -> IRType:
        type_node = node.child_by_field_name("type")
        if type_node is None:
            return self._unsupported(node)
        return LiteralType(value=TypeVariant(inner=self.lower(type_node)))

    # ── unions ───────────────────────────────────────────────────

    def _union_members(self, node) -> list:
        members = []
        for child in named_children(node):
            if child.type == "union_type":
                members.extend(self._union_members(child))
            else:
                members.append(child)
        return members

    def _lower_union(self, node) -> IRType:
        return normalize_union(self.lower_all(self._union_members(node)))

    # ── literals ─────────────────────────────────────────────────

    def _lower_literal(self, node) -> IRType:
        children = named_children(node)
        if not children:
            return self._unsupported(node)
        literal = children[0]
        ltype = literal.type
        if ltype in ("null", "undefined"):
            return NULL
        if ltype in ("true", "false"):
            return LiteralType(value=BoolLiteral(value=ltype == "true"))
        if ltype == "string":
            return LiteralType(value=StringLiteral(value=string_value(literal, self._source)))
        if ltype == "number":
            return LiteralType(value=NumericLiteral(raw=self._text(literal)))
        return self._unsupported(literal)

    # ── interfaces ───────────────────────────────────────────────

    def lower_record(
        self, body_node, ignore_unsupported: bool = True
    ) -> RecordType | None:
        """Lower an interface body to a record, or ``None`` when no field survives."""
        fields: dict[str, IRType] = {}
        for member in named_children(body_node):
            if member.type != "property_signature":
                logger.debug("Skipping interface member %s", member.type)
                continue
            field_name = self._property_name(member)
            if field_name is None:
                continue
            type_node = member.child_by_field_name("type")
            if type_node is None:
                continue
            ir = self.lower(type_node)
            optional = any(c.type == "?" for c in member.children)
            if not isinstance(ir, OptionalType) and (
                optional or (isinstance(ir, ChoiceType) and ir.has_none)
            ):
                ir = OptionalType(inner=ir)
            if ignore_unsupported and isinstance(ir, UnsupportedType):
                logger.debug("Dropping unsupported field %s", field_name)
                continue
            fields[field_name] = ir
        if not fields:
            return None
        return RecordType(fields=fields)

    def _property_name(self, member) -> str | None:
        name_node = member.child_by_field_name("name")
        if name_node is None or name_node.type == "computed_property_name":
            return None
        if name_node.type == "string":
            return string_value(name_node, self._source)
        return self._text(name_node)
