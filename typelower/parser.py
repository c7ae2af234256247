"""Tree-Sitter Parsing Layer."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .ir import SourceLocation
from . import constants

logger = logging.getLogger(__name__)

_SIMPLE_ESCAPES: dict[str, str] = {
    "n": "\n",
    "t": "\t",
    "r": "\r",
    "b": "\b",
    "f": "\f",
    "v": "\v",
}

_LINE_TERMINATORS = ("\n", "\r", "\u2028", "\u2029")


class ParserFactory(ABC):
    """Abstract factory for obtaining a language parser."""

    @abstractmethod
    def get_parser(self, language: str): ...


class TreeSitterParserFactory(ParserFactory):
    """Concrete factory that delegates to tree-sitter-language-pack."""

    def get_parser(self, language: str):
        import tree_sitter_language_pack as tslp

        return tslp.get_parser(language)


@dataclass(frozen=True)
class ParseDiagnostic:
    message: str
    location: SourceLocation

    def __str__(self) -> str:
        return f"{self.location}: {self.message}"


@dataclass
class ParseResult:
    """A syntax tree plus everything the parser complained about."""

    tree: Any
    diagnostics: list[ParseDiagnostic] = field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        return bool(self.diagnostics)


class ModuleParseError(Exception):
    """Raised when a module's source text does not parse cleanly."""

    def __init__(self, path: Path, diagnostics: list[ParseDiagnostic]):
        self.path = path
        self.diagnostics = diagnostics
        details = "\n".join(f"  {d}" for d in diagnostics)
        super().__init__(f"Failed to parse {path}:\n{details}")


class Parser:
    """Thin wrapper around a parser factory that also collects diagnostics."""

    def __init__(self, parser_factory: ParserFactory):
        self._factory = parser_factory

    def parse(self, source: str, language: str) -> ParseResult:
        parser = self._factory.get_parser(language)
        source_bytes = source.encode("utf-8")
        tree = parser.parse(source_bytes)
        diagnostics = collect_diagnostics(tree.root_node, source_bytes)
        if diagnostics:
            logger.debug("Parser reported %d diagnostics", len(diagnostics))
        return ParseResult(tree=tree, diagnostics=diagnostics)


def language_for_path(path: Path) -> str:
    """Pick the tree-sitter grammar for a module path."""
    if path.name.endswith(constants.TSX_SUFFIX):
        return constants.LANGUAGE_TSX
    return constants.LANGUAGE_TYPESCRIPT


def source_location(node) -> SourceLocation:
    s, e = node.start_point, node.end_point
    return SourceLocation(
        start_line=s[0] + 1,
        start_col=s[1],
        end_line=e[0] + 1,
        end_col=e[1],
    )


def node_text(node, source: bytes) -> str:
    return source[node.start_byte : node.end_byte].decode("utf-8")


def named_children(node) -> list:
    """Named children of *node* with comments filtered out."""
    return [
        c for c in node.children if c.is_named and c.type not in constants.COMMENT_TYPES
    ]


def string_value(node, source: bytes) -> str:
    """Cooked value of a tree-sitter ``string`` node."""
    parts: list[str] = []
    for child in node.children:
        if child.type == "string_fragment":
            parts.append(node_text(child, source))
        elif child.type == "escape_sequence":
            parts.append(decode_escape(node_text(child, source)))
    # "\\uD83D\\uDE00" decodes to two surrogate halves; join them.
    return "".join(parts).encode("utf-16", "surrogatepass").decode("utf-16", "surrogatepass")


def decode_escape(raw: str) -> str:
    """Value of one escape sequence: ``\\x41``, ``\\u{1F600}``, ``\\101`` ...

    A backslash before a line terminator is a line continuation and
    contributes nothing. Unknown escapes stand for the escaped character.
    """
    body = raw[1:]
    if body.startswith(_LINE_TERMINATORS):
        return ""
    head = body[:1]
    if head == "x":
        return chr(int(body[1:3], 16))
    if head == "u":
        digits = body[2:-1] if body.startswith("u{") else body[1:5]
        return chr(int(digits, 16))
    if head and head in "01234567":
        return chr(int(body, 8))
    return _SIMPLE_ESCAPES.get(head, body)


def collect_diagnostics(root, source: bytes) -> list[ParseDiagnostic]:
    """Gather ERROR and MISSING nodes, descending only into damaged subtrees."""
    diagnostics: list[ParseDiagnostic] = []
    stack = [root]
    while stack:
        node = stack.pop()
        if node.is_missing:
            diagnostics.append(
                ParseDiagnostic(
                    message=f"missing `{node.type}`", location=source_location(node)
                )
            )
            continue
        if node.type == "ERROR":
            snippet = node_text(node, source).strip().splitlines()
            diagnostics.append(
                ParseDiagnostic(
                    message=f"unexpected `{snippet[0] if snippet else ''}`",
                    location=source_location(node),
                )
            )
            continue
        if node.has_error:
            stack.extend(reversed(node.children))
    return diagnostics
