"""Composable API functions for the type-lowering pipelines."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path

from .build_types import BuildConfig
from .declarations import ModuleVisitor
from .ir import IRType
from .ir_stats import count_node_kinds
from .module_resolver import ModuleResolver, NodeModuleResolver
from .parser import ModuleParseError, Parser, ParserFactory, TreeSitterParserFactory
from .reference_resolver import ReferenceGraph, resolve_references
from .symbols import ModuleTables
from .walker import ModuleWalker
from . import constants

logger = logging.getLogger(__name__)

_IN_MEMORY_MODULE = "<source>"


@dataclass
class BuildResult:
    """Everything a build hands over to an emitter."""

    tables: ModuleTables
    references: ReferenceGraph
    entry_points: list[Path] = field(default_factory=list)

    def declarations(self, path: str | Path) -> dict[str, IRType]:
        return self.tables[Path(path).resolve()].declarations


def lower_source(
    source: str,
    language: str = constants.LANGUAGE_TYPESCRIPT,
    config: BuildConfig = BuildConfig(),
    module_resolver: ModuleResolver | None = None,
) -> dict[str, IRType]:
    """Parse one in-memory module and lower its type declarations.

    References are left unresolved. Import specifiers are resolved
    relative to the current working directory unless *module_resolver*
    maps them.

    Args:
        source: TypeScript source text.
        language: "typescript" or "tsx".
        config: Lowering options.
        module_resolver: Specifier resolver; defaults to Node-style lookup.

    Returns:
        A dict mapping declaration names to IR.

    Raises:
        ModuleParseError: If the parser reports any diagnostic.
        ModuleResolutionError: If an import specifier cannot be resolved.
    """
    logger.info("Lowering in-memory source (%s)", language)
    result = Parser(TreeSitterParserFactory()).parse(source, language)
    path = Path.cwd() / _IN_MEMORY_MODULE
    if result.has_errors:
        raise ModuleParseError(path, result.diagnostics)
    resolver = module_resolver or NodeModuleResolver(
        config.extensions, config.main_fields
    )
    visitor = ModuleVisitor(path, resolver, config)
    return visitor.visit(result.tree, source.encode("utf-8")).declarations


def dump_types(
    source: str,
    language: str = constants.LANGUAGE_TYPESCRIPT,
    config: BuildConfig = BuildConfig(),
) -> str:
    """Lower source and return the declarations as indented JSON."""
    declarations = lower_source(source, language, config)
    return json.dumps(
        {name: ir.model_dump(mode="json") for name, ir in declarations.items()},
        indent=2,
    )


def build_modules(
    *entry_points: str | Path,
    config: BuildConfig = BuildConfig(),
    parser_factory: ParserFactory | None = None,
    module_resolver: ModuleResolver | None = None,
) -> BuildResult:
    """Visit every module reachable from *entry_points*, then resolve references.

    Args:
        entry_points: Paths of the root modules.
        config: Build options.
        parser_factory: Parser source; defaults to tree-sitter.
        module_resolver: Specifier resolver; defaults to Node-style lookup.

    Returns:
        A BuildResult with the module tables and the reference graph.

    Raises:
        OSError: If a module cannot be read.
        ModuleParseError: If a module does not parse cleanly.
        ModuleResolutionError: If an import specifier cannot be resolved.
    """
    logger.info("Building %d entry points", len(entry_points))
    tables = ModuleTables()
    walker = ModuleWalker(
        tables,
        parser=Parser(parser_factory or TreeSitterParserFactory()),
        module_resolver=module_resolver,
        config=config,
    )
    for entry_point in entry_points:
        walker.visit(entry_point)
    references = resolve_references(tables, resolve_imports=config.resolve_imports)
    return BuildResult(
        tables=tables,
        references=references,
        entry_points=[Path(p).resolve() for p in entry_points],
    )


def dump_modules(result: BuildResult) -> str:
    """Return every module table of a build as indented JSON."""
    return json.dumps(result.tables.to_dict(), indent=2)


def ir_stats(
    source: str,
    language: str = constants.LANGUAGE_TYPESCRIPT,
    config: BuildConfig = BuildConfig(),
) -> dict[str, int]:
    """Lower source and return IR node-kind frequency counts."""
    return count_node_kinds(lower_source(source, language, config).values())
