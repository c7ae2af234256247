"""ModuleWalker — depth-first visit of a module graph."""

from __future__ import annotations

import logging
from pathlib import Path

from .build_types import BuildConfig
from .declarations import ModuleVisitor
from .module_resolver import ModuleResolver, NodeModuleResolver
from .parser import ModuleParseError, Parser, TreeSitterParserFactory, language_for_path
from .symbols import ModuleTables

logger = logging.getLogger(__name__)


class ModuleWalker:
    """Parses, lowers and recurses into every module reachable from a path.

    The slot for a module is reserved before its body is lowered, so cycles
    and diamond-shaped import graphs terminate. A failing module keeps its
    empty slot and the error propagates to the caller.
    """

    def __init__(
        self,
        tables: ModuleTables,
        parser: Parser | None = None,
        module_resolver: ModuleResolver | None = None,
        config: BuildConfig = BuildConfig(),
    ):
        self._tables = tables
        self._parser = parser or Parser(TreeSitterParserFactory())
        self._module_resolver = module_resolver or NodeModuleResolver(
            extensions=config.extensions, main_fields=config.main_fields
        )
        self._config = config

    @property
    def tables(self) -> ModuleTables:
        return self._tables

    def visit(self, path: str | Path) -> None:
        path = Path(path).resolve(strict=True)
        if path in self._tables:
            logger.debug("Already visited %s", path)
            return
        self._tables.reserve(path)
        logger.info("Visiting module %s", path)

        source = path.read_text(encoding="utf-8")
        result = self._parser.parse(source, language_for_path(path))
        if result.has_errors:
            raise ModuleParseError(path, result.diagnostics)

        visitor = ModuleVisitor(path, self._module_resolver, self._config)
        table = visitor.visit(result.tree, source.encode("utf-8"))
        self._tables.populate(table)
        logger.info(
            "Lowered %d declarations, %d aliases from %s",
            len(table.declarations),
            len(table.type_mappings),
            path.name,
        )

        for dependency in table.dependencies():
            self.visit(dependency)
