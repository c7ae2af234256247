"""ModuleVisitor — top-level declarations and import/export statements → ModuleTable."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable

from .build_types import BuildConfig
from .lowering import TypeLowerer
from .module_resolver import ModuleResolver
from .parser import named_children, node_text, string_value
from .symbols import (
    DefaultOrigin,
    ModuleTable,
    NamedOrigin,
    NamespaceOrigin,
    TypeMapping,
)

logger = logging.getLogger(__name__)


class ModuleVisitor:
    """Walks the statements of one parsed module.

    Type aliases and interfaces are lowered into the table; import and
    export statements become ``TypeMapping`` records. ``declare`` blocks and
    namespaces are descended into and share the module's flat table.
    """

    def __init__(
        self,
        path: Path,
        module_resolver: ModuleResolver,
        config: BuildConfig = BuildConfig(),
    ):
        self._path = path
        self._module_resolver = module_resolver
        self._config = config
        self._source: bytes = b""
        self._lowerer: TypeLowerer | None = None
        self._table = ModuleTable(path=path)
        self._STMT_DISPATCH: dict[str, Callable] = {
            "type_alias_declaration": self._visit_type_alias,
            "interface_declaration": self._visit_interface,
            "import_statement": self._visit_import,
            "export_statement": self._visit_export,
            "ambient_declaration": self._visit_block,
            "expression_statement": self._visit_block,
            "internal_module": self._visit_module_body,
            "module": self._visit_module_body,
            "statement_block": self._visit_block,
        }

    # ── entry point ──────────────────────────────────────────────

    def visit(self, tree, source: bytes) -> ModuleTable:
        self._source = source
        self._lowerer = TypeLowerer(source, preserve_parens=self._config.preserve_parens)
        self._table = ModuleTable(path=self._path)
        self._visit_block(tree.root_node)
        return self._table

    # ── helpers ──────────────────────────────────────────────────

    def _text(self, node) -> str:
        return node_text(node, self._source)

    def _name_of(self, node) -> str:
        """Identifier or string-literal name (``import { "a-b" as c }``)."""
        if node.type == "string":
            return string_value(node, self._source)
        return self._text(node)

    def _resolve(self, source_node) -> Path:
        specifier = string_value(source_node, self._source)
        return self._module_resolver.resolve(self._path.parent, specifier)

    def _record(self, mapping: TypeMapping) -> None:
        logger.debug(
            "%s: %s ← %s %s",
            self._path.name,
            mapping.local_name,
            mapping.original_kind.kind,
            mapping.original_module,
        )
        self._table.record_mapping(mapping)

    # ── dispatchers ──────────────────────────────────────────────

    def _visit_block(self, node):
        for child in named_children(node):
            handler = self._STMT_DISPATCH.get(child.type)
            if handler:
                handler(child)

    def _visit_module_body(self, node):
        body = node.child_by_field_name("body")
        if body is not None:
            self._visit_block(body)

    # ── declarations ─────────────────────────────────────────────

    def _visit_type_alias(self, node):
        name_node = node.child_by_field_name("name")
        value_node = node.child_by_field_name("value")
        if name_node is None or value_node is None:
            return
        self._table.declarations[self._text(name_node)] = self._lowerer.lower(value_node)

    def _visit_interface(self, node):
        name_node = node.child_by_field_name("name")
        body_node = node.child_by_field_name("body")
        if name_node is None or body_node is None:
            return
        name = self._text(name_node)
        record = self._lowerer.lower_record(
            body_node, ignore_unsupported=self._config.ignore_unsupported
        )
        if record is None:
            logger.debug("Interface %s has no representable fields", name)
            return
        self._table.declarations[name] = record

    # ── imports ──────────────────────────────────────────────────

    def _visit_import(self, node):
        source_node = node.child_by_field_name("source")
        if source_node is None:
            return
        module_path = self._resolve(source_node)
        clause = next((c for c in named_children(node) if c.type == "import_clause"), None)
        if clause is None:
            return
        self._table.imports.append(module_path)
        for child in named_children(clause):
            if child.type == "identifier":
                self._record_import(module_path, DefaultOrigin(), self._text(child))
            elif child.type == "namespace_import":
                local = next(c for c in named_children(child) if c.type == "identifier")
                self._record_import(module_path, NamespaceOrigin(), self._text(local))
            elif child.type == "named_imports":
                for spec in named_children(child):
                    if spec.type != "import_specifier":
                        continue
                    imported = self._name_of(spec.child_by_field_name("name"))
                    alias_node = spec.child_by_field_name("alias")
                    local = self._text(alias_node) if alias_node else imported
                    self._record_import(module_path, NamedOrigin(name=imported), local)

    def _record_import(self, module_path: Path, origin, local_name: str):
        self._record(
            TypeMapping(
                original_module=module_path,
                original_kind=origin,
                local_name=local_name,
            )
        )

    # ── exports ──────────────────────────────────────────────────

    def _visit_export(self, node):
        declaration = node.child_by_field_name("declaration")
        if declaration is not None:
            self._visit_statement(declaration)
            return
        source_node = node.child_by_field_name("source")
        module_path = self._resolve(source_node) if source_node is not None else None
        children = named_children(node)
        clause = next((c for c in children if c.type == "export_clause"), None)
        namespace = next((c for c in children if c.type == "namespace_export"), None)
        if clause is not None:
            for spec in named_children(clause):
                if spec.type == "export_specifier":
                    self._record_export_specifier(spec, module_path)
        elif namespace is not None and module_path is not None:
            local = self._name_of(named_children(namespace)[0])
            self._record(
                TypeMapping(
                    original_module=module_path,
                    original_kind=NamespaceOrigin(),
                    local_name=local,
                    exported=True,
                )
            )
        elif module_path is not None:
            self._table.star_exports.append(module_path)
        else:
            # `export default interface Foo {}` and similar
            self._visit_block(node)

    def _visit_statement(self, node):
        handler = self._STMT_DISPATCH.get(node.type)
        if handler:
            handler(node)

    def _record_export_specifier(self, spec, module_path: Path | None):
        local = self._name_of(spec.child_by_field_name("name"))
        alias_node = spec.child_by_field_name("alias")
        public = self._name_of(alias_node) if alias_node else local
        origin = NamedOrigin(name=local)
        if module_path is None and local in self._table.type_mappings:
            # `import { Foo } from "./c"; export { Foo };` re-exports c's Foo
            known = self._table.type_mappings[local]
            module_path, origin = known.original_module, known.original_kind
        self._record(
            TypeMapping(
                original_module=module_path,
                original_kind=origin,
                local_name=local,
                public_name=public,
                exported=True,
            )
        )
