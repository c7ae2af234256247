"""Reference resolution — turns symbolic names into pointers to declarations."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from .ir import (
    ChoiceType,
    ContainerType,
    IRType,
    LiteralType,
    OptionalType,
    RecordType,
    ResolvedReference,
    TypeVariant,
    UnresolvedReference,
)
from .symbols import ModuleTable, ModuleTables, NamedOrigin
from . import constants

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReferenceRecord:
    """One reference seen during resolution."""

    module_path: Path
    declaration: str
    name: str
    resolved: bool
    target_module: Path | None = None
    reason: str | None = None

    def __str__(self) -> str:
        where = f"{self.module_path.name}::{self.declaration}"
        if self.resolved:
            return f"{where} → {self.name} @ {self.target_module}"
        return f"{where} → {self.name} ({self.reason})"


@dataclass
class ReferenceGraph:
    """Every reference encountered, tagged resolved or unresolved-with-reason."""

    records: set[ReferenceRecord] = field(default_factory=set)

    def add(self, record: ReferenceRecord) -> None:
        self.records.add(record)

    @property
    def resolved(self) -> list[ReferenceRecord]:
        return sorted((r for r in self.records if r.resolved), key=_sort_key)

    @property
    def unresolved(self) -> list[ReferenceRecord]:
        return sorted((r for r in self.records if not r.resolved), key=_sort_key)

    @property
    def is_complete(self) -> bool:
        return all(r.resolved for r in self.records)

    def report(self) -> str:
        lines = [
            "═══ Reference Graph ═══",
            f"  {len(self.records)} references:"
            f" {len(self.resolved)} resolved, {len(self.unresolved)} unresolved",
        ]
        if self.unresolved:
            lines.append("")
            lines.append("  Unresolved:")
            lines.extend(f"    {r}" for r in self.unresolved)
        return "\n".join(lines)


def _sort_key(record: ReferenceRecord) -> tuple[str, str, str]:
    return (str(record.module_path), record.declaration, record.name)


class ReferenceResolver:
    """Single pass over all module tables.

    By default a name resolves only against its own module's table, even
    when an alias record says it was imported. ``resolve_imports=True``
    follows named imports and re-exports to the defining module.
    """

    def __init__(self, tables: ModuleTables, resolve_imports: bool = False):
        self._tables = tables
        self._resolve_imports = resolve_imports

    def resolve(self) -> ReferenceGraph:
        graph = ReferenceGraph()
        for table in self._tables.values():
            self._resolve_table(table, graph)
        if not graph.is_complete:
            logger.warning(
                "%d unresolved references across %d modules",
                len(graph.unresolved),
                len(self._tables),
            )
        return graph

    def _resolve_table(self, table: ModuleTable, graph: ReferenceGraph) -> None:
        for name in list(table.declarations):
            rewritten = self._resolve_type(table.declarations[name], table, name, graph)
            table.declarations[name] = rewritten

    def _resolve_type(
        self, ir: IRType, table: ModuleTable, declaration: str, graph: ReferenceGraph
    ) -> IRType:
        if isinstance(ir, UnresolvedReference):
            return self._resolve_reference(ir, table, declaration, graph)
        if isinstance(ir, ContainerType):
            return ContainerType(
                element=self._resolve_type(ir.element, table, declaration, graph)
            )
        if isinstance(ir, OptionalType):
            return OptionalType(
                inner=self._resolve_type(ir.inner, table, declaration, graph)
            )
        if isinstance(ir, ChoiceType):
            return ChoiceType(
                variants=[
                    self._resolve_type(v, table, declaration, graph) for v in ir.variants
                ],
                has_none=ir.has_none,
            )
        if isinstance(ir, RecordType):
            return RecordType(
                fields={
                    k: self._resolve_type(v, table, declaration, graph)
                    for k, v in ir.fields.items()
                }
            )
        if isinstance(ir, LiteralType) and isinstance(ir.value, TypeVariant):
            inner = self._resolve_type(ir.value.inner, table, declaration, graph)
            return LiteralType(value=TypeVariant(inner=inner))
        return ir

    def _resolve_reference(
        self,
        ref: UnresolvedReference,
        table: ModuleTable,
        declaration: str,
        graph: ReferenceGraph,
    ) -> IRType:
        if ref.name in table.declarations:
            graph.add(
                ReferenceRecord(
                    module_path=table.path,
                    declaration=declaration,
                    name=ref.name,
                    resolved=True,
                    target_module=table.path,
                )
            )
            return ResolvedReference(name=ref.name, module_path=table.path)

        if self._resolve_imports:
            target = self._find_export(table, ref.name, set())
            if target is not None:
                graph.add(
                    ReferenceRecord(
                        module_path=table.path,
                        declaration=declaration,
                        name=ref.name,
                        resolved=True,
                        target_module=target.module_path,
                    )
                )
                return target

        origin = table.type_mappings.get(ref.name)
        reason = (
            constants.REASON_IMPORTED
            if origin is not None and origin.original_module is not None
            else constants.REASON_NOT_FOUND
        )
        logger.debug("Reference %s in %s unresolved: %s", ref.name, table.path, reason)
        graph.add(
            ReferenceRecord(
                module_path=table.path,
                declaration=declaration,
                name=ref.name,
                resolved=False,
                reason=reason,
            )
        )
        return ref

    def _find_export(
        self, table: ModuleTable, name: str, seen: set[tuple[Path, str]]
    ) -> ResolvedReference | None:
        """Follow a named import of *name* in *table* to its declaration."""
        mapping = table.type_mappings.get(name)
        if (
            mapping is None
            or mapping.original_module is None
            or not isinstance(mapping.original_kind, NamedOrigin)
        ):
            return None
        return self._lookup(mapping.original_module, mapping.original_kind.name, seen)

    def _lookup(
        self, module_path: Path, public_name: str, seen: set[tuple[Path, str]]
    ) -> ResolvedReference | None:
        """Find the declaration a module exports as *public_name*.

        Walks local declarations, then export records, then `export *`
        modules. *seen* guards against re-export cycles.
        """
        if (module_path, public_name) in seen:
            return None
        seen.add((module_path, public_name))
        target = self._tables.get(module_path)
        if target is None:
            return None
        if public_name in target.declarations:
            return ResolvedReference(name=public_name, module_path=module_path)
        mapping = next(
            (
                m
                for m in target.type_mappings.values()
                if m.exported and m.public_name == public_name
            ),
            None,
        )
        if mapping is not None and isinstance(mapping.original_kind, NamedOrigin):
            original = mapping.original_kind.name
            if mapping.original_module is not None:
                return self._lookup(mapping.original_module, original, seen)
            if original in target.declarations:
                return ResolvedReference(name=original, module_path=module_path)
            return None
        for star_module in target.star_exports:
            found = self._lookup(star_module, public_name, seen)
            if found is not None:
                return found
        return None


def resolve_references(
    tables: ModuleTables, resolve_imports: bool = False
) -> ReferenceGraph:
    """Resolve every table in place and return the reference graph."""
    return ReferenceResolver(tables, resolve_imports=resolve_imports).resolve()
