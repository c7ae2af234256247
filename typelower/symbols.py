"""Module symbol tables and import/export alias records."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Annotated, Iterator, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .ir import IRType

logger = logging.getLogger(__name__)


class NamedOrigin(BaseModel):
    """``import { Name }`` / ``export { Name }``."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["named"] = "named"
    name: str


class DefaultOrigin(BaseModel):
    """``import local from "m"``."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["default"] = "default"


class NamespaceOrigin(BaseModel):
    """``import * as local from "m"`` / ``export * as local from "m"``."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["namespace"] = "namespace"


OriginalKind = Annotated[
    Union[NamedOrigin, DefaultOrigin, NamespaceOrigin],
    Field(discriminator="kind"),
]


class TypeMapping(BaseModel):
    """Where a name visible in a module actually comes from.

    ``original_module`` is ``None`` for local exports. ``public_name``
    defaults to ``local_name``. ``exported`` marks records written by export
    statements; only those are visible to importing modules.
    """

    model_config = ConfigDict(frozen=True)

    original_module: Path | None = None
    original_kind: OriginalKind
    local_name: str
    public_name: str
    exported: bool = False

    @model_validator(mode="before")
    @classmethod
    def _default_public_name(cls, data):
        if isinstance(data, dict) and data.get("public_name") is None:
            return {**data, "public_name": data.get("local_name")}
        return data


class ModuleTable(BaseModel):
    """Declarations and alias records of one module."""

    path: Path
    declarations: dict[str, IRType] = Field(default_factory=dict)
    type_mappings: dict[str, TypeMapping] = Field(default_factory=dict)
    imports: list[Path] = Field(default_factory=list)
    star_exports: list[Path] = Field(default_factory=list)

    def record_mapping(self, mapping: TypeMapping) -> None:
        """Last write wins for a given local name."""
        self.type_mappings[mapping.local_name] = mapping

    def dependencies(self) -> list[Path]:
        """Modules this one imports from or re-exports, in first-seen order."""
        seen: dict[Path, None] = dict.fromkeys(self.imports)
        for mapping in self.type_mappings.values():
            if mapping.original_module is not None:
                seen.setdefault(mapping.original_module, None)
        for path in self.star_exports:
            seen.setdefault(path, None)
        return list(seen)


class ModuleTables:
    """Arena of module tables for one build, keyed by canonical path."""

    def __init__(self):
        self._modules: dict[Path, ModuleTable] = {}

    def __contains__(self, path: Path) -> bool:
        return path in self._modules

    def __getitem__(self, path: Path) -> ModuleTable:
        return self._modules[path]

    def __iter__(self) -> Iterator[Path]:
        return iter(self._modules)

    def __len__(self) -> int:
        return len(self._modules)

    def get(self, path: Path) -> ModuleTable | None:
        return self._modules.get(path)

    def values(self) -> list[ModuleTable]:
        return list(self._modules.values())

    def reserve(self, path: Path) -> ModuleTable:
        """Insert an empty slot for *path*; must happen before lowering it."""
        if path in self._modules:
            raise ValueError(f"Module already reserved: {path}")
        table = ModuleTable(path=path)
        self._modules[path] = table
        return table

    def populate(self, table: ModuleTable) -> None:
        """Fill a reserved slot with the lowered table."""
        if table.path not in self._modules:
            raise KeyError(f"Module was never reserved: {table.path}")
        self._modules[table.path] = table

    def to_dict(self) -> dict[str, dict]:
        return {
            str(path): table.model_dump(mode="json")
            for path, table in self._modules.items()
        }
