"""Build pipeline data types (pure data, no business logic)."""

from __future__ import annotations

from dataclasses import dataclass

from . import constants


@dataclass(frozen=True)
class BuildConfig:
    """Groups lowering, resolution and module-lookup configuration."""

    ignore_unsupported: bool = True
    preserve_parens: bool = True
    resolve_imports: bool = False
    extensions: tuple[str, ...] = constants.DEFAULT_EXTENSIONS
    main_fields: tuple[str, ...] = constants.DEFAULT_MAIN_FIELDS
