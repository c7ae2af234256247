"""Module resolvers — map an import specifier to a declaration file."""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path

from . import constants

logger = logging.getLogger(__name__)


class ModuleResolutionError(Exception):
    """Raised when a module specifier cannot be mapped to a file."""

    def __init__(self, directory: Path, specifier: str):
        self.directory = directory
        self.specifier = specifier
        super().__init__(
            f"Failed to resolve module specifier {specifier!r} from {directory}"
        )


class ModuleResolver(ABC):
    """Strategy for turning ``(directory, specifier)`` into a file path."""

    @abstractmethod
    def resolve(self, directory: Path, specifier: str) -> Path:
        """Return the canonical path, or raise ``ModuleResolutionError``."""
        ...


class NodeModuleResolver(ModuleResolver):
    """Node-style lookup restricted to type declaration files.

    Relative and absolute specifiers are joined to *directory*; bare ones
    are searched in ``node_modules`` and ``node_modules/@types`` of every
    ancestor. Each candidate is tried as a file (with every extension
    appended in order) and then as a package directory.
    """

    def __init__(
        self,
        extensions: tuple[str, ...] = constants.DEFAULT_EXTENSIONS,
        main_fields: tuple[str, ...] = constants.DEFAULT_MAIN_FIELDS,
    ):
        self._extensions = extensions
        self._main_fields = main_fields

    def resolve(self, directory: Path, specifier: str) -> Path:
        # ".", ".." and "dir/" name a directory, never a sibling file.
        directory_only = specifier in (".", "..") or specifier.endswith("/")
        for candidate in self._candidates(Path(directory), specifier):
            found = None if directory_only else self._load_as_file(candidate)
            found = found or self._load_as_directory(candidate)
            if found is not None:
                logger.debug("Resolved %r → %s", specifier, found)
                return found.resolve()
        raise ModuleResolutionError(Path(directory), specifier)

    def _candidates(self, directory: Path, specifier: str) -> list[Path]:
        if specifier.startswith((".", "/")):
            return [directory / specifier]
        candidates: list[Path] = []
        for ancestor in (directory, *directory.parents):
            modules = ancestor / constants.NODE_MODULES_DIR
            candidates.append(modules / specifier)
            candidates.append(modules / constants.TYPES_SCOPE_DIR / _types_name(specifier))
        return candidates

    def _load_as_file(self, candidate: Path) -> Path | None:
        if not candidate.name:
            return None
        for extension in self._extensions:
            path = candidate.with_name(candidate.name + extension)
            if path.is_file():
                return path
        return None

    def _load_as_directory(self, candidate: Path) -> Path | None:
        if not candidate.is_dir():
            return None
        manifest = candidate / constants.PACKAGE_JSON
        if manifest.is_file():
            for entry in self._main_entries(manifest):
                target = candidate / entry
                found = self._load_as_file(target) or self._load_as_index(target)
                if found is not None:
                    return found
        return self._load_as_index(candidate)

    def _load_as_index(self, directory: Path) -> Path | None:
        if not directory.is_dir():
            return None
        return self._load_as_file(directory / constants.INDEX_FILE)

    def _main_entries(self, manifest: Path) -> list[str]:
        try:
            data = json.loads(manifest.read_text(encoding="utf-8"))
        except (ValueError, OSError):
            logger.warning("Ignoring unreadable %s", manifest, exc_info=True)
            return []
        if not isinstance(data, dict):
            return []
        return [
            data[f] for f in self._main_fields if isinstance(data.get(f), str)
        ]


def _types_name(specifier: str) -> str:
    """``@scope/pkg`` lives at ``@types/scope__pkg``."""
    if specifier.startswith("@") and "/" in specifier:
        scope, _, rest = specifier[1:].partition("/")
        return f"{scope}__{rest}"
    return specifier
