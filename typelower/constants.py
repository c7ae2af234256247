"""Named constants — eliminates magic strings across the codebase."""

from __future__ import annotations

LANGUAGE_TYPESCRIPT = "typescript"
LANGUAGE_TSX = "tsx"

TSX_SUFFIX = ".tsx"

DEFAULT_EXTENSIONS: tuple[str, ...] = (".d.ts", ".ts", "")
DEFAULT_MAIN_FIELDS: tuple[str, ...] = ("types", "typings")

NODE_MODULES_DIR = "node_modules"
TYPES_SCOPE_DIR = "@types"
PACKAGE_JSON = "package.json"
INDEX_FILE = "index"

COMMENT_TYPES: frozenset[str] = frozenset({"comment", "html_comment"})

REASON_NOT_FOUND = "name not found"
REASON_IMPORTED = "defined in another module"
