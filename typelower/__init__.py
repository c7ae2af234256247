"""TypeScript type declarations → portable type IR."""

from .api import (  # noqa: F401
    BuildResult,
    build_modules,
    dump_modules,
    dump_types,
    ir_stats,
    lower_source,
)
from .build_types import BuildConfig  # noqa: F401
