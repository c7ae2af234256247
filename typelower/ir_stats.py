"""Pure functions for computing statistics over lowered IR."""

from __future__ import annotations

from collections import Counter
from typing import Iterable

from typelower.ir import IRType, iter_children


def count_node_kinds(types: Iterable[IRType]) -> dict[str, int]:
    """Return a frequency map of IR node kinds, counting nested nodes too.

    Args:
        types: Root IR nodes, e.g. the values of a declaration table.

    Returns:
        A dict mapping node discriminators (``"record"``, ``"choice"``, ...)
        to their occurrence counts. Empty dict for an empty input.
    """
    counts: Counter[str] = Counter()
    stack = list(types)
    while stack:
        ir = stack.pop()
        counts[ir.node] += 1
        stack.extend(iter_children(ir))
    return dict(counts)
