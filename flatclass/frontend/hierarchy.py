"""Phase 3: Inheritance validation.

Report dangling parent references and inheritance cycles. Validation only
appends diagnostics; it never stops compilation.
"""

from __future__ import annotations

from ..diagnostics import CIRCULAR_INHERITANCE, MISSING_PARENT, DiagnosticList
from .registry import ClassRegistry


# ---------------------------------------------------------------------------
# Cycle detection
# ---------------------------------------------------------------------------


def find_cycle(registry: ClassRegistry, name: str) -> list[str] | None:
    """Follow parent links from name. Returns the path up to the revisit, or None."""
    visited: set[str] = set()
    path: list[str] = []
    current: str | None = name
    while current is not None:
        if current in visited:
            path.append(current)
            return path
        visited.add(current)
        path.append(current)
        desc = registry.get(current)
        if desc is None:
            current = None
        else:
            current = desc.parent
    return None


# ---------------------------------------------------------------------------
# Main entry point
# ---------------------------------------------------------------------------


def validate_hierarchy(registry: ClassRegistry, diagnostics: DiagnosticList) -> int:
    """Check every class with a parent. Returns the number of diagnostics added."""
    added = 0
    names = registry.names()
    i = 0
    while i < len(names):
        desc = registry.classes[names[i]]
        if desc.parent is None:
            i += 1
            continue
        if registry.get(desc.parent) is None:
            diagnostics.add(
                MISSING_PARENT,
                [desc.name, desc.parent],
                "class '"
                + desc.name
                + "' extends '"
                + desc.parent
                + "', which is not defined",
                desc.lineno,
                desc.col,
            )
            added += 1
        cycle = find_cycle(registry, desc.name)
        if cycle is not None:
            diagnostics.add(
                CIRCULAR_INHERITANCE,
                cycle,
                "circular inheritance: " + " -> ".join(cycle),
                desc.lineno,
                desc.col,
            )
            added += 1
        i += 1
    return added
