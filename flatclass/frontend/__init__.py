"""Frontend package - parses source and builds the class registry."""

from .hierarchy import find_cycle, validate_hierarchy
from .parse import Edit, SourceUnit, parse
from .registry import ClassRegistry, InheritanceGraph, build_registry

__all__ = [
    "ClassRegistry",
    "Edit",
    "InheritanceGraph",
    "SourceUnit",
    "build_registry",
    "find_cycle",
    "parse",
    "validate_hierarchy",
]
