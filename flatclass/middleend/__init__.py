"""Middleend package - linearization and super-call resolution."""

from .linearize import ConstructorChain, Linearization, MethodHistory, linearize
from .supers import (
    Rendering,
    ResolvedClass,
    SuperResolver,
    resolve_supers,
    super_references,
    synthesized_name,
)

__all__ = [
    "ConstructorChain",
    "Linearization",
    "MethodHistory",
    "Rendering",
    "ResolvedClass",
    "SuperResolver",
    "linearize",
    "resolve_supers",
    "super_references",
    "synthesized_name",
]
