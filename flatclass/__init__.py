"""flatclass - flatten JavaScript class hierarchies into parentless classes."""

from .backend.extract import ExtractedClass, extract_classes
from .compiler import CompileOptions, CompileResult, compile_classes, transform
from .diagnostics import (
    CIRCULAR_INHERITANCE,
    COMPILE_ERROR,
    MISSING_PARENT,
    UNRESOLVED_SUPER_CALL,
    CompileError,
    Diagnostic,
)

__all__ = [
    "CIRCULAR_INHERITANCE",
    "COMPILE_ERROR",
    "MISSING_PARENT",
    "UNRESOLVED_SUPER_CALL",
    "CompileError",
    "CompileOptions",
    "CompileResult",
    "Diagnostic",
    "ExtractedClass",
    "compile_classes",
    "extract_classes",
    "transform",
]
