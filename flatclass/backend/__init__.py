"""Backend package - emits flattened classes."""

from .assemble import ClassAssembler, EmitOptions, emit_unit, flatten_class, should_emit
from .extract import ExtractedClass, extract_classes
from .util import Emitter, render

__all__ = [
    "ClassAssembler",
    "EmitOptions",
    "Emitter",
    "ExtractedClass",
    "emit_unit",
    "extract_classes",
    "flatten_class",
    "render",
    "should_emit",
]
