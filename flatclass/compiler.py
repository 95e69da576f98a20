"""Compilation pipeline: source -> registry -> flattened classes -> source."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, fields

from .backend.assemble import EmitOptions, emit_unit
from .diagnostics import Diagnostic, DiagnosticList
from .frontend.hierarchy import validate_hierarchy
from .frontend.parse import parse
from .frontend.registry import ClassRegistry, InheritanceGraph, build_registry

logger = logging.getLogger(__name__)

# Option names accepted by CompileOptions.from_dict besides the field names
_CAMEL_CASE: dict[str, str] = {
    "excludeIntermediate": "exclude_intermediate",
    "exportOnly": "export_only",
    "preserveComments": "preserve_comments",
    "validateInheritance": "validate_inheritance",
    "exportAll": "export_all",
}


@dataclass
class CompileOptions:
    """Options for one compilation.

    exclude_intermediate: omit classes that are extended by another class.
    export_only: omit classes that were not exported in the source.
    preserve_comments: mark inherited and synthesized members with their origin.
    validate_inheritance: report missing parents and cycles.
    export_all: emit non-exported classes as named exports.
    """

    exclude_intermediate: bool = True
    export_only: bool = False
    preserve_comments: bool = False
    validate_inheritance: bool = True
    export_all: bool = True

    @classmethod
    def from_dict(cls, values: dict[str, object]) -> CompileOptions:
        known = {f.name for f in fields(cls)}
        kwargs: dict[str, bool] = {}
        for key, value in values.items():
            name = _CAMEL_CASE.get(key, key)
            if name not in known:
                raise ValueError("unknown option '" + key + "'")
            if not isinstance(value, bool):
                raise ValueError(
                    "option '" + key + "' must be true or false, got " + repr(value)
                )
            kwargs[name] = value
        return cls(**kwargs)

    def emit_options(self) -> EmitOptions:
        return EmitOptions(
            exclude_intermediate=self.exclude_intermediate,
            export_only=self.export_only,
            preserve_comments=self.preserve_comments,
            export_all=self.export_all,
        )


@dataclass
class CompileResult:
    """Output of one compilation. Check diagnostics even when code is produced."""

    code: str
    diagnostics: list[Diagnostic] = field(default_factory=list)
    registry: ClassRegistry = field(default_factory=ClassRegistry)

    @property
    def graph(self) -> InheritanceGraph:
        return self.registry.graph

    def ok(self) -> bool:
        return len(self.diagnostics) == 0

    def to_dict(self) -> dict[str, object]:
        d = self.registry.to_dict()
        d["diagnostics"] = [diag.to_dict() for diag in self.diagnostics]
        d["code"] = self.code
        return d


def compile_classes(source: str, options: CompileOptions | None = None) -> CompileResult:
    """Flatten every class of a unit. Raises CompileError for unparseable input."""
    if options is None:
        options = CompileOptions()
    diagnostics = DiagnosticList()
    unit = parse(source)
    registry = build_registry(unit)
    logger.debug("registry: %d classes", len(registry.classes))
    if options.validate_inheritance:
        validate_hierarchy(registry, diagnostics)
    code = emit_unit(unit, registry, options.emit_options(), diagnostics)
    for diag in diagnostics.items():
        logger.debug("%r", diag)
    return CompileResult(code, diagnostics.items(), registry)


def transform(source: str, **options: bool) -> str:
    """Flatten a unit and return only the code."""
    return compile_classes(source, CompileOptions.from_dict(options)).code
