"""Assemble flattened class declarations and splice them into the unit."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from ..diagnostics import DiagnosticList
from ..frontend.parse import SourceUnit
from ..frontend.registry import ClassRegistry
from ..middleend.linearize import linearize
from ..middleend.supers import ResolvedClass, resolve_supers
from ..model import ClassDescriptor
from .util import Emitter, render

logger = logging.getLogger(__name__)


@dataclass
class EmitOptions:
    """The subset of compile options the assembler reads."""

    exclude_intermediate: bool = True
    export_only: bool = False
    preserve_comments: bool = False
    export_all: bool = True


def should_emit(registry: ClassRegistry, desc: ClassDescriptor, options: EmitOptions) -> bool:
    """Output rule: exported classes, or chain-terminal ones when excluding intermediates."""
    if options.export_only:
        return desc.exported
    if desc.exported or not options.exclude_intermediate:
        return True
    return not registry.has_children(desc.name)


def export_prefix(desc: ClassDescriptor, options: EmitOptions) -> str:
    if desc.export == "default":
        return "export default "
    if desc.export == "named" or options.export_all:
        return "export "
    return ""


class ClassAssembler:
    """Emit one flattened class from its resolved members."""

    def __init__(self, unit: SourceUnit, options: EmitOptions) -> None:
        self.unit = unit
        self.options = options
        self.em = Emitter(unit.indent_unit(), unit.newline())

    def assemble(self, desc: ClassDescriptor, resolved: ResolvedClass) -> str:
        body = resolved.body()
        header = export_prefix(desc, self.options) + "class " + desc.name + " {"
        if len(body) == 0:
            return header + "}"
        self.em.line(header)
        self.em.indent += 1
        for rendering in body:
            node = rendering.member.node
            if self.options.preserve_comments and (
                rendering.synthesized or rendering.owner != desc.name
            ):
                self.em.line("// from " + rendering.owner)
            for comment in rendering.member.leading:
                self.em.line(render(self.unit, comment, [], self.em.prefix()))
            text = render(self.unit, node, rendering.edits, self.em.prefix())
            if node.type == "field_definition":
                text += ";"
            if rendering.member.trailing is not None:
                text += " " + self.unit.text(rendering.member.trailing)
            self.em.line(text)
        self.em.indent -= 1
        self.em.line("}")
        return self.em.output()


def flatten_class(
    unit: SourceUnit,
    registry: ClassRegistry,
    desc: ClassDescriptor,
    options: EmitOptions,
    diagnostics: DiagnosticList,
) -> str:
    """Linearize, resolve and assemble one class."""
    lin = linearize(registry, desc.name)
    resolved = resolve_supers(unit, registry, lin, diagnostics)
    return ClassAssembler(unit, options).assemble(desc, resolved)


def emit_unit(
    unit: SourceUnit,
    registry: ClassRegistry,
    options: EmitOptions,
    diagnostics: DiagnosticList,
) -> str:
    """Replace every registered class of the unit; keep all other text verbatim."""
    parts: list[str] = []
    last_end = 0
    for name in registry.names():
        desc = registry.classes[name]
        stmt = desc.statement
        parts.append(unit.slice(last_end, stmt.start_byte))
        last_end = stmt.end_byte
        if not should_emit(registry, desc, options):
            logger.debug("elided %s", name)
            continue
        parts.append(flatten_class(unit, registry, desc, options, diagnostics))
    parts.append(unit.slice(last_end, len(unit.data)))
    return "".join(parts)
