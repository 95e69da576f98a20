"""Shared utilities for emitting flattened source."""

from __future__ import annotations

from tree_sitter import Node

from ..frontend.parse import Edit, SourceUnit


class Emitter:
    """Base class for code emitters with indentation tracking."""

    def __init__(self, indent_str: str = "    ", newline: str = "\n") -> None:
        self.indent: int = 0
        self.lines: list[str] = []
        self._indent_str = indent_str
        self._newline = newline

    def prefix(self) -> str:
        return self._indent_str * self.indent

    def line(self, text: str = "") -> None:
        """Emit a line with current indentation."""
        if text:
            self.lines.append(self.prefix() + text)
        else:
            self.lines.append("")

    def output(self) -> str:
        """Return the accumulated output as a string."""
        return self._newline.join(self.lines)


def _template_spans(node: Node) -> list[tuple[int, int]]:
    """Byte spans of template literals under node."""
    result: list[tuple[int, int]] = []
    for child in node.children:
        if child.type == "template_string":
            result.append((child.start_byte, child.end_byte))
        else:
            result.extend(_template_spans(child))
    return result


def _inside(offset: int, spans: list[tuple[int, int]]) -> bool:
    for start, end in spans:
        if start < offset < end:
            return True
    return False


def _overlaps(start: int, end: int, edits: list[Edit]) -> bool:
    for edit in edits:
        if edit.start <= start < edit.end or start <= edit.start < max(end, start + 1):
            return True
    return False


def reindent_edits(
    unit: SourceUnit, node: Node, edits: list[Edit], indent: str
) -> list[Edit]:
    """Edits moving continuation lines of node from its own column to indent.

    Lines starting inside a template literal are left alone, as are lines
    touched by an existing edit.
    """
    column = node.start_point[1]
    data = unit.data
    templates = _template_spans(node)
    result: list[Edit] = []
    pos = data.find(b"\n", node.start_byte, node.end_byte)
    while pos != -1:
        line_start = pos + 1
        if _inside(line_start, templates):
            pos = data.find(b"\n", line_start, node.end_byte)
            continue
        j = line_start
        while j < node.end_byte and data[j : j + 1] in (b" ", b"\t"):
            j += 1
        blank = j >= len(data) or data[j : j + 1] in (b"\n", b"\r")
        if blank:
            end = j
            text = ""
        else:
            end = min(j, line_start + column)
            text = indent
        if not _overlaps(line_start, end, edits):
            result.append(Edit(line_start, end, text))
        pos = data.find(b"\n", line_start, node.end_byte)
    return result


def render(unit: SourceUnit, node: Node, edits: list[Edit], indent: str) -> str:
    """Source of node with edits applied, continuation lines re-indented."""
    all_edits = list(edits) + reindent_edits(unit, node, edits, indent)
    return unit.splice(node.start_byte, node.end_byte, all_edits)
