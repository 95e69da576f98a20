"""Phase 1: Parse JavaScript source with tree-sitter.

Wraps the tree-sitter parse tree in a SourceUnit that owns the source bytes,
so later phases can slice member text and splice rewrites by byte offset.
"""

from __future__ import annotations

from typing import NamedTuple

import tree_sitter_javascript as tsjavascript
from tree_sitter import Language, Node, Parser

from ..diagnostics import CompileError

JS_LANGUAGE = Language(tsjavascript.language())

DEFAULT_INDENT = "    "


class Edit(NamedTuple):
    """Replace source bytes [start, end) with text."""

    start: int
    end: int
    text: str


class SourceUnit:
    """One parsed compilation unit."""

    def __init__(self, source: str, data: bytes, root: Node) -> None:
        self.source: str = source
        self.data: bytes = data
        self.root: Node = root

    def text(self, node: Node) -> str:
        return self.data[node.start_byte : node.end_byte].decode("utf-8")

    def slice(self, start: int, end: int) -> str:
        return self.data[start:end].decode("utf-8")

    def splice(self, start: int, end: int, edits: list[Edit]) -> str:
        """Render [start, end) with edits applied. Overlapping edits are dropped."""
        parts: list[str] = []
        pos = start
        for edit in sorted(edits, key=lambda e: (e.start, e.end)):
            if edit.start < pos or edit.end > end:
                continue
            parts.append(self.slice(pos, edit.start))
            parts.append(edit.text)
            pos = edit.end
        parts.append(self.slice(pos, end))
        return "".join(parts)

    def position(self, node: Node) -> tuple[int, int]:
        """1-based line and 0-based column of a node."""
        return (node.start_point[0] + 1, node.start_point[1])

    def line_start(self, offset: int) -> int:
        """Byte offset of the start of the line containing offset."""
        i = offset
        while i > 0 and self.data[i - 1 : i] != b"\n":
            i -= 1
        return i

    def newline(self) -> str:
        """Line terminator of the unit, taken from its first line break."""
        pos = self.data.find(b"\n")
        if pos > 0 and self.data[pos - 1 : pos] == b"\r":
            return "\r\n"
        return "\n"

    def indent_unit(self) -> str:
        """Indentation used for class members in this unit."""
        for stmt in self.root.named_children:
            cls = class_node(stmt)
            if cls is None:
                continue
            body = cls.child_by_field_name("body")
            if body is None:
                continue
            for member in body.named_children:
                if member.type == "comment":
                    continue
                start = self.line_start(member.start_byte)
                prefix = self.slice(start, member.start_byte)
                if prefix != "" and prefix.strip() == "":
                    return prefix
                break
        return DEFAULT_INDENT


def _first_error(node: Node) -> Node | None:
    if node.type == "ERROR" or node.is_missing:
        return node
    if not node.has_error:
        return None
    for child in node.children:
        found = _first_error(child)
        if found is not None:
            return found
    return node


def parse(source: str) -> SourceUnit:
    """Parse source text, raising CompileError for syntax errors."""
    data = source.encode("utf-8")
    parser = Parser(JS_LANGUAGE)
    tree = parser.parse(data)
    root = tree.root_node
    if root.has_error:
        bad = _first_error(root)
        if bad is None:
            bad = root
        lineno = bad.start_point[0] + 1
        col = bad.start_point[1]
        if bad.is_missing:
            raise CompileError("missing '" + bad.type + "'", lineno, col)
        raise CompileError("syntax error", lineno, col)
    return SourceUnit(source, data, root)


# ---------------------------------------------------------------------------
# Node helpers
# ---------------------------------------------------------------------------


def class_node(stmt: Node) -> Node | None:
    """Return the class_declaration of a top-level statement, if it is one."""
    if stmt.type == "class_declaration":
        return stmt
    if stmt.type == "export_statement":
        decl = stmt.child_by_field_name("declaration")
        if decl is None:
            # export default class ... may parse as a class expression
            decl = stmt.child_by_field_name("value")
        if decl is not None and decl.type in ("class_declaration", "class"):
            return decl
    return None


def export_kind(stmt: Node) -> str:
    """Export form of a top-level statement: none, default or named."""
    if stmt.type != "export_statement":
        return "none"
    for child in stmt.children:
        if child.type == "default" and not child.is_named:
            return "default"
    return "named"


def has_token(node: Node, token: str, before: Node | None = None) -> bool:
    """Check for an anonymous token child, optionally only before another child."""
    for child in node.children:
        if before is not None and child.start_byte >= before.start_byte:
            return False
        if child.type == token and not child.is_named:
            return True
    return False


def string_value(unit: SourceUnit, node: Node) -> str:
    """Contents of a string literal without its quotes."""
    raw = unit.text(node)
    if len(raw) >= 2 and raw[0] in "'\"" and raw[-1] == raw[0]:
        return raw[1:-1]
    return raw
