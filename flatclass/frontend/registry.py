"""Phase 2: Class registry.

Scan top-level statements for class declarations (bare, default-exported,
named-exported), categorize their members and record the inheritance graph.
"""

from __future__ import annotations

from tree_sitter import Node

from ..diagnostics import CompileError
from ..model import ClassDescriptor, Member, MemberIdentity, MemberSet
from .parse import SourceUnit, class_node, export_kind, has_token, string_value


# ---------------------------------------------------------------------------
# Inheritance graph
# ---------------------------------------------------------------------------


class InheritanceGraph:
    """Child -> parent edges, with the reverse parent -> children lists."""

    def __init__(self) -> None:
        self.parent_of: dict[str, str] = {}
        self.children: dict[str, list[str]] = {}

    def add_edge(self, child: str, parent: str) -> None:
        self.parent_of[child] = parent
        if parent not in self.children:
            self.children[parent] = []
        self.children[parent].append(child)

    def has_children(self, name: str) -> bool:
        kids = self.children.get(name)
        return kids is not None and len(kids) > 0

    def edges(self) -> list[tuple[str, str]]:
        result: list[tuple[str, str]] = []
        keys = list(self.parent_of.keys())
        i = 0
        while i < len(keys):
            result.append((keys[i], self.parent_of[keys[i]]))
            i += 1
        return result

    def to_dict(self) -> dict[str, object]:
        d: dict[str, object] = {}
        keys = list(self.children.keys())
        i = 0
        while i < len(keys):
            d[keys[i]] = list(self.children[keys[i]])
            i += 1
        return d


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------


class ClassRegistry:
    """Class name -> descriptor, in declaration order."""

    def __init__(self) -> None:
        self.classes: dict[str, ClassDescriptor] = {}
        self.graph: InheritanceGraph = InheritanceGraph()

    def get(self, name: str) -> ClassDescriptor | None:
        return self.classes.get(name)

    def names(self) -> list[str]:
        return list(self.classes.keys())

    def has_children(self, name: str) -> bool:
        return self.graph.has_children(name)

    def to_dict(self) -> dict[str, object]:
        classes: dict[str, object] = {}
        keys = list(self.classes.keys())
        i = 0
        while i < len(keys):
            classes[keys[i]] = self.classes[keys[i]].to_dict()
            i += 1
        return {"classes": classes, "graph": self.graph.to_dict()}


# ---------------------------------------------------------------------------
# Member categorization
# ---------------------------------------------------------------------------


def _property_name(unit: SourceUnit, node: Node) -> tuple[str, str]:
    """Name and visibility of a property name node."""
    if node.type == "private_property_identifier":
        return (unit.text(node), "private")
    if node.type == "string":
        return (string_value(unit, node), "public")
    return (unit.text(node), "public")


def member_identity(unit: SourceUnit, node: Node) -> MemberIdentity | None:
    """Identity of a class body member, or None for non-members (comments, ';')."""
    if node.type == "class_static_block":
        return MemberIdentity(True, "static-block", "public", "")
    if node.type == "field_definition":
        prop = node.child_by_field_name("property")
        if prop is None:
            return None
        name, visibility = _property_name(unit, prop)
        is_static = has_token(node, "static", prop)
        return MemberIdentity(is_static, "field", visibility, name)
    if node.type != "method_definition":
        return None
    name_node = node.child_by_field_name("name")
    if name_node is None:
        return None
    name, visibility = _property_name(unit, name_node)
    static_get = has_token(node, "static get", name_node)
    is_static = static_get or has_token(node, "static", name_node)
    if static_get or has_token(node, "get", name_node):
        return MemberIdentity(is_static, "getter", visibility, name)
    if has_token(node, "set", name_node):
        return MemberIdentity(is_static, "setter", visibility, name)
    if (
        name == "constructor"
        and not is_static
        and name_node.type in ("property_identifier", "string")
    ):
        return MemberIdentity(False, "constructor", "public", name)
    return MemberIdentity(is_static, "method", visibility, name)


def collect_members(unit: SourceUnit, cls: Node, owner: str) -> MemberSet:
    """Categorize the body members of a class node into a MemberSet."""
    result = MemberSet()
    body = cls.child_by_field_name("body")
    if body is None:
        return result
    children = body.named_children
    pending: list[Node] = []
    previous: Member | None = None
    i = 0
    while i < len(children):
        child = children[i]
        if child.type == "comment":
            if (
                previous is not None
                and previous.trailing is None
                and len(pending) == 0
                and child.start_point[0] == previous.node.end_point[0]
            ):
                previous.trailing = child
            else:
                pending.append(child)
            i += 1
            continue
        identity = member_identity(unit, child)
        if identity is not None:
            if identity.kind != "static-block":
                # A repeated declaration replaces the earlier one
                result.remove(identity)
            previous = Member(identity, owner, child, pending)
            pending = []
            result.add(previous)
        i += 1
    return result


# ---------------------------------------------------------------------------
# Main entry point
# ---------------------------------------------------------------------------


def _heritage(unit: SourceUnit, cls: Node) -> tuple[str | None, str | None]:
    """Parent name (identifier only) and raw heritage text of a class."""
    children = cls.children
    i = 0
    while i < len(children):
        child = children[i]
        if child.type == "class_heritage":
            exprs = child.named_children
            text = unit.text(child)
            if text.startswith("extends"):
                text = text[len("extends") :].strip()
            if len(exprs) == 1 and exprs[0].type == "identifier":
                return (unit.text(exprs[0]), text)
            return (None, text)
        i += 1
    return (None, None)


def build_registry(unit: SourceUnit) -> ClassRegistry:
    """Build the class registry and inheritance graph of a unit."""
    registry = ClassRegistry()
    stmts = unit.root.named_children
    i = 0
    while i < len(stmts):
        stmt = stmts[i]
        cls = class_node(stmt)
        if cls is None:
            i += 1
            continue
        name_node = cls.child_by_field_name("name")
        if name_node is None:
            i += 1
            continue
        name = unit.text(name_node)
        lineno, col = unit.position(cls)
        if name in registry.classes:
            raise CompileError(
                "class '" + name + "' has already been declared", lineno, col
            )
        parent, heritage = _heritage(unit, cls)
        registry.classes[name] = ClassDescriptor(
            name=name,
            parent=parent,
            heritage=heritage,
            export=export_kind(stmt),
            statement=stmt,
            node=cls,
            members=collect_members(unit, cls, name),
            lineno=lineno,
            col=col,
        )
        if parent is not None:
            registry.graph.add_edge(name, parent)
        i += 1
    return registry
