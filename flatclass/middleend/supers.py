"""Super-call resolution: turn super references into direct calls on this.

Every `super.name` reference in a flattened class is resolved against the
MethodHistory of the class's linearization. The ancestor implementation is
copied into the class as `_super_<Owner>_<name>` and the reference becomes
`this._super_<Owner>_<name>`. Copies are themselves rewritten, so multi-level
super chains unwind completely.

Constructors are stitched the same way: every constructor in the chain but
the last becomes a method `_super_<Owner>_constructor`, and each `super(...)`
call is pointed at the previous link.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field

from tree_sitter import Node

from ..diagnostics import (
    FIELD_INITIALIZATION_ORDER,
    UNRESOLVED_SUPER_CALL,
    DiagnosticList,
)
from ..frontend.parse import Edit, SourceUnit, string_value
from ..frontend.registry import ClassRegistry
from ..model import Member, MemberIdentity, Slot
from .linearize import Linearization

logger = logging.getLogger(__name__)

SUPER_PREFIX = "_super_"

CONSTRUCTOR_SLOT: Slot = (False, "public", "constructor")

# super inside these is bound to something other than the member being scanned
SCOPE_BOUNDARIES = frozenset(
    {
        "class_declaration",
        "class",
        "function_declaration",
        "function_expression",
        "function",
        "generator_function_declaration",
        "generator_function",
        "method_definition",
    }
)

_NOT_IDENT = re.compile(r"[^A-Za-z0-9_$]")


def synthesized_name(owner: str, name: str) -> str:
    """Base name for an ancestor implementation.

    Not unique on its own: owner A with x_y and owner A_x with y share a base
    name. SuperResolver.claim_name suffixes it until it is free.
    """
    return SUPER_PREFIX + owner + "_" + _NOT_IDENT.sub("_", name)


@dataclass(eq=False)
class Rendering:
    """A member to emit: the declaration it is cut from and the edits to apply."""

    member: Member
    edits: list[Edit] = field(default_factory=list)
    name: str = ""
    synthesized: bool = False

    @property
    def owner(self) -> str:
        return self.member.owner


@dataclass
class ResolvedClass:
    """Everything the assembler needs to emit one flattened class."""

    target: str
    members: list[Rendering] = field(default_factory=list)
    constructor: Rendering | None = None
    synthesized: list[Rendering] = field(default_factory=list)
    constructors: list[Rendering] = field(default_factory=list)

    def body(self) -> list[Rendering]:
        """Renderings in emission order."""
        result: list[Rendering] = []
        for rendering in self.members:
            if rendering.member.identity.kind == "constructor":
                if self.constructor is not None:
                    result.append(self.constructor)
                continue
            result.append(rendering)
        result.extend(self.synthesized)
        result.extend(self.constructors)
        return result


def super_references(node: Node, skip: Node | None = None) -> list[Node]:
    """Find super references under node, not crossing scope boundaries.

    Returns member_expression / subscript_expression nodes whose object is
    super, and call_expression nodes whose function is super.
    """
    result: list[Node] = []
    for child in node.children:
        if skip is not None and child.start_byte == skip.start_byte and child.type == skip.type:
            continue
        if child.type in SCOPE_BOUNDARIES:
            continue
        if child.type in ("member_expression", "subscript_expression"):
            obj = child.child_by_field_name("object")
            if obj is not None and obj.type == "super":
                result.append(child)
                index = child.child_by_field_name("index")
                if index is not None:
                    result.extend(super_references(index))
                continue
        if child.type == "call_expression":
            func = child.child_by_field_name("function")
            if func is not None and func.type == "super":
                result.append(child)
                args = child.child_by_field_name("arguments")
                if args is not None:
                    result.extend(super_references(args))
                continue
        result.extend(super_references(child))
    return result


def _reads_this(node: Node) -> bool:
    """True when node evaluates this eagerly. Arrow functions defer it."""
    if node.type == "this":
        return True
    if node.type in SCOPE_BOUNDARIES or node.type == "arrow_function":
        return False
    for child in node.children:
        if _reads_this(child):
            return True
    return False


def _same_node(a: Node | None, b: Node) -> bool:
    return (
        a is not None
        and a.start_byte == b.start_byte
        and a.end_byte == b.end_byte
        and a.type == b.type
    )


def _member_label(member: Member) -> str:
    kind = member.identity.kind
    if kind == "constructor":
        return member.owner + ".constructor"
    if kind == "static-block":
        return member.owner + " static block"
    return member.owner + "." + member.name


class SuperResolver:
    """Resolve the super references of one linearized class."""

    def __init__(
        self,
        unit: SourceUnit,
        registry: ClassRegistry,
        lin: Linearization,
        diagnostics: DiagnosticList,
    ) -> None:
        self.unit = unit
        self.registry = registry
        self.lin = lin
        self.diagnostics = diagnostics
        self._by_key: dict[tuple[str, MemberIdentity], Rendering] = {}
        self._reported: set[int] = set()
        # Getter and setter copies of one ancestor slot share a name
        self._names: dict[tuple[str, Slot], str] = {}
        self._taken: dict[bool, set[str]] = {False: set(), True: set()}
        for member in lin.members.members():
            if member.identity.kind != "static-block":
                self._taken[member.identity.is_static].add(member.name)
        self.result = ResolvedClass(lin.target)

    # ---------- Public API ----------

    def claim_name(self, owner: str, slot: Slot) -> str:
        """Unique synthesized name for an ancestor slot, stable per (owner, slot)."""
        key = (owner, slot)
        existing = self._names.get(key)
        if existing is not None:
            return existing
        is_static = slot[0]
        base = synthesized_name(owner, slot[2])
        name = base
        n = 2
        while name in self._taken[is_static]:
            name = base + "_" + str(n)
            n += 1
        if name != base:
            logger.debug("%s: %s is taken, using %s", self.lin.target, base, name)
        self._taken[is_static].add(name)
        self._names[key] = name
        return name

    def resolve(self) -> ResolvedClass:
        # A parentless class on its own has nothing to resolve
        active = len(self.lin.chain) > 1 or not self.lin.is_rooted(self.registry)
        for member in self.lin.members.members():
            if member.identity.kind == "constructor":
                self.result.members.append(Rendering(member))
                continue
            edits: list[Edit] = []
            if active:
                edits = self._rewrite_references(member, member.identity.is_static)
            self.result.members.append(Rendering(member, edits))
        if active:
            self._stitch_constructors()
            self._check_field_order()
        elif self.lin.members.constructor is not None:
            self.result.constructor = Rendering(self.lin.members.constructor)
        return self.result

    # ---------- Method super-references ----------

    def _rewrite_references(self, member: Member, is_static: bool) -> list[Edit]:
        edits: list[Edit] = []
        for ref in super_references(member.node, member.name_node()):
            if ref.type == "call_expression":
                continue
            edit = self._rewrite_reference(member, ref, is_static)
            if edit is not None:
                edits.append(edit)
        return edits

    def _rewrite_reference(
        self, member: Member, ref: Node, is_static: bool
    ) -> Edit | None:
        name = self._reference_name(ref)
        if name is None:
            prop = ref.child_by_field_name("property")
            reason = " is computed and cannot be resolved statically"
            if prop is not None and prop.type == "private_property_identifier":
                reason = " is private and not reachable through super"
            self._unresolved(member, ref, "super member in " + _member_label(member) + reason)
            return None
        parent = ref.parent
        mode = "get"
        if parent is not None:
            if parent.type == "assignment_expression" and _same_node(
                parent.child_by_field_name("left"), ref
            ):
                mode = "set"
            elif parent.type in ("augmented_assignment_expression", "update_expression"):
                self._unresolved(
                    member,
                    ref,
                    "compound assignment to super."
                    + name
                    + " in "
                    + _member_label(member)
                    + " cannot be rewritten",
                )
                return None
        entry = self._lookup(name, mode, is_static, member.owner)
        if entry is None:
            self._unresolved(
                member,
                ref,
                "super."
                + name
                + " in "
                + _member_label(member)
                + " has no ancestor implementation; left unrewritten",
            )
            return None
        synth = self._synthesize(entry)
        return Edit(ref.start_byte, ref.end_byte, "this." + synth.name)

    def _reference_name(self, ref: Node) -> str | None:
        if ref.type == "member_expression":
            prop = ref.child_by_field_name("property")
            if prop is None or prop.type == "private_property_identifier":
                return None
            return self.unit.text(prop)
        index = ref.child_by_field_name("index")
        if index is not None and index.type == "string":
            return string_value(self.unit, index)
        return None

    def _lookup(
        self, name: str, mode: str, is_static: bool, owner: str
    ) -> Member | None:
        if mode == "set":
            kinds = ["setter"]
        else:
            kinds = ["method", "getter"]
        for kind in kinds:
            identity = MemberIdentity(is_static, kind, "public", name)
            entry = self.lin.ancestor_entry(identity, owner)
            if entry is not None:
                return entry
        return None

    def _synthesize(self, entry: Member) -> Rendering:
        key = (entry.owner, entry.identity)
        existing = self._by_key.get(key)
        if existing is not None:
            return existing
        name = self.claim_name(entry.owner, entry.identity.slot())
        rendering = Rendering(entry, [], name, True)
        self._by_key[key] = rendering
        self.result.synthesized.append(rendering)
        logger.debug("%s: synthesized %s from %s", self.lin.target, name, entry.owner)
        name_node = entry.name_node()
        if name_node is not None:
            rendering.edits.append(Edit(name_node.start_byte, name_node.end_byte, name))
        rendering.edits.extend(
            self._rewrite_references(entry, entry.identity.is_static)
        )
        return rendering

    # ---------- Constructor super-calls ----------

    def _stitch_constructors(self) -> None:
        chain = self.lin.constructors
        names: list[str] = []
        for ctor in chain[:-1]:
            names.append(self.claim_name(ctor.owner, CONSTRUCTOR_SLOT))
        i = 0
        while i < len(chain):
            ctor = chain[i]
            callee: str | None = None
            if i > 0:
                callee = names[i - 1]
            edits = self._rewrite_references(ctor, False)
            edits.extend(self._rewrite_super_calls(ctor, callee))
            if i == len(chain) - 1:
                self.result.constructor = Rendering(ctor, edits)
            else:
                name = names[i]
                name_node = ctor.name_node()
                if name_node is not None:
                    edits.append(Edit(name_node.start_byte, name_node.end_byte, name))
                self.result.constructors.append(Rendering(ctor, edits, name, True))
            i += 1

    def _rewrite_super_calls(self, ctor: Member, callee: str | None) -> list[Edit]:
        edits: list[Edit] = []
        for ref in super_references(ctor.node, ctor.name_node()):
            if ref.type != "call_expression":
                continue
            edits.extend(self._rewrite_super_call(ref, callee))
        return edits

    def _rewrite_super_call(self, call: Node, callee: str | None) -> list[Edit]:
        func = call.child_by_field_name("function")
        args = call.child_by_field_name("arguments")
        if func is None or args is None:
            return []
        parent = call.parent
        is_statement = parent is not None and parent.type == "expression_statement"
        has_args = len(args.named_children) > 0
        has_spread = False
        for arg in args.named_children:
            if arg.type == "spread_element":
                has_spread = True
        if callee is not None:
            if is_statement:
                return [Edit(func.start_byte, func.end_byte, "this." + callee)]
            # super(...) evaluates to this
            return [
                Edit(func.start_byte, func.end_byte, "(this." + callee),
                Edit(call.end_byte, call.end_byte, ", this)"),
            ]
        # Base of the chain: nothing left to call, keep argument side effects
        if is_statement and parent is not None:
            if has_args and not has_spread:
                return [Edit(func.start_byte, func.end_byte, "void ")]
            start, end = self._statement_span(parent)
            return [Edit(start, end, "")]
        if has_args and not has_spread:
            return [
                Edit(func.start_byte, func.end_byte, "(void "),
                Edit(call.end_byte, call.end_byte, ", this)"),
            ]
        return [Edit(call.start_byte, call.end_byte, "this")]

    def _statement_span(self, stmt: Node) -> tuple[int, int]:
        """Span that removes a statement, taking its whole line when it is alone."""
        data = self.unit.data
        start = stmt.start_byte
        end = stmt.end_byte
        line_start = self.unit.line_start(start)
        alone_before = data[line_start:start].strip() == b""
        j = end
        while j < len(data) and data[j : j + 1] in (b" ", b"\t"):
            j += 1
        k = j
        if data[k : k + 2] == b"\r\n":
            k += 1
        if alone_before and (k >= len(data) or data[k : k + 1] == b"\n"):
            return (line_start, min(k + 1, len(data)))
        return (start, j)

    def _check_field_order(self) -> None:
        """Report field initializers that read this set by an ancestor constructor.

        Flattened fields initialize before the stitched constructor runs, so
        such a field sees state its ancestors have not set yet.
        """
        for member in self.lin.members.members():
            identity = member.identity
            if identity.kind != "field" or identity.is_static:
                continue
            value = member.node.child_by_field_name("value")
            if value is None or not _reads_this(value):
                continue
            depth = self.lin.depth(member.owner)
            for ctor in self.lin.constructors:
                if self.lin.depth(ctor.owner) < depth:
                    lineno, col = self.unit.position(member.node)
                    self.diagnostics.add(
                        FIELD_INITIALIZATION_ORDER,
                        [self.lin.target, member.owner, ctor.owner],
                        "initializer of "
                        + _member_label(member)
                        + " reads this and now runs before "
                        + ctor.owner
                        + ".constructor",
                        lineno,
                        col,
                    )
                    break

    # ---------- Diagnostics ----------

    def _unresolved(self, member: Member, ref: Node, message: str) -> None:
        if ref.start_byte in self._reported:
            return
        self._reported.add(ref.start_byte)
        lineno, col = self.unit.position(ref)
        self.diagnostics.add(
            UNRESOLVED_SUPER_CALL, [self.lin.target, member.owner], message, lineno, col
        )


def resolve_supers(
    unit: SourceUnit,
    registry: ClassRegistry,
    lin: Linearization,
    diagnostics: DiagnosticList,
) -> ResolvedClass:
    """Resolve super references and constructor chaining for one class."""
    return SuperResolver(unit, registry, lin, diagnostics).resolve()
