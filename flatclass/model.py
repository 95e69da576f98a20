"""flatclass data model - classes, members and their identities.

Architecture:
    Source -> Frontend (parse, registry, hierarchy) -> [model] ->
    Middleend (linearize, supers) -> Backend (assemble) -> Source

Frontend builds one ClassDescriptor per top-level class. Middleend linearizes
a descriptor's ancestry into a fresh MemberSet. Nothing here is mutated after
the registry is built, except MemberSets produced by linearization.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

from tree_sitter import Node

MemberKind = Literal[
    "field", "method", "getter", "setter", "constructor", "static-block"
]
Visibility = Literal["public", "private"]
Slot = tuple[bool, Visibility, str]
ExportKind = Literal["none", "default", "named"]

# Kinds that live on the prototype (or the class itself when static) and so
# share one property slot per name.
PROTOTYPE_KINDS: tuple[str, ...] = ("method", "getter", "setter")


# ============================================================
# MEMBERS
# ============================================================


@dataclass(frozen=True)
class MemberIdentity:
    """Key that matches "the same member" across a chain.

    Invariants:
    - Two members of different classes in one chain with equal identity are
      an override, never independent members.
    - name keeps the leading '#' of private names.
    - A getter and a setter of one name are distinct identities sharing a slot.
    """

    is_static: bool
    kind: MemberKind
    visibility: Visibility
    name: str

    def slot(self) -> Slot:
        """Property slot shared by methods and accessors."""
        return (self.is_static, self.visibility, self.name)

    def __str__(self) -> str:
        prefix = ""
        if self.is_static:
            prefix = "static "
        return (prefix + self.kind + " " + self.name).rstrip()


@dataclass(eq=False)
class Member:
    """One member declaration and the class that declares it.

    leading holds the comments on the lines above the member, trailing a
    comment that follows it on its last line.
    """

    identity: MemberIdentity
    owner: str
    node: Node
    leading: list[Node] = field(default_factory=list)
    trailing: Node | None = None

    @property
    def name(self) -> str:
        return self.identity.name

    def name_node(self) -> Node | None:
        """Name node of a method or accessor, property node of a field."""
        if self.node.type == "method_definition":
            return self.node.child_by_field_name("name")
        if self.node.type == "field_definition":
            return self.node.child_by_field_name("property")
        return None


@dataclass
class MemberSet:
    """Members partitioned by category, each list in declaration order.

    The constructor is held apart; it is never part of a bucket. members()
    yields buckets in emission order, with the constructor between
    public_fields and accessors.
    """

    constructor: Member | None = None
    static_private_fields: list[Member] = field(default_factory=list)
    static_public_fields: list[Member] = field(default_factory=list)
    static_blocks: list[Member] = field(default_factory=list)
    static_private_methods: list[Member] = field(default_factory=list)
    static_public_methods: list[Member] = field(default_factory=list)
    private_fields: list[Member] = field(default_factory=list)
    public_fields: list[Member] = field(default_factory=list)
    accessors: list[Member] = field(default_factory=list)
    private_methods: list[Member] = field(default_factory=list)
    public_methods: list[Member] = field(default_factory=list)

    def bucket(self, identity: MemberIdentity) -> list[Member]:
        """The list a member with this identity belongs to."""
        kind = identity.kind
        private = identity.visibility == "private"
        if kind == "static-block":
            return self.static_blocks
        if kind == "getter" or kind == "setter":
            return self.accessors
        if kind == "field":
            if identity.is_static:
                return self.static_private_fields if private else self.static_public_fields
            return self.private_fields if private else self.public_fields
        if identity.is_static:
            return self.static_private_methods if private else self.static_public_methods
        return self.private_methods if private else self.public_methods

    def add(self, member: Member) -> None:
        if member.identity.kind == "constructor":
            self.constructor = member
            return
        self.bucket(member.identity).append(member)

    def find(self, identity: MemberIdentity) -> Member | None:
        if identity.kind == "constructor":
            return self.constructor
        for member in self.bucket(identity):
            if member.identity == identity:
                return member
        return None

    def remove(self, identity: MemberIdentity) -> Member | None:
        """Remove the member with this identity, returning it if present."""
        if identity.kind == "constructor":
            old = self.constructor
            self.constructor = None
            return old
        items = self.bucket(identity)
        i = 0
        while i < len(items):
            if items[i].identity == identity:
                return items.pop(i)
            i += 1
        return None

    def remove_slot(self, slot: Slot, keep_owner: str) -> None:
        """Drop methods and accessors of a slot not declared by keep_owner."""
        for items in (
            self.accessors,
            self.static_private_methods,
            self.static_public_methods,
            self.private_methods,
            self.public_methods,
        ):
            items[:] = [
                m
                for m in items
                if m.owner == keep_owner
                or m.identity.kind not in PROTOTYPE_KINDS
                or m.identity.slot() != slot
            ]

    def buckets(self) -> list[list[Member]]:
        """Buckets in emission order, excluding the constructor."""
        return [
            self.static_private_fields,
            self.static_public_fields,
            self.static_blocks,
            self.static_private_methods,
            self.static_public_methods,
            self.private_fields,
            self.public_fields,
            self.accessors,
            self.private_methods,
            self.public_methods,
        ]

    def members(self) -> list[Member]:
        """All members in emission order, constructor included."""
        result: list[Member] = []
        for items in self.buckets():
            # the constructor sits between the fields and the accessors
            if items is self.accessors and self.constructor is not None:
                result.append(self.constructor)
            result.extend(items)
        return result

    def identities(self) -> list[MemberIdentity]:
        return [m.identity for m in self.members()]

    def __len__(self) -> int:
        return len(self.members())


# ============================================================
# CLASSES
# ============================================================


@dataclass(eq=False)
class ClassDescriptor:
    """A top-level class declaration.

    Invariants:
    - parent is set only for a plain identifier heritage; heritage holds the
      raw text of any extends clause.
    - statement is the top-level node replaced in output: the class itself or
      its enclosing export statement.
    """

    name: str
    parent: str | None
    heritage: str | None
    export: ExportKind
    statement: Node
    node: Node
    members: MemberSet
    lineno: int = 0
    col: int = 0

    @property
    def exported(self) -> bool:
        return self.export != "none"

    def to_dict(self) -> dict[str, object]:
        members: list[str] = []
        for member in self.members.members():
            members.append(str(member.identity))
        return {
            "parent": self.parent,
            "heritage": self.heritage,
            "export": self.export,
            "exported": self.exported,
            "members": members,
        }
