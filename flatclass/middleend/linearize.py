"""Linearization: resolve one class's full member set along its ancestor chain."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from ..frontend.registry import ClassRegistry
from ..model import PROTOTYPE_KINDS, Member, MemberIdentity, MemberSet

logger = logging.getLogger(__name__)

MethodHistory = dict[MemberIdentity, list[Member]]
ConstructorChain = list[Member]


@dataclass
class Linearization:
    """Override-resolved members of one class, scoped to its own ancestry.

    chain lists the classes that contributed, most-base first. history and
    constructors are ordered the same way.
    """

    target: str
    members: MemberSet = field(default_factory=MemberSet)
    history: MethodHistory = field(default_factory=dict)
    constructors: ConstructorChain = field(default_factory=list)
    chain: list[str] = field(default_factory=list)

    def depth(self, owner: str) -> int:
        """Position of owner in the chain, -1 when absent."""
        if owner in self.chain:
            return self.chain.index(owner)
        return -1

    def ancestor_entry(self, identity: MemberIdentity, owner: str) -> Member | None:
        """Most derived implementation of identity above owner in the chain."""
        limit = self.depth(owner)
        if limit < 0:
            return None
        for entry in reversed(self.history.get(identity, [])):
            if self.depth(entry.owner) < limit:
                return entry
        return None

    def is_rooted(self, registry: ClassRegistry) -> bool:
        """True when the chain starts at a class with no extends clause at all."""
        if len(self.chain) == 0:
            return False
        base = registry.get(self.chain[0])
        return base is not None and base.heritage is None


def _merge(lin: Linearization, own: MemberSet) -> None:
    """Merge one class's own members on top of its ancestors'."""
    own_members = own.members()
    slots = set()
    for member in own_members:
        if member.identity.kind in PROTOTYPE_KINDS:
            slots.add(member.identity.slot())
    for slot in slots:
        lin.members.remove_slot(slot, own_members[0].owner)
    for member in own_members:
        identity = member.identity
        if identity.kind == "constructor":
            lin.constructors.append(member)
            continue
        if identity.kind != "static-block":
            lin.members.remove(identity)
            lin.history.setdefault(identity, []).append(member)
        lin.members.add(member)


def _collect(
    registry: ClassRegistry, name: str, visited: set[str], lin: Linearization
) -> None:
    if name in visited:
        logger.debug("cycle at %s while linearizing %s", name, lin.target)
        return
    visited.add(name)
    desc = registry.get(name)
    if desc is None:
        return
    if desc.parent is not None:
        _collect(registry, desc.parent, visited, lin)
    lin.chain.append(name)
    if len(desc.members) > 0:
        _merge(lin, desc.members)


def linearize(registry: ClassRegistry, class_name: str) -> Linearization:
    """Linearize class_name: ancestors base-first, overrides replaced."""
    lin = Linearization(class_name)
    _collect(registry, class_name, set(), lin)
    lin.members.constructor = None
    if len(lin.constructors) > 0:
        lin.members.constructor = lin.constructors[-1]
    logger.debug(
        "linearized %s: chain=%s members=%d constructors=%d",
        class_name,
        " -> ".join(lin.chain),
        len(lin.members),
        len(lin.constructors),
    )
    return lin
