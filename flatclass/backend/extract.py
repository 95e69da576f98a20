"""Split a compiled unit into one self-contained fragment per class."""

from __future__ import annotations

from dataclasses import dataclass

from ..frontend.parse import class_node, parse


@dataclass
class ExtractedClass:
    name: str
    code: str


def extract_classes(code: str) -> list[ExtractedClass]:
    """One `export default class ...` fragment per named top-level class."""
    unit = parse(code)
    result: list[ExtractedClass] = []
    for stmt in unit.root.named_children:
        cls = class_node(stmt)
        if cls is None:
            continue
        name_node = cls.child_by_field_name("name")
        if name_node is None:
            continue
        result.append(
            ExtractedClass(unit.text(name_node), "export default " + unit.text(cls))
        )
    return result
