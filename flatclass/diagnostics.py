"""Diagnostics reported while flattening a compilation unit."""

from __future__ import annotations

MISSING_PARENT = "missing-parent"
CIRCULAR_INHERITANCE = "circular-inheritance"
UNRESOLVED_SUPER_CALL = "unresolved-super-call"
FIELD_INITIALIZATION_ORDER = "field-initialization-order"
COMPILE_ERROR = "compile-error"

KINDS: list[str] = [
    MISSING_PARENT,
    CIRCULAR_INHERITANCE,
    UNRESOLVED_SUPER_CALL,
    FIELD_INITIALIZATION_ORDER,
    COMPILE_ERROR,
]


class Diagnostic:
    """A problem found in the unit. Recoverable unless kind is compile-error."""

    def __init__(
        self, kind: str, classes: list[str], message: str, lineno: int, col: int
    ) -> None:
        self.kind: str = kind
        self.classes: list[str] = classes
        self.message: str = message
        self.lineno: int = lineno
        self.col: int = col

    def is_fatal(self) -> bool:
        return self.kind == COMPILE_ERROR

    def __repr__(self) -> str:
        severity = "warning"
        if self.is_fatal():
            severity = "error"
        return (
            severity
            + ":"
            + str(self.lineno)
            + ":"
            + str(self.col)
            + ": ["
            + self.kind
            + "] "
            + self.message
        )

    def to_dict(self) -> dict[str, object]:
        return {
            "kind": self.kind,
            "classes": list(self.classes),
            "message": self.message,
            "lineno": self.lineno,
            "col": self.col,
        }


class CompileError(Exception):
    """Unrecoverable error for a unit, with location info."""

    def __init__(self, msg: str, lineno: int, col: int):
        self.msg: str = msg
        self.lineno: int = lineno
        self.col: int = col
        super().__init__(msg)

    def diagnostic(self) -> Diagnostic:
        return Diagnostic(COMPILE_ERROR, [], self.msg, self.lineno, self.col)

    def __str__(self) -> str:
        return "error:" + str(self.lineno) + ":" + str(self.col) + ": " + self.msg


class DiagnosticList:
    """Accumulates diagnostics for one compilation."""

    def __init__(self) -> None:
        self._items: list[Diagnostic] = []

    def add(
        self, kind: str, classes: list[str], message: str, lineno: int = 0, col: int = 0
    ) -> Diagnostic:
        diag = Diagnostic(kind, classes, message, lineno, col)
        self._items.append(diag)
        return diag

    def items(self) -> list[Diagnostic]:
        return list(self._items)

    def of_kind(self, kind: str) -> list[Diagnostic]:
        return [d for d in self._items if d.kind == kind]

    def __len__(self) -> int:
        return len(self._items)
