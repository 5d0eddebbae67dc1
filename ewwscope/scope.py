"""Scopes, listeners, scope indices and the attribute expressions they evaluate."""

from __future__ import annotations

import enum
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any


class ScopeGraphError(Exception):
    """Raised when a scope or variable cannot be found or the graph is inconsistent."""


@dataclass(frozen=True, order=True)
class ScopeIndex:
    """Identifier of a scope within a scope graph."""

    value: int

    def advance(self) -> ScopeIndex:
        """Return the index that follows this one."""
        return ScopeIndex(self.value + 1)

    def __repr__(self) -> str:
        return f"ScopeIndex({self.value})"


class ExprKind(enum.Enum):
    LITERAL = "literal"
    VAR_REF = "var_ref"
    CONCAT = "concat"


@dataclass(frozen=True)
class Expression:
    """An attribute expression: a literal, a variable reference, or a concatenation."""

    kind: ExprKind
    value: str = ""
    parts: tuple[Expression, ...] = ()

    @classmethod
    def literal(cls, value: str) -> Expression:
        return cls(ExprKind.LITERAL, value=value)

    @classmethod
    def var_ref(cls, name: str) -> Expression:
        return cls(ExprKind.VAR_REF, value=name)

    @classmethod
    def concat(cls, *parts: Expression) -> Expression:
        return cls(ExprKind.CONCAT, parts=tuple(parts))

    def collect_var_refs(self) -> list[str]:
        """Names of all variables referenced, in order of appearance."""
        if self.kind is ExprKind.VAR_REF:
            return [self.value]
        return [name for part in self.parts for name in part.collect_var_refs()]

    def references_var(self, var_name: str) -> bool:
        return var_name in self.collect_var_refs()

    def eval(self, values: Mapping[str, Any]) -> Any:
        """Evaluate using the given variable values; unknown variables raise ScopeGraphError."""
        if self.kind is ExprKind.LITERAL:
            return self.value
        if self.kind is ExprKind.VAR_REF:
            try:
                return values[self.value]
            except KeyError:
                raise ScopeGraphError(f"Unknown variable {self.value}") from None
        return "".join(str(part.eval(values)) for part in self.parts)


@dataclass(eq=False)
class Listener:
    """A callback run with the current values of its needed variables whenever one changes."""

    needed_variables: list[str]
    f: Callable[[Any, dict[str, Any]], None] = field(repr=False)

    def __repr__(self) -> str:
        return f"Listener(needed_variables={self.needed_variables!r}, f='function')"


@dataclass
class Scope:
    """Variables of one scope, the listeners on them and the scope that created it."""

    name: str
    ancestor: ScopeIndex | None
    data: dict[str, Any]
    listeners: dict[str, list[Listener]] = field(default_factory=dict)
    node_index: ScopeIndex = ScopeIndex(0)