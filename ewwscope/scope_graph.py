"""A graph of scopes through which variable values and attribute updates propagate.

Each scope may inherit from one superscope, gaining access to its variables,
and may be created by one ancestor scope, which provides attributes to it.
Scopes without a variable of their own record, on their inheritance edge,
every variable they reference from the superscope. This holds at every step of
a chain of inheritance.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from .graph_internal import ProvidedAttr, ScopeGraphInternal
from .scope import Expression, Listener, Scope, ScopeGraphError, ScopeIndex

logger = logging.getLogger(__name__)


class ScopeGraphEvent:
    """An event to be applied to a scope graph."""


@dataclass(frozen=True)
class RemoveScope(ScopeGraphEvent):
    """Request to remove a scope and all of its descendants."""

    scope_index: ScopeIndex


class ScopeGraph:
    """Scopes that inherit variables from each other and provide attributes to descendants."""

    def __init__(
        self,
        global_vars: Mapping[str, Any],
        event_sender: Callable[[ScopeGraphEvent], None] | None = None,
    ) -> None:
        self.graph = ScopeGraphInternal()
        self.event_sender = event_sender
        self.root_index = self._add_global_scope(global_vars)

    def _add_global_scope(self, global_vars: Mapping[str, Any]) -> ScopeIndex:
        root_index = self.graph.add_scope(Scope(name="global", ancestor=None, data=dict(global_vars)))
        self.graph.scopes[root_index].node_index = root_index
        return root_index

    def update_global_value(self, var_name: str, value: Any) -> None:
        self.update_value(self.root_index, var_name, value)

    def handle_scope_graph_event(self, event: ScopeGraphEvent) -> None:
        if isinstance(event, RemoveScope):
            self.remove_scope(event.scope_index)
        else:
            raise TypeError(f"Unknown scope graph event: {event!r}")

    def clear(self, global_vars: Mapping[str, Any]) -> None:
        """Remove all scopes and start over with a fresh global scope."""
        self.graph.clear()
        self.root_index = self._add_global_scope(global_vars)

    def remove_scope(self, scope_index: ScopeIndex) -> None:
        self.graph.remove_scope(scope_index)

    def validate(self) -> None:
        self.graph.validate()

    def visualize(self) -> str:
        return self.graph.visualize()

    def currently_used_globals(self) -> set[str]:
        return self.variables_used_in_self_or_subscopes_of(self.root_index)

    def currently_unused_globals(self) -> set[str]:
        return set(self.global_scope().data) - self.currently_used_globals()

    def scope_at(self, index: ScopeIndex) -> Scope | None:
        return self.graph.scope_at(index)

    def global_scope(self) -> Scope:
        scope = self.graph.scope_at(self.root_index)
        if scope is None:
            raise ScopeGraphError("No root scope in graph")
        return scope

    def evaluate_in_scope(self, index: ScopeIndex, expression: Expression) -> Any:
        """Evaluate an expression with the variables visible in a scope.

        Raises ScopeGraphError if a referenced variable is not available; any other
        evaluation failure is logged and yields an empty string.
        """
        needed = self.lookup_variables_in_scope(index, expression.collect_var_refs())
        try:
            return expression.eval(needed)
        except Exception as err:  # noqa: BLE001 - evaluation failures must not abort updates
            logger.error("Error evaluating expression %r: %s", expression, err)
            return ""

    def register_new_scope(
        self,
        name: str,
        superscope: ScopeIndex | None,
        calling_scope: ScopeIndex,
        attributes: Mapping[str, Expression],
    ) -> ScopeIndex:
        """Create a scope whose attributes are evaluated in ``calling_scope``.

        All attributes are evaluated before the graph is touched, so a failure
        leaves the graph unchanged.
        """
        scope_variables = {
            attr_name: self.evaluate_in_scope(calling_scope, expression)
            for attr_name, expression in attributes.items()
        }

        new_index = self.graph.add_scope(Scope(name=name, ancestor=calling_scope, data=scope_variables))
        if superscope is not None:
            self.graph.add_inheritance_relation(new_index, superscope)
        self.graph.scopes[new_index].node_index = new_index

        for attr_name, expression in attributes.items():
            var_refs = expression.collect_var_refs()
            if var_refs:
                self.graph.register_scope_provides_attr(
                    calling_scope, new_index, ProvidedAttr(attr_name=attr_name, expression=expression)
                )
                for used_variable in var_refs:
                    self.register_scope_referencing_variable(calling_scope, used_variable)

        self.validate()
        return new_index

    def register_listener(self, scope_index: ScopeIndex, listener: Listener) -> None:
        """Register a listener on its needed variables and call it once right away.

        A listener needing no variables is only called once and not stored.
        """
        if not listener.needed_variables:
            self._call_listener(listener, {})
            return

        for required_var in listener.needed_variables:
            self.register_scope_referencing_variable(scope_index, required_var)
        scope = self.graph.scope_at(scope_index)
        if scope is None:
            raise ScopeGraphError("Scope not in graph")
        for required_var in listener.needed_variables:
            scope.listeners.setdefault(required_var, []).append(listener)

        values = self.lookup_variables_in_scope(scope_index, listener.needed_variables)
        self._call_listener(listener, values)
        self.validate()

    def _call_listener(self, listener: Listener, values: dict[str, Any]) -> None:
        try:
            listener.f(self, values)
        except Exception as err:  # noqa: BLE001 - a failing listener must not break propagation
            logger.error("Error while updating UI after state change: %s", err)

    def register_scope_referencing_variable(self, scope_index: ScopeIndex, var_name: str) -> None:
        """Record that a scope uses a variable, along the whole chain of superscopes if needed."""
        scope = self.graph.scope_at(scope_index)
        if scope is None:
            raise ScopeGraphError("scope not in graph")
        if var_name in scope.data:
            return
        superscope = self.graph.superscope_of(scope_index)
        if superscope is None:
            raise ScopeGraphError(f"Variable {var_name} not in scope")
        self.graph.add_reference_to_inherits_edge(scope_index, var_name)
        self.register_scope_referencing_variable(superscope, var_name)

    def update_value(self, original_scope_index: ScopeIndex, updated_var: str, new_value: Any) -> None:
        """Set a variable in the closest scope that defines it and propagate the change."""
        scope_index = self.find_scope_with_variable(original_scope_index, updated_var)
        if scope_index is None:
            raise ScopeGraphError(f"Variable {updated_var} not in scope")
        scope = self.graph.scope_at(scope_index)
        if scope is not None and updated_var in scope.data:
            scope.data[updated_var] = new_value
        self.notify_value_changed(scope_index, updated_var)
        self.graph.validate()

    def notify_value_changed(self, scope_index: ScopeIndex, updated_var: str) -> None:
        """Update dependent attributes, call listeners and notify referencing subscopes."""
        for referencing_scope, edge in list(self.graph.scopes_getting_attr_using(scope_index, updated_var)):
            try:
                value = self.evaluate_in_scope(scope_index, edge.expression)
                self.update_value(referencing_scope, edge.attr_name, value)
            except ScopeGraphError as err:
                logger.error("%s", err)

        self._call_listeners_in_scope(scope_index, updated_var)

        for subscope in self.graph.subscopes_referencing(scope_index, updated_var):
            self.notify_value_changed(subscope, updated_var)

    def _call_listeners_in_scope(self, scope_index: ScopeIndex, updated_var: str) -> None:
        scope = self.graph.scope_at(scope_index)
        if scope is None:
            raise ScopeGraphError("Scope not in graph")
        for listener in list(scope.listeners.get(updated_var, ())):
            values = self.lookup_variables_in_scope(scope_index, listener.needed_variables)
            self._call_listener(listener, values)

    def find_scope_with_variable(self, index: ScopeIndex, var_name: str) -> ScopeIndex | None:
        """Closest scope, following superscopes, that defines ``var_name``."""
        current: ScopeIndex | None = index
        while current is not None:
            scope = self.graph.scope_at(current)
            if scope is None:
                return None
            if var_name in scope.data:
                return current
            current = self.graph.superscope_of(current)
        return None

    def lookup_variable_in_scope(self, index: ScopeIndex, var_name: str) -> Any | None:
        """Value of ``var_name`` in the closest scope defining it, or None."""
        found = self.find_scope_with_variable(index, var_name)
        if found is None:
            return None
        return self.graph.scopes[found].data[var_name]

    def variables_used_in_self_or_subscopes_of(self, index: ScopeIndex) -> set[str]:
        """Variables used by a scope or its descendants; empty for an unknown index."""
        scope = self.scope_at(index)
        if scope is None:
            return set()

        variables = set(scope.listeners)
        descendant_edges = self.graph.descendant_edges_of(index)
        for _, provided_attrs in descendant_edges:
            for attr in provided_attrs:
                variables.update(attr.expression.collect_var_refs())
        for _, edge in self.graph.subscope_edges_of(index):
            variables.update(edge.references)

        superscope_edge = self.graph.superscope_edge_of(index)
        if superscope_edge is not None:
            variables.update(superscope_edge[1].references)

        for descendant, _ in descendant_edges:
            used = self.variables_used_in_self_or_subscopes_of(descendant)
            descendant_scope = self.scope_at(descendant)
            shadowed = set(descendant_scope.data) if descendant_scope is not None else set()
            variables.update(used - shadowed)

        return variables

    def lookup_variables_in_scope(self, scope_index: ScopeIndex, var_names: Iterable[str]) -> dict[str, Any]:
        """Look up several variables; raises ScopeGraphError if any is not visible."""
        result: dict[str, Any] = {}
        for name in var_names:
            if self.find_scope_with_variable(scope_index, name) is None:
                raise ScopeGraphError(f"Variable {name} neither in scope nor any superscope")
            result[name] = self.lookup_variable_in_scope(scope_index, name)
        return result