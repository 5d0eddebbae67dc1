"""Internal storage of the scope graph: scopes plus hierarchy and inheritance edges."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from .one_to_n_map import OneToNElementsMap
from .scope import Expression, Scope, ScopeGraphError, ScopeIndex

logger = logging.getLogger(__name__)


@dataclass
class ProvidedAttr:
    """An ancestor provides attribute ``attr_name``, computed via ``expression``, to a descendant."""

    attr_name: str
    expression: Expression


@dataclass
class Inherits:
    """A subscope inherits from a superscope and references these variables from it."""

    references: set[str] = field(default_factory=set)


def _format_references(references: set[str]) -> str:
    return "{" + ", ".join(repr(name) for name in sorted(references)) + "}"


class ScopeGraphInternal:
    """Raw graph of scopes; may be temporarily inconsistent while it is being changed."""

    def __init__(self) -> None:
        self.last_index = ScopeIndex(0)
        self.scopes: dict[ScopeIndex, Scope] = {}
        # Edges from ancestors to descendants.
        self.hierarchy_relations: OneToNElementsMap[ScopeIndex, list[ProvidedAttr]] = OneToNElementsMap()
        # Edges from superscopes to subscopes.
        self.inheritance_relations: OneToNElementsMap[ScopeIndex, Inherits] = OneToNElementsMap()

    def clear(self) -> None:
        self.scopes.clear()
        self.inheritance_relations.clear()
        self.hierarchy_relations.clear()

    def add_scope(self, scope: Scope) -> ScopeIndex:
        """Store a scope under a fresh index, linking it to its ancestor if it has one."""
        index = self.last_index
        if scope.ancestor is not None:
            try:
                self.hierarchy_relations.insert(index, scope.ancestor, [])
            except ValueError:
                pass
        self.scopes[index] = scope
        self.last_index = self.last_index.advance()
        return index

    def descendant_edges_of(self, index: ScopeIndex) -> list[tuple[ScopeIndex, list[ProvidedAttr]]]:
        return self.hierarchy_relations.get_children_edges_of(index)

    def subscope_edges_of(self, index: ScopeIndex) -> list[tuple[ScopeIndex, Inherits]]:
        return self.inheritance_relations.get_children_edges_of(index)

    def superscope_edge_of(self, index: ScopeIndex) -> tuple[ScopeIndex, Inherits] | None:
        return self.inheritance_relations.get_parent_edge_of(index)

    def remove_scope(self, index: ScopeIndex) -> None:
        """Remove a scope and, recursively, all of its descendants."""
        self.scopes.pop(index, None)
        for descendant in list(self.hierarchy_relations.parent_to_children.get(index, ())):
            self.remove_scope(descendant)
        self.hierarchy_relations.remove(index)
        self.inheritance_relations.remove(index)

    def add_inheritance_relation(self, a: ScopeIndex, b: ScopeIndex) -> None:
        """Make ``a`` a subscope of ``b``; raises ValueError if ``a`` already has a superscope."""
        self.inheritance_relations.insert(a, b, Inherits())

    def register_scope_provides_attr(self, a: ScopeIndex, b: ScopeIndex, edge: ProvidedAttr) -> None:
        """Register that scope ``a`` provides an attribute to its descendant ``b``."""
        parent_edge = self.hierarchy_relations.get_parent_edge_of(b)
        if parent_edge is None:
            logger.error(
                "Tried to register a provided attribute edge between two scopes "
                "that are not connected in the hierarchy map"
            )
            return
        superscope, edges = parent_edge
        if superscope != a:
            raise ScopeGraphError(
                "Hierarchy map had a different superscope for a given scope than what was given here"
            )
        edges.append(edge)

    def scope_at(self, index: ScopeIndex) -> Scope | None:
        return self.scopes.get(index)

    def subscopes_referencing(self, index: ScopeIndex, var_name: str) -> list[ScopeIndex]:
        """Subscopes of ``index`` whose inheritance edge references ``var_name`` directly."""
        return [
            scope
            for scope, edge in self.inheritance_relations.get_children_edges_of(index)
            if var_name in edge.references
        ]

    def superscope_of(self, index: ScopeIndex) -> ScopeIndex | None:
        return self.inheritance_relations.get_parent_of(index)

    def scopes_getting_attr_using(self, index: ScopeIndex, var_name: str) -> list[tuple[ScopeIndex, ProvidedAttr]]:
        """Descendants provided an attribute by ``index`` whose expression references ``var_name``."""
        return [
            (child, edge)
            for child, edges in self.hierarchy_relations.get_children_edges_of(index)
            for edge in edges
            if edge.expression.references_var(var_name)
        ]

    def add_reference_to_inherits_edge(self, subscope: ScopeIndex, var_name: str) -> None:
        """Record that ``subscope`` references ``var_name`` from its direct superscope."""
        parent_edge = self.inheritance_relations.get_parent_edge_of(subscope)
        if parent_edge is None:
            raise ScopeGraphError(f"Given scope {subscope!r} does not have any superscope")
        parent_edge[1].references.add(var_name)

    def validate(self) -> None:
        """Raise ScopeGraphError if the graph's edges and scopes are inconsistent."""
        for child, (parent, _edge) in self.hierarchy_relations.child_to_parent.items():
            if child not in self.scopes:
                raise ScopeGraphError("hierarchy_relations lists key that is not in graph")
            if parent not in self.scopes:
                raise ScopeGraphError("hierarchy_relations values lists scope that is not in graph")

        inheritance = self.inheritance_relations.child_to_parent
        for child, (parent_index, edge) in inheritance.items():
            if child not in self.scopes:
                raise ScopeGraphError("inheritance_relations lists key that is not in graph")
            parent_scope = self.scopes.get(parent_index)
            if parent_scope is None:
                raise ScopeGraphError("inheritance_relations values lists scope that is not in graph")
            # Everything referenced from the parent must be stored or inherited by the parent.
            parent_edge = inheritance.get(parent_index)
            for var in edge.references:
                has_access = var in parent_scope.data or (
                    parent_edge is not None and var in parent_edge[1].references
                )
                if not has_access:
                    raise ScopeGraphError("scope inherited variable that parent scope doesn't have access to")

        try:
            self.hierarchy_relations.validate()
            self.inheritance_relations.validate()
        except ValueError as err:
            raise ScopeGraphError(str(err)) from err

    def visualize(self) -> str:
        """Render the graph in graphviz dot format."""
        lines = ["digraph {"]
        for index, scope in self.scopes.items():
            data = [(key, value) for key, value in scope.data.items() if not key.startswith("EWW")]
            listeners = [
                f"on {name}: "
                + repr([repr(list(listener.needed_variables)) for listener in registered])
                for name, registered in scope.listeners.items()
            ]
            details = f"data: {data!r}, listeners: {listeners!r}".replace('"', "'")
            lines.append(f'  "{index!r}"[label="{scope.name}\\n{details}"]')
            if scope.ancestor is not None:
                lines.append(f'  "{scope.ancestor!r}" -> "{index!r}"[label="ancestor"]')

        for child, (parent, edges) in self.hierarchy_relations.child_to_parent.items():
            for edge in edges:
                label = f":{edge.attr_name} `{edge.expression!r}`".replace('"', "'")
                lines.append(f'  "{parent!r}" -> "{child!r}" [color = "red", label = "{label}"]')
        for child, (parent, edge) in self.inheritance_relations.child_to_parent.items():
            label = f"inherits({_format_references(edge.references)})".replace('"', "'")
            lines.append(f'  "{child!r}" -> "{parent!r}" [color = "blue", label = "{label}"]')

        return "\n".join(lines) + "\n}"