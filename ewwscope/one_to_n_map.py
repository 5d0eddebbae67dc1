"""A one-to-many relationship between elements whose edges carry data."""

from __future__ import annotations

from collections.abc import Hashable
from typing import Generic, TypeVar

K = TypeVar("K", bound=Hashable)
E = TypeVar("E")


class OneToNElementsMap(Generic[K, E]):
    """Each child has at most one parent; a parent may have any number of children."""

    def __init__(self) -> None:
        self.child_to_parent: dict[K, tuple[K, E]] = {}
        self.parent_to_children: dict[K, set[K]] = {}

    def clear(self) -> None:
        self.child_to_parent.clear()
        self.parent_to_children.clear()

    def insert(self, child: K, parent: K, edge: E) -> None:
        """Connect ``child`` to ``parent``; raises ValueError if the child already has a parent."""
        if child in self.child_to_parent:
            raise ValueError("this child already has a parent")
        self.child_to_parent[child] = (parent, edge)
        self.parent_to_children.setdefault(parent, set()).add(child)

    def remove(self, scope: K) -> None:
        """Remove an element along with the edges to its children and its parent."""
        for child in self.parent_to_children.pop(scope, set()):
            self.child_to_parent.pop(child, None)
        parent_edge = self.child_to_parent.pop(scope, None)
        if parent_edge is not None:
            siblings = self.parent_to_children.get(parent_edge[0])
            if siblings is not None:
                siblings.discard(scope)

    def get_parent_of(self, index: K) -> K | None:
        edge = self.child_to_parent.get(index)
        return None if edge is None else edge[0]

    def get_parent_edge_of(self, index: K) -> tuple[K, E] | None:
        return self.child_to_parent.get(index)

    def get_children_of(self, index: K) -> set[K]:
        return set(self.parent_to_children.get(index, ()))

    def get_children_edges_of(self, index: K) -> list[tuple[K, E]]:
        """Return the children of an element together with the edge data leading to each."""
        result = []
        for child in self.parent_to_children.get(index, ()):
            if child not in self.child_to_parent:
                raise RuntimeError("OneToNElementsMap got into inconsistent state")
            result.append((child, self.child_to_parent[child][1]))
        return result

    def validate(self) -> None:
        """Raise ValueError if the two directions of the map disagree."""
        for parent, children in self.parent_to_children.items():
            for child in children:
                edge = self.child_to_parent.get(child)
                if edge is None:
                    raise ValueError(
                        f"parent_to_child stored mapping from {parent!r} to {child!r}, "
                        "which was not found in child_to_parent"
                    )
                if edge[0] != parent:
                    raise ValueError(
                        f"parent_to_child stored mapping from {parent!r} to {child!r}, "
                        f"but child_to_parent contained mapping to {edge[0]!r} instead"
                    )