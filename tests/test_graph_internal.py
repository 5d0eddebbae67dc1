import pytest

from ewwscope.graph_internal import Inherits, ProvidedAttr, ScopeGraphInternal
from ewwscope.scope import Expression, Scope, ScopeGraphError, ScopeIndex


def _graph_with_root():
    graph = ScopeGraphInternal()
    root = graph.add_scope(Scope("global", None, {"global_1": "hi", "global_2": "hey"}))
    return graph, root


def test_add_scope_assigns_consecutive_indices():
    graph, root = _graph_with_root()
    child = graph.add_scope(Scope("child", root, {}))
    assert root == ScopeIndex(0)
    assert child == root.advance()
    assert graph.scope_at(child).name == "child"


def test_add_scope_links_ancestor():
    graph, root = _graph_with_root()
    child = graph.add_scope(Scope("child", root, {}))
    assert graph.descendant_edges_of(root) == [(child, [])]
    assert graph.hierarchy_relations.get_parent_of(child) == root


def test_scope_at_missing_returns_none():
    graph, _ = _graph_with_root()
    assert graph.scope_at(ScopeIndex(42)) is None


def test_inheritance_relation_and_superscope():
    graph, root = _graph_with_root()
    child = graph.add_scope(Scope("child", root, {}))
    graph.add_inheritance_relation(child, root)
    assert graph.superscope_of(child) == root
    assert graph.superscope_edge_of(child) == (root, Inherits(set()))
    assert graph.subscope_edges_of(root) == [(child, Inherits(set()))]
    assert graph.superscope_of(root) is None


def test_inheritance_relation_twice_fails():
    graph, root = _graph_with_root()
    child = graph.add_scope(Scope("child", root, {}))
    graph.add_inheritance_relation(child, root)
    with pytest.raises(ValueError):
        graph.add_inheritance_relation(child, root)


def test_add_reference_and_subscopes_referencing():
    graph, root = _graph_with_root()
    a = graph.add_scope(Scope("a", root, {}))
    b = graph.add_scope(Scope("b", root, {}))
    graph.add_inheritance_relation(a, root)
    graph.add_inheritance_relation(b, root)
    graph.add_reference_to_inherits_edge(a, "global_1")
    assert graph.subscopes_referencing(root, "global_1") == [a]
    assert graph.subscopes_referencing(root, "global_2") == []
    graph.validate()


def test_add_reference_without_superscope_fails():
    graph, root = _graph_with_root()
    with pytest.raises(ScopeGraphError):
        graph.add_reference_to_inherits_edge(root, "global_1")


def test_provided_attrs():
    graph, root = _graph_with_root()
    child = graph.add_scope(Scope("child", root, {"arg_1": "hi"}))
    attr = ProvidedAttr("arg_1", Expression.var_ref("global_1"))
    static = ProvidedAttr("arg_2", Expression.literal("static value"))
    graph.register_scope_provides_attr(root, child, attr)
    graph.register_scope_provides_attr(root, child, static)
    assert graph.scopes_getting_attr_using(root, "global_1") == [(child, attr)]
    assert graph.scopes_getting_attr_using(root, "global_2") == []
    assert graph.descendant_edges_of(root) == [(child, [attr, static])]


def test_provided_attr_wrong_ancestor_fails():
    graph, root = _graph_with_root()
    child = graph.add_scope(Scope("child", root, {}))
    other = graph.add_scope(Scope("other", root, {}))
    with pytest.raises(ScopeGraphError):
        graph.register_scope_provides_attr(other, child, ProvidedAttr("x", Expression.literal("y")))


def test_provided_attr_unconnected_is_ignored():
    graph, root = _graph_with_root()
    graph.register_scope_provides_attr(root, root, ProvidedAttr("x", Expression.var_ref("global_1")))
    assert graph.scopes_getting_attr_using(root, "global_1") == []


def test_remove_scope_removes_descendants():
    graph, root = _graph_with_root()
    foo = graph.add_scope(Scope("foo", root, {}))
    bar = graph.add_scope(Scope("bar", foo, {}))
    graph.add_inheritance_relation(foo, root)
    graph.add_inheritance_relation(bar, root)
    graph.remove_scope(foo)
    assert graph.scope_at(foo) is None
    assert graph.scope_at(bar) is None
    assert graph.scope_at(root) is not None and graph.scope_at(root).name == "global"
    assert graph.subscope_edges_of(root) == []
    graph.validate()


def test_clear_removes_everything_but_keeps_counting():
    graph, root = _graph_with_root()
    child = graph.add_scope(Scope("child", root, {}))
    graph.clear()
    assert graph.scope_at(root) is None
    assert graph.descendant_edges_of(root) == []
    new_index = graph.add_scope(Scope("global", None, {}))
    assert new_index == child.advance()


def test_validate_missing_ancestor():
    graph = ScopeGraphInternal()
    graph.add_scope(Scope("orphan", ScopeIndex(99), {}))
    with pytest.raises(ScopeGraphError):
        graph.validate()


def test_validate_inaccessible_inherited_variable():
    graph, root = _graph_with_root()
    a = graph.add_scope(Scope("a", root, {}))
    b = graph.add_scope(Scope("b", a, {}))
    graph.add_inheritance_relation(a, root)
    graph.add_inheritance_relation(b, a)
    graph.add_reference_to_inherits_edge(b, "global_1")
    with pytest.raises(ScopeGraphError):
        graph.validate()
    graph.add_reference_to_inherits_edge(a, "global_1")
    graph.validate()
    assert "global_1" in graph.superscope_edge_of(b)[1].references


def test_visualize_structure():
    graph, root = _graph_with_root()
    child = graph.add_scope(Scope("child", root, {}))
    graph.add_inheritance_relation(child, root)
    graph.add_reference_to_inherits_edge(child, "global_1")
    graph.register_scope_provides_attr(root, child, ProvidedAttr("arg_1", Expression.var_ref("global_1")))
    output = graph.visualize()
    assert output.startswith("digraph {\n")
    assert output.endswith("}")
    assert f'"{root!r}" -> "{child!r}"[label="ancestor"]' in output
    assert 'color = "red", label = ":arg_1' in output
    assert "inherits({'global_1'})" in output


def test_visualize_hides_eww_variables():
    graph = ScopeGraphInternal()
    graph.add_scope(Scope("global", None, {"EWW_TIME": "now", "shown": "yes"}))
    output = graph.visualize()
    assert "EWW_TIME" not in output
    assert "shown" in output