import pytest

from ewwscope.scope import Expression, Listener, Scope, ScopeGraphError, ScopeIndex


def test_scope_index_advance():
    index = ScopeIndex(0)
    assert index.advance() == ScopeIndex(1)
    assert index == ScopeIndex(0)


def test_scope_index_repr_and_hash():
    assert repr(ScopeIndex(3)) == "ScopeIndex(3)"
    assert {ScopeIndex(2): "x"}[ScopeIndex(2)] == "x"


def test_collect_var_refs_order():
    expr = Expression.concat(
        Expression.var_ref("a"), Expression.literal("x"), Expression.var_ref("b")
    )
    assert expr.collect_var_refs() == ["a", "b"]
    assert Expression.literal("hi").collect_var_refs() == []


def test_references_var():
    expr = Expression.concat(Expression.var_ref("arg_1"), Expression.literal("static_value"))
    assert expr.references_var("arg_1")
    assert not expr.references_var("static_value")


def test_eval_concat():
    expr = Expression.concat(Expression.var_ref("arg_1"), Expression.literal("static_value"))
    assert expr.eval({"arg_1": "pog"}) == "pogstatic_value"


def test_eval_literal_and_var():
    assert Expression.literal("static value").eval({}) == "static value"
    assert Expression.var_ref("global_1").eval({"global_1": "hi"}) == "hi"


def test_eval_unknown_variable_raises():
    with pytest.raises(ScopeGraphError, match="missing"):
        Expression.var_ref("missing").eval({})


def test_expression_equality():
    assert Expression.var_ref("a") == Expression.var_ref("a")
    assert Expression.literal("a") != Expression.var_ref("a")


def test_scope_defaults():
    scope = Scope("global", None, {"the_var": "hi"})
    assert scope.listeners == {}
    assert scope.node_index == ScopeIndex(0)
    assert scope.data["the_var"] == "hi"


def test_listener_repr_hides_function():
    listener = Listener(["arg_1"], lambda graph, values: None)
    text = repr(listener)
    assert "function" in text
    assert "lambda" not in text
    assert "arg_1" in text


def test_listener_identity_equality():
    def callback(graph, values):
        return None

    first = Listener(["a"], callback)
    second = Listener(["a"], callback)
    assert first == first
    assert first != second