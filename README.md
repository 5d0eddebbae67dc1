# ewwscope

A small library for keeping widget state in a graph of scopes.

Each scope holds its own variables. A scope may *inherit* from one
superscope, which gives it access to that scope's variables. It may also be
created by an *ancestor* scope that provides it with attributes computed from
expressions. Listeners registered on a scope are called whenever one of the
variables they need changes, wherever in the inheritance chain that variable
lives.

## Installation

```
pip install ewwscope
```

## Usage

```python
from ewwscope.scope import Expression, Listener
from ewwscope.scope_graph import ScopeGraph

graph = ScopeGraph({"greeting": "hi"}, event_sender=None)
root = graph.root_index

widget = graph.register_new_scope("widget", root, root, {})

seen = []
graph.register_listener(
    widget,
    Listener(["greeting"], lambda g, values: seen.append(values["greeting"])),
)

graph.update_global_value("greeting", "hello")
print(seen)  # ['hi', 'hello']

child = graph.register_new_scope(
    "child", root, widget,
    {"label": Expression.concat(Expression.var_ref("greeting"), Expression.literal("!"))},
)
print(graph.lookup_variable_in_scope(child, "label"))  # hello!
```

A listener is called once when it is registered. If it needs no variables,
that first call is the only one and it is not stored.

### Modules

`ewwscope.scope_graph`
- `ScopeGraph(global_vars, event_sender=None)` builds a graph with a root
  scope named `global`. `event_sender` is kept as an attribute and the graph
  itself does nothing with it.
- `register_new_scope(name, superscope, calling_scope, attributes)` evaluates
  each attribute `Expression` in `calling_scope` and stores the results in the
  new scope. When the variables an attribute refers to change, the attribute
  is evaluated again and the new scope's listeners are called.
- `register_listener`, `update_value`, `update_global_value`,
  `notify_value_changed` and `register_scope_referencing_variable`.
- `find_scope_with_variable`, `lookup_variable_in_scope` and
  `lookup_variables_in_scope` look up values visible from a scope.
- `evaluate_in_scope(index, expression)` raises an error when a variable is
  missing. Any other failure is logged and the result is `""`.
- `variables_used_in_self_or_subscopes_of`, `currently_used_globals` and
  `currently_unused_globals` report which variables are in use.
- `remove_scope(index)` drops a scope and every scope it created.
  `handle_scope_graph_event(RemoveScope(index))` does the same.
- `clear(global_vars)` starts over with a new global scope.
- `validate()` checks that the graph is consistent.
- `visualize()` returns a Graphviz `digraph` description.

`ewwscope.scope`
- `ScopeIndex`, `Scope` and `Listener(needed_variables, f)`. `f` is called as
  `f(graph, values)`.
- `Expression.literal`, `Expression.var_ref` and `Expression.concat`.
- `ScopeGraphError`, raised for missing scopes or variables and for an
  inconsistent graph.
- A listener that raises is logged and does not stop the update.

`ewwscope.graph_internal` holds the raw storage: `ScopeGraphInternal`,
`ProvidedAttr` and `Inherits`.

`ewwscope.one_to_n_map.OneToNElementsMap` is a child-to-parent map whose edges
carry data.

`ewwscope.util` has small helpers:
- `list_difference`
- `is_blank`
- `trim_lines`
- `avg`
- `replace_env_var_references`
- `unindent`
- `parse_enum(name, value, options)`, which matches a value against a set of
  options without regard to case and raises `ValueError` when nothing matches

## What it does not do

The package only keeps state. It draws no widgets and reads no configuration
files. Expressions are limited to literals, variable references and
concatenations; it has no parser for an expression language.

## Running the tests

```
pip install -e ".[test]"
pytest
```