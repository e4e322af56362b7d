"""Pure (graph, action) -> result step.

``reduce`` never touches its input graph: the action runs against a deep
copy, and engine errors come back as ``Err`` values instead of exceptions.
"""

from dataclasses import dataclass
from collections.abc import Sequence
from typing import Any

from blockgraph.editor.graph_model import GraphModel
from blockgraph.errors import GraphError
from blockgraph.models.actions import GraphAction
from blockgraph.models.graph import Graph
from blockgraph.registry.registry import NodeTypeRegistry


@dataclass(frozen=True)
class Ok:
    """the new graph, plus whatever the mutation returned."""

    graph: Graph
    value: Any = None

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Err:
    error: GraphError

    @property
    def ok(self) -> bool:
        return False


Result = Ok | Err


def reduce(graph: Graph, action: GraphAction, registry: NodeTypeRegistry) -> Result:
    """Apply ``action`` to a copy of ``graph``."""
    try:
        model = GraphModel(registry, graph.model_copy(deep=True))
        value = model.apply(action)
    except GraphError as exc:
        return Err(exc)
    return Ok(model.snapshot(), value)


def reduce_all(graph: Graph, actions: Sequence[GraphAction], registry: NodeTypeRegistry) -> Result:
    """Apply ``actions`` in order as one step.

    Either every action applies and ``Ok.value`` lists their results, or the
    first failing action's error comes back and none of them take effect.
    """
    try:
        model = GraphModel(registry, graph.model_copy(deep=True))
        values = [model.apply(action) for action in actions]
    except GraphError as exc:
        return Err(exc)
    return Ok(model.snapshot(), values)
