"""Graph editing core: instance factory, connection rules and the graph model."""

from blockgraph.editor.factory import NodeInstanceFactory
from blockgraph.editor.graph_model import GraphModel
from blockgraph.editor.invariants import check_invariants
from blockgraph.editor.reducer import Err, Ok, Result, reduce, reduce_all
from blockgraph.editor.validator import ConnectionDecision, ConnectionValidator, validate_connection

__all__ = [
    "NodeInstanceFactory",
    "GraphModel",
    "ConnectionValidator",
    "ConnectionDecision",
    "validate_connection",
    "check_invariants",
    "reduce",
    "reduce_all",
    "Ok",
    "Err",
    "Result",
]
