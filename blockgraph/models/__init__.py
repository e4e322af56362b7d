"""Core data models for blockgraph."""

from blockgraph.models.actions import (
    AddEdge,
    AddNode,
    GraphAction,
    MoveNode,
    RemoveEdge,
    RemoveNode,
    UpdateNodePayload,
    parse_action,
)
from blockgraph.models.block_type import (
    DEFAULT_INPUT,
    DEFAULT_OUTPUT,
    FAILED_OUTPUT,
    SUCCESS_OUTPUT,
    BlockGroup,
    BlockType,
    BlockTypeDefinition,
    FixedOutputs,
    HandleSpec,
    LimitedOutputs,
    NoInput,
    SingleInput,
    SingleOutput,
)
from blockgraph.models.definition import (
    FlowDefinition,
    PipelineData,
    SerializedEdge,
    SerializedNode,
)
from blockgraph.models.graph import (
    EdgeInstance,
    EdgeStyle,
    Graph,
    NodeInstance,
    Position,
)

__all__ = [
    # Block types
    "BlockGroup",
    "BlockType",
    "BlockTypeDefinition",
    "HandleSpec",
    "NoInput",
    "SingleInput",
    "SingleOutput",
    "FixedOutputs",
    "LimitedOutputs",
    "DEFAULT_INPUT",
    "DEFAULT_OUTPUT",
    "SUCCESS_OUTPUT",
    "FAILED_OUTPUT",
    # Graph
    "Position",
    "EdgeStyle",
    "NodeInstance",
    "EdgeInstance",
    "Graph",
    # Wire shapes
    "FlowDefinition",
    "SerializedNode",
    "SerializedEdge",
    "PipelineData",
    # Actions
    "GraphAction",
    "AddNode",
    "RemoveNode",
    "AddEdge",
    "RemoveEdge",
    "MoveNode",
    "UpdateNodePayload",
    "parse_action",
]
