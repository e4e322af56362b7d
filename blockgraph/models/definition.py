"""Wire shapes produced for persistence and for the pipeline backend.

FlowDefinition is the JSON-compatible {nodes, edges} document the canvas
saves and reloads. PipelineData is the block list sent to the execution
backend when a pipeline is run.
"""

from typing import Any

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel

from blockgraph.models.graph import Position

_WIRE_CONFIG = {"alias_generator": to_camel, "populate_by_name": True}


class SerializedNode(BaseModel):
    """node as persisted: {id, type, position, data}."""

    id: str
    type: str
    position: Position
    data: dict[str, Any] = Field(default_factory=dict)


class SerializedEdge(BaseModel):
    """edge as persisted: {id, source, sourceHandle, target, targetHandle, data?}."""

    model_config = _WIRE_CONFIG

    id: str
    source: str
    source_handle: str
    target: str
    target_handle: str
    data: dict[str, Any] | None = None


class FlowDefinition(BaseModel):
    """the serialized graph."""

    nodes: list[SerializedNode] = Field(default_factory=list)
    edges: list[SerializedEdge] = Field(default_factory=list)


class PipelineData(BaseModel):
    """Final pipeline structure handed to the execution backend.

    ``blocks`` are plain dicts because every block type carries its own
    payload keys next to the shared routing fields.
    """

    model_config = _WIRE_CONFIG

    pipeline_id: str
    name: str
    description: str | None = None
    created_at: str
    blocks: list[dict[str, Any]]
