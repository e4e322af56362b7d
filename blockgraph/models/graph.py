"""Graph data model: node instances, edge instances and the graph itself.

The graph keeps nodes and edges in insertion-ordered dicts so snapshots and
serialized definitions are reproducible.
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

from blockgraph.models.block_type import FAILED_OUTPUT, SUCCESS_OUTPUT


class Position(BaseModel):
    """canvas coordinates of a node."""

    x: float
    y: float


class EdgeStyle(str, Enum):
    """Rendering hint for the canvas, derived from the source handle."""

    default = "default"
    success = "success"
    failed = "failed"

    @classmethod
    def for_handle(cls, source_handle_id: str) -> "EdgeStyle":
        if source_handle_id == SUCCESS_OUTPUT:
            return cls.success
        if source_handle_id == FAILED_OUTPUT:
            return cls.failed
        return cls.default


class NodeInstance(BaseModel):
    """a configured block placed on the canvas."""

    id: str
    type_id: str
    position: Position
    payload: dict[str, Any] = Field(default_factory=dict)
    selectable: bool = True
    deletable: bool = True


class EdgeInstance(BaseModel):
    """a directed connection from an output handle to an input handle."""

    id: str
    source_node_id: str
    source_handle_id: str
    target_node_id: str
    target_handle_id: str
    style_tag: EdgeStyle = EdgeStyle.default

    @property
    def source_key(self) -> tuple[str, str]:
        """(node, handle) pair the edge originates from."""
        return self.source_node_id, self.source_handle_id

    def touches(self, node_id: str) -> bool:
        return node_id in (self.source_node_id, self.target_node_id)


class Graph(BaseModel):
    """the authoritative set of nodes and edges."""

    nodes: dict[str, NodeInstance] = Field(default_factory=dict)
    edges: dict[str, EdgeInstance] = Field(default_factory=dict)

    @property
    def node_count(self) -> int:
        return len(self.nodes)

    @property
    def edge_count(self) -> int:
        return len(self.edges)

    def __repr__(self) -> str:
        return f"Graph(nodes={len(self.nodes)}, edges={len(self.edges)})"
