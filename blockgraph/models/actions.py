"""Graph actions, the input side of the reducer.

Each action is one editor request. ``GraphAction`` is a discriminated union
on ``kind`` so actions can also be parsed straight from JSON.
"""

from typing import Annotated, Any, Literal

from pydantic import BaseModel, Field, TypeAdapter

from blockgraph.models.graph import EdgeInstance, NodeInstance, Position


class AddNode(BaseModel):
    kind: Literal["add_node"] = "add_node"
    node: NodeInstance


class RemoveNode(BaseModel):
    kind: Literal["remove_node"] = "remove_node"
    node_id: str


class AddEdge(BaseModel):
    kind: Literal["add_edge"] = "add_edge"
    edge: EdgeInstance


class RemoveEdge(BaseModel):
    kind: Literal["remove_edge"] = "remove_edge"
    edge_id: str


class MoveNode(BaseModel):
    kind: Literal["move_node"] = "move_node"
    node_id: str
    position: Position


class UpdateNodePayload(BaseModel):
    """merge ``changes`` (camelCase keys) into a node's payload."""

    kind: Literal["update_node_payload"] = "update_node_payload"
    node_id: str
    changes: dict[str, Any]


GraphAction = Annotated[
    AddNode | RemoveNode | AddEdge | RemoveEdge | MoveNode | UpdateNodePayload,
    Field(discriminator="kind"),
]

graph_action_adapter: TypeAdapter[GraphAction] = TypeAdapter(GraphAction)


def parse_action(data: dict[str, Any]) -> GraphAction:
    """Parse a JSON-style dict into the matching action model."""
    return graph_action_adapter.validate_python(data)
