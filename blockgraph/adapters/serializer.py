"""Graph <-> persisted flow definition.

The persisted form is the {nodes, edges} document the canvas saves:
nodes as ``{id, type, position, data}`` and edges as
``{id, source, sourceHandle, target, targetHandle, data}``. Loading never
repairs a definition: the first broken invariant is reported by name.
"""

import json
import logging
from typing import Any

from pydantic import ValidationError

from blockgraph.editor.invariants import check_invariants
from blockgraph.errors import Invariant, MalformedDefinition
from blockgraph.models.definition import FlowDefinition, SerializedEdge, SerializedNode
from blockgraph.models.graph import EdgeInstance, EdgeStyle, Graph, NodeInstance
from blockgraph.registry.registry import NodeTypeRegistry

logger = logging.getLogger(__name__)


class GraphSerializer:
    """Convert graphs to and from their JSON-compatible definition."""

    def __init__(self, registry: NodeTypeRegistry) -> None:
        self.registry = registry

    def serialize(self, graph: Graph) -> dict[str, Any]:
        """Definition dict in insertion order; safe to ``json.dumps``."""
        definition = FlowDefinition(
            nodes=[
                SerializedNode(
                    id=node.id,
                    type=node.type_id,
                    position=node.position,
                    data=node.payload,
                )
                for node in graph.nodes.values()
            ],
            edges=[
                SerializedEdge(
                    id=edge.id,
                    source=edge.source_node_id,
                    source_handle=edge.source_handle_id,
                    target=edge.target_node_id,
                    target_handle=edge.target_handle_id,
                    data={"styleTag": edge.style_tag.value},
                )
                for edge in graph.edges.values()
            ],
        )
        return definition.model_dump(by_alias=True, mode="json")

    def to_json(self, graph: Graph, indent: int | None = 2) -> str:
        return json.dumps(self.serialize(graph), indent=indent)

    def deserialize(self, data: dict[str, Any]) -> Graph:
        """Rebuild a Graph from a definition dict.

        Raises:
            MalformedDefinition: the document does not parse, or the graph it
                describes breaks an invariant.
        """
        try:
            definition = FlowDefinition.model_validate(data)
        except ValidationError as exc:
            raise MalformedDefinition(
                Invariant.schema,
                f"Definition does not match the flow schema ({exc.error_count()} error(s))",
                [f"{'.'.join(map(str, e['loc']))}: {e['msg']}" for e in exc.errors()],
            ) from exc

        duplicates = _duplicate_ids(definition)
        if duplicates:
            raise MalformedDefinition(
                Invariant.unique_ids, f"Duplicate ids in definition: {', '.join(duplicates)}"
            )

        graph = Graph()
        for item in definition.nodes:
            definition_type = self.registry.get(item.type)
            # flags are not persisted; they follow the block type
            deletable = definition_type.deletable if definition_type is not None else True
            graph.nodes[item.id] = NodeInstance(
                id=item.id,
                type_id=item.type,
                position=item.position,
                payload=item.data,
                selectable=deletable,
                deletable=deletable,
            )
        for item in definition.edges:
            graph.edges[item.id] = EdgeInstance(
                id=item.id,
                source_node_id=item.source,
                source_handle_id=item.source_handle,
                target_node_id=item.target,
                target_handle_id=item.target_handle,
                style_tag=_style_tag(item),
            )

        violations = check_invariants(graph, self.registry)
        if violations:
            invariant, message = violations[0]
            logger.info("rejected definition: %d violation(s), first: %s", len(violations), message)
            raise MalformedDefinition(invariant, message, [text for _, text in violations])
        for node in graph.nodes.values():
            # stored payloads are kept in the same canonical form the editor writes
            node.payload = self.registry.lookup(node.type_id).validate_payload(node.payload).model_dump(
                by_alias=True, mode="json"
            )
        return graph

    def from_json(self, text: str) -> Graph:
        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            raise MalformedDefinition(Invariant.schema, f"Invalid JSON: {exc.msg}") from exc
        if not isinstance(data, dict):
            raise MalformedDefinition(Invariant.schema, "Definition must be a JSON object")
        return self.deserialize(data)


def _duplicate_ids(definition: FlowDefinition) -> list[str]:
    """Ids repeated among nodes or among edges (the two id spaces are separate)."""
    duplicates: list[str] = []
    for items in (definition.nodes, definition.edges):
        seen: set[str] = set()
        for item in items:
            if item.id in seen and item.id not in duplicates:
                duplicates.append(item.id)
            seen.add(item.id)
    return duplicates


def _style_tag(edge: SerializedEdge) -> EdgeStyle:
    raw = (edge.data or {}).get("styleTag")
    if raw is None:
        return EdgeStyle.for_handle(edge.source_handle)
    try:
        return EdgeStyle(raw)
    except ValueError:
        raise MalformedDefinition(Invariant.schema, f"edge {edge.id}: unknown styleTag {raw!r}") from None
