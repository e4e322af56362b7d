"""The authoritative node/edge store of one pipeline.

Every mutation runs all of its checks before it writes, so a rejected
operation leaves the graph exactly as it was.
"""

import logging
from typing import Any

from pydantic import ValidationError

from blockgraph.editor.factory import NodeInstanceFactory
from blockgraph.editor.invariants import check_invariants
from blockgraph.editor.validator import ConnectionValidator
from blockgraph.errors import (
    ConstraintViolation,
    DuplicateEdgeId,
    DuplicateNodeId,
    EdgeNotFound,
    MalformedDefinition,
    NodeNotFound,
    ProtectedNodeDeletion,
)
from blockgraph.models.actions import (
    AddEdge,
    AddNode,
    GraphAction,
    MoveNode,
    RemoveEdge,
    RemoveNode,
    UpdateNodePayload,
)
from blockgraph.models.block_type import BlockType, BlockTypeDefinition
from blockgraph.models.graph import EdgeInstance, Graph, NodeInstance, Position
from blockgraph.registry.registry import NodeTypeRegistry

logger = logging.getLogger(__name__)


class GraphModel:
    """Owns a Graph and exposes its mutation operations.

    Usage:
        model = GraphModel.with_start_node(registry, factory)
        node = factory.create_instance("os_package", (300, 100))
        model.add_node(node)
        model.add_edge(factory.create_edge(model.start_node.id, "default-output", node.id, "default-input"))
    """

    def __init__(
        self,
        registry: NodeTypeRegistry,
        graph: Graph | None = None,
        validator: ConnectionValidator | None = None,
    ) -> None:
        """
        Args:
            registry: block catalog the graph's node types resolve against.
            graph: existing graph to take ownership of; checked on entry.
            validator: connection rules; built from ``registry`` when omitted.

        Raises:
            MalformedDefinition: ``graph`` breaks an invariant.
        """
        self.registry = registry
        self.validator = validator or ConnectionValidator(registry)
        self._graph = graph if graph is not None else Graph()

        violations = check_invariants(self._graph, registry, require_start=False)
        if violations:
            invariant, message = violations[0]
            raise MalformedDefinition(invariant, message, [text for _, text in violations])

    @classmethod
    def with_start_node(
        cls,
        registry: NodeTypeRegistry,
        factory: NodeInstanceFactory,
        position: Position | tuple[float, float] = (100.0, 100.0),
    ) -> "GraphModel":
        """A fresh model seeded with the protected start block."""
        model = cls(registry)
        model.add_node(factory.create_instance(BlockType.start, position))
        return model

    # ---- reads ----
    # every read hands out copies; only the mutations below touch stored records

    def get_node(self, node_id: str) -> NodeInstance | None:
        node = self._graph.nodes.get(node_id)
        return node.model_copy(deep=True) if node is not None else None

    def get_edge(self, edge_id: str) -> EdgeInstance | None:
        edge = self._graph.edges.get(edge_id)
        return edge.model_copy(deep=True) if edge is not None else None

    def nodes(self) -> list[NodeInstance]:
        return [node.model_copy(deep=True) for node in self._graph.nodes.values()]

    def edges(self) -> list[EdgeInstance]:
        return [edge.model_copy(deep=True) for edge in self._graph.edges.values()]

    def get_edges_from(self, node_id: str, handle_id: str | None = None) -> list[EdgeInstance]:
        """Outgoing edges of a node, optionally from one handle only."""
        return [
            edge.model_copy(deep=True)
            for edge in self._graph.edges.values()
            if edge.source_node_id == node_id and (handle_id is None or edge.source_handle_id == handle_id)
        ]

    def get_edges_to(self, node_id: str) -> list[EdgeInstance]:
        return [
            edge.model_copy(deep=True) for edge in self._graph.edges.values() if edge.target_node_id == node_id
        ]

    @property
    def start_node(self) -> NodeInstance | None:
        for node in self._graph.nodes.values():
            if node.type_id == BlockType.start.value:
                return node.model_copy(deep=True)
        return None

    @property
    def node_count(self) -> int:
        return self._graph.node_count

    @property
    def edge_count(self) -> int:
        return self._graph.edge_count

    def snapshot(self) -> Graph:
        """A deep copy; later mutations never show through it."""
        return self._graph.model_copy(deep=True)

    # ---- mutations ----

    def add_node(self, node: NodeInstance) -> NodeInstance:
        """Insert ``node``.

        Raises:
            DuplicateNodeId: the id is taken.
            UnknownNodeType: the type is not registered.
            ConstraintViolation: a second start node, a deletable flag the
                type does not allow, or a payload that fails its schema.
        """
        if node.id in self._graph.nodes:
            raise DuplicateNodeId(f"Node already exists: {node.id}", node_id=node.id)

        definition = self.registry.lookup(node.type_id)

        if definition.type_id == BlockType.start and self.start_node is not None:
            raise ConstraintViolation(
                "Graph already has a start node", node_id=node.id, start_node_id=self.start_node.id
            )
        if node.deletable != definition.deletable:
            raise ConstraintViolation(
                f"Node {node.id} must have deletable={definition.deletable}", node_id=node.id
            )
        payload = self._check_payload(node.id, definition, node.payload)

        stored = node.model_copy(update={"payload": payload}, deep=True)
        self._graph.nodes[node.id] = stored
        logger.debug("added node %s (%s)", node.id, node.type_id)
        return stored.model_copy(deep=True)

    def remove_node(self, node_id: str) -> list[EdgeInstance]:
        """Remove a node and every edge attached to it; returns those edges.

        Raises:
            NodeNotFound: no such node.
            ProtectedNodeDeletion: the node is not deletable.
        """
        node = self._require_node(node_id)
        if not node.deletable:
            raise ProtectedNodeDeletion(f"Node {node_id} cannot be deleted", node_id=node_id)

        attached = [edge for edge in self._graph.edges.values() if edge.touches(node_id)]
        for edge in attached:
            del self._graph.edges[edge.id]
        del self._graph.nodes[node_id]
        logger.debug("removed node %s with %d edge(s)", node_id, len(attached))
        return attached

    def add_edge(self, edge: EdgeInstance) -> EdgeInstance:
        """Insert ``edge`` if the connection rules accept it.

        Raises:
            NodeNotFound: an endpoint is missing.
            SelfLoopRejected: source and target are the same node.
            ConstraintViolation: undeclared handle or fanout limit reached.
            DuplicateEdgeId: the id is taken.
        """
        for endpoint in (edge.source_node_id, edge.target_node_id):
            self._require_node(endpoint)

        decision = self.validator.validate(edge, self._graph)
        if not decision.accepted:
            raise decision.to_error(edge)

        if edge.id in self._graph.edges:
            raise DuplicateEdgeId(f"Edge already exists: {edge.id}", edge_id=edge.id)

        self._graph.edges[edge.id] = edge.model_copy(deep=True)
        logger.debug(
            "added edge %s: %s/%s -> %s/%s",
            edge.id,
            edge.source_node_id,
            edge.source_handle_id,
            edge.target_node_id,
            edge.target_handle_id,
        )
        return edge

    def remove_edge(self, edge_id: str) -> EdgeInstance:
        edge = self._graph.edges.get(edge_id)
        if edge is None:
            raise EdgeNotFound(f"Edge not found: {edge_id}", edge_id=edge_id)
        del self._graph.edges[edge_id]
        logger.debug("removed edge %s", edge_id)
        return edge

    def move_node(self, node_id: str, position: Position | tuple[float, float]) -> NodeInstance:
        node = self._require_node(node_id)
        if not isinstance(position, Position):
            x, y = position
            position = Position(x=x, y=y)
        node.position = position
        return node.model_copy(deep=True)

    def update_node_payload(self, node_id: str, changes: dict[str, Any]) -> NodeInstance:
        """Merge ``changes`` into the node's payload and re-validate it.

        Raises:
            NodeNotFound: no such node.
            ConstraintViolation: the merged payload fails its schema.
        """
        node = self._require_node(node_id)
        definition = self.registry.lookup(node.type_id)
        merged = {**node.payload, **changes}
        node.payload = self._check_payload(node_id, definition, merged)
        logger.debug("updated payload of %s: %s", node_id, sorted(changes))
        return node.model_copy(deep=True)

    def apply(self, action: GraphAction) -> Any:
        """Dispatch one action to the matching mutation."""
        if isinstance(action, AddNode):
            return self.add_node(action.node)
        if isinstance(action, RemoveNode):
            return self.remove_node(action.node_id)
        if isinstance(action, AddEdge):
            return self.add_edge(action.edge)
        if isinstance(action, RemoveEdge):
            return self.remove_edge(action.edge_id)
        if isinstance(action, MoveNode):
            return self.move_node(action.node_id, action.position)
        if isinstance(action, UpdateNodePayload):
            return self.update_node_payload(action.node_id, action.changes)
        raise TypeError(f"unsupported action: {type(action).__name__}")

    # ---- helpers ----

    def _require_node(self, node_id: str) -> NodeInstance:
        node = self._graph.nodes.get(node_id)
        if node is None:
            raise NodeNotFound(f"Node not found: {node_id}", node_id=node_id)
        return node

    @staticmethod
    def _check_payload(
        node_id: str, definition: BlockTypeDefinition, payload: dict[str, Any]
    ) -> dict[str, Any]:
        """Validate ``payload`` and return it in canonical form (camelCase keys, coerced values)."""
        try:
            validated = definition.validate_payload(payload)
        except ValidationError as exc:
            raise ConstraintViolation(
                f"Invalid payload for {definition.type_id.value} node {node_id}",
                node_id=node_id,
                errors=[f"{'.'.join(map(str, e['loc']))}: {e['msg']}" for e in exc.errors()],
            ) from exc
        return validated.model_dump(by_alias=True, mode="json")

    def __repr__(self) -> str:
        return f"GraphModel(nodes={self.node_count}, edges={self.edge_count})"
