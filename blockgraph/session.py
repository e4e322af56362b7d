"""Editor session: one pipeline's graph plus everything needed to edit it.

The session is the store the canvas talks to. Each request is turned into a
graph action and run through ``reduce``; the session swaps in the new graph
only on success, then publishes it to the subscribed sinks. Requests never
raise engine errors, they return ``Ok`` / ``Err``.
"""

import logging
from collections.abc import Mapping
from typing import Any

from blockgraph.adapters.pipeline_export import build_pipeline_data
from blockgraph.adapters.serializer import GraphSerializer
from blockgraph.adapters.sinks import SnapshotSink
from blockgraph.config import EditorConfig
from blockgraph.editor.factory import NodeInstanceFactory
from blockgraph.editor.graph_model import GraphModel
from blockgraph.editor.reducer import Err, Ok, Result, reduce, reduce_all
from blockgraph.errors import GraphError, NodeNotFound
from blockgraph.models.actions import (
    AddEdge,
    AddNode,
    GraphAction,
    MoveNode,
    RemoveEdge,
    RemoveNode,
    UpdateNodePayload,
)
from blockgraph.models.block_type import BlockType
from blockgraph.models.definition import PipelineData
from blockgraph.models.graph import EdgeInstance, Graph, NodeInstance, Position
from blockgraph.registry.registry import NodeTypeRegistry, build_default_registry
from blockgraph.utils.identifiers import IdGenerator

logger = logging.getLogger(__name__)


class EditorSession:
    """Holds the current graph of one pipeline and applies edit requests.

    Usage:
        session = EditorSession.create(name="web build")
        result = session.drop_block("os_package", (300, 100))
        if result.ok:
            session.connect(session.start_node_id, "default-output", result.value.id, "default-input")
    """

    def __init__(
        self,
        registry: NodeTypeRegistry,
        factory: NodeInstanceFactory,
        graph: Graph | None = None,
        name: str = "Untitled pipeline",
        pipeline_id: str | None = None,
        description: str | None = None,
    ) -> None:
        self.registry = registry
        self.factory = factory
        self.serializer = GraphSerializer(registry)
        self.name = name
        self.pipeline_id = pipeline_id
        self.description = description
        # checked once here; afterwards only reduce() produces new graphs
        self._graph = GraphModel(registry, graph).snapshot() if graph is not None else Graph()
        self._sinks: list[SnapshotSink] = []
        self._revision = 0

    @classmethod
    def create(
        cls,
        registry: NodeTypeRegistry | None = None,
        config: EditorConfig | None = None,
        **kwargs: Any,
    ) -> "EditorSession":
        """A session with the start block already placed, as a new pipeline opens."""
        registry = registry or build_default_registry()
        config = config or EditorConfig()
        factory = NodeInstanceFactory(registry, config.make_id_generator())
        model = GraphModel.with_start_node(registry, factory, config.start_position)
        return cls(registry, factory, graph=model.snapshot(), **kwargs)

    # ---- state ----

    @property
    def graph(self) -> Graph:
        """The current graph; treat as read-only."""
        return self._graph

    @property
    def revision(self) -> int:
        """Number of successful edits applied so far."""
        return self._revision

    @property
    def start_node_id(self) -> str | None:
        for node in self._graph.nodes.values():
            if node.type_id == BlockType.start.value:
                return node.id
        return None

    def subscribe(self, sink: SnapshotSink) -> None:
        self._sinks.append(sink)

    def unsubscribe(self, sink: SnapshotSink) -> None:
        self._sinks.remove(sink)

    # ---- requests ----

    def dispatch(self, action: GraphAction) -> Result:
        """Run one action; on success the new graph becomes current."""
        result = reduce(self._graph, action, self.registry)
        if isinstance(result, Err):
            logger.info("rejected %s: %s", action.kind, result.error.message)
            return result
        self._commit(result.graph)
        return result

    def dispatch_all(self, actions: list[GraphAction]) -> Result:
        """Run several actions as one edit: one revision, one published snapshot."""
        result = reduce_all(self._graph, actions, self.registry)
        if isinstance(result, Err):
            logger.info(
                "rejected %s: %s", "+".join(action.kind for action in actions), result.error.message
            )
            return result
        self._commit(result.graph)
        return result

    def drop_block(
        self,
        type_id: BlockType | str,
        position: Position | tuple[float, float],
        id: str | None = None,
    ) -> Result:
        """Create a block from the palette and place it on the canvas."""
        try:
            if id is None:
                id = _unused_id(self.factory.id_generator, self._graph.nodes)
            node = self.factory.create_instance(type_id, position, id=id)
        except GraphError as exc:
            return Err(exc)
        return self.dispatch(AddNode(node=node))

    def add_node(self, node: NodeInstance) -> Result:
        return self.dispatch(AddNode(node=node))

    def connect(
        self,
        source_node_id: str,
        source_handle_id: str,
        target_node_id: str,
        target_handle_id: str,
        id: str | None = None,
    ) -> Result:
        """Draw an edge between two handles; the edge id is generated when omitted."""
        if id is None:
            id = _unused_id(self.factory.edge_id_generator, self._graph.edges)
        edge = self.factory.create_edge(
            source_node_id, source_handle_id, target_node_id, target_handle_id, id=id
        )
        return self.dispatch(AddEdge(edge=edge))

    def add_edge(self, edge: EdgeInstance) -> Result:
        return self.dispatch(AddEdge(edge=edge))

    def remove_node(self, node_id: str) -> Result:
        return self.dispatch(RemoveNode(node_id=node_id))

    def remove_edge(self, edge_id: str) -> Result:
        return self.dispatch(RemoveEdge(edge_id=edge_id))

    def move_node(self, node_id: str, position: Position | tuple[float, float]) -> Result:
        if not isinstance(position, Position):
            x, y = position
            position = Position(x=x, y=y)
        return self.dispatch(MoveNode(node_id=node_id, position=position))

    def update_node_payload(self, node_id: str, changes: dict[str, Any]) -> Result:
        return self.dispatch(UpdateNodePayload(node_id=node_id, changes=changes))

    def edit_node(
        self,
        node_id: str,
        changes: dict[str, Any] | None = None,
        position: Position | tuple[float, float] | None = None,
    ) -> Result:
        """Patch a node's payload and/or position in a single edit.

        ``Ok.value`` is the node as it stands afterwards.
        """
        actions: list[GraphAction] = []
        if changes:
            actions.append(UpdateNodePayload(node_id=node_id, changes=changes))
        if position is not None:
            if not isinstance(position, Position):
                x, y = position
                position = Position(x=x, y=y)
            actions.append(MoveNode(node_id=node_id, position=position))
        if not actions:
            node = self._graph.nodes.get(node_id)
            if node is None:
                return Err(NodeNotFound(f"Node not found: {node_id}", node_id=node_id))
            return Ok(self._graph, node.model_copy(deep=True))
        result = self.dispatch_all(actions)
        if isinstance(result, Err):
            return result
        return Ok(result.graph, result.value[-1])

    def load_definition(self, definition: dict[str, Any]) -> Result:
        """Replace the whole graph with a persisted definition."""
        try:
            graph = self.serializer.deserialize(definition)
        except GraphError as exc:
            logger.info("rejected definition for %s: %s", self.pipeline_id, exc.message)
            return Err(exc)
        self._commit(graph)
        return Ok(graph)

    # ---- outputs ----

    def serialize(self) -> dict[str, Any]:
        return self.serializer.serialize(self._graph)

    def export(self) -> PipelineData:
        """The block list for the pipeline backend."""
        return build_pipeline_data(
            self._graph,
            self.registry,
            name=self.name,
            pipeline_id=self.pipeline_id,
            description=self.description,
        )

    def _commit(self, graph: Graph) -> None:
        self._graph = graph
        self._revision += 1
        for sink in self._sinks:
            sink.publish(graph.model_copy(deep=True))


def _unused_id(generator: IdGenerator, taken: Mapping[str, Any]) -> str:
    """Next id from ``generator`` that is not already a key of ``taken``.

    A loaded definition can already hold ids a counter has yet to hand out.
    """
    candidate = generator.next_id()
    while candidate in taken:
        candidate = generator.next_id()
    return candidate
