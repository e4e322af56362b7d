"""Builds node and edge instances from registry entries.

The factory only produces values; inserting them into a graph is the
GraphModel's job, which re-checks everything the factory assumed.
"""

from blockgraph.models.block_type import BlockType
from blockgraph.models.graph import EdgeInstance, EdgeStyle, NodeInstance, Position
from blockgraph.registry.registry import NodeTypeRegistry
from blockgraph.utils.identifiers import IdGenerator, UuidIdGenerator


class NodeInstanceFactory:
    """Create NodeInstances (and EdgeInstances) with injected id policy."""

    def __init__(
        self,
        registry: NodeTypeRegistry,
        id_generator: IdGenerator | None = None,
        edge_id_generator: IdGenerator | None = None,
    ) -> None:
        """
        Args:
            registry: block catalog used to resolve type ids.
            id_generator: source of node ids; UUIDs when omitted.
            edge_id_generator: source of edge ids; shares ``id_generator``
                when omitted.
        """
        self.registry = registry
        self.id_generator = id_generator or UuidIdGenerator()
        self.edge_id_generator = edge_id_generator or self.id_generator

    def create_instance(
        self,
        type_id: BlockType | str,
        position: Position | tuple[float, float],
        id: str | None = None,
    ) -> NodeInstance:
        """Build a node for ``type_id`` at ``position``.

        Raises:
            UnknownNodeType: ``type_id`` is not registered.
        """
        definition = self.registry.lookup(type_id)
        if not isinstance(position, Position):
            x, y = position
            position = Position(x=x, y=y)

        return NodeInstance(
            id=id if id is not None else self.id_generator.next_id(),
            type_id=definition.type_id.value,
            position=position,
            payload=definition.default_payload,
            # the protected start block is also pinned in place on the canvas
            selectable=definition.deletable,
            deletable=definition.deletable,
        )

    def create_edge(
        self,
        source_node_id: str,
        source_handle_id: str,
        target_node_id: str,
        target_handle_id: str,
        id: str | None = None,
    ) -> EdgeInstance:
        """Build an edge; the style tag follows the source handle."""
        return EdgeInstance(
            id=id if id is not None else self.edge_id_generator.next_id(),
            source_node_id=source_node_id,
            source_handle_id=source_handle_id,
            target_node_id=target_node_id,
            target_handle_id=target_handle_id,
            style_tag=EdgeStyle.for_handle(source_handle_id),
        )
