"""Flatten a graph into the block list the pipeline backend runs.

Each non-start node becomes one block dict carrying its payload plus the
routing fields derived from its outgoing edges. Routing fields hold the
target's ``blockId`` when the target payload sets one, else its node id.
"""

import logging
from typing import Any

from blockgraph.models.block_type import (
    BRANCH_OUTPUT,
    DEFAULT_OUTPUT,
    FAILED_OUTPUT,
    JOIN_OUTPUT,
    SUCCESS_OUTPUT,
    BlockType,
)
from blockgraph.models.definition import PipelineData
from blockgraph.models.graph import EdgeInstance, Graph, NodeInstance
from blockgraph.registry.registry import NodeTypeRegistry
from blockgraph.utils.identifiers import generate_pipeline_id, utc_timestamp

logger = logging.getLogger(__name__)

_ROUTING_KEYS = ("label", "blockType", "groupType", "blockId")


def _block_id(node: NodeInstance) -> str:
    return node.payload.get("blockId") or node.id


def _targets(graph: Graph, node_id: str, handle_id: str) -> list[str]:
    """blockIds reached from one output handle, in edge insertion order."""
    edges: list[EdgeInstance] = [
        edge
        for edge in graph.edges.values()
        if edge.source_node_id == node_id and edge.source_handle_id == handle_id
    ]
    return [_block_id(graph.nodes[edge.target_node_id]) for edge in edges]


def _first(targets: list[str]) -> str | None:
    return targets[0] if targets else None


def build_block(graph: Graph, node: NodeInstance, registry: NodeTypeRegistry) -> dict[str, Any]:
    """The backend record for one node."""
    definition = registry.lookup(node.type_id)
    handle_ids = definition.output_topology.handle_ids()

    on_success = _first(_targets(graph, node.id, SUCCESS_OUTPUT))
    if on_success is None and handle_ids == [DEFAULT_OUTPUT]:
        on_success = _first(_targets(graph, node.id, DEFAULT_OUTPUT))

    block: dict[str, Any] = {
        "label": node.payload.get("label", definition.label),
        "blockType": node.payload.get("blockType", definition.type_id.value),
        "groupType": node.payload.get("groupType", definition.category.value),
        "blockId": _block_id(node),
        "onSuccess": on_success,
        "onFailed": _first(_targets(graph, node.id, FAILED_OUTPUT)),
    }
    for key, value in node.payload.items():
        if key not in _ROUTING_KEYS:
            block[key] = value

    if definition.type_id == BlockType.condition_branch:
        block["onConditionTrue"] = block["onSuccess"]
        block["onConditionFalse"] = block["onFailed"]
    elif definition.type_id == BlockType.parallel_execution:
        block["parallelBranches"] = _targets(graph, node.id, BRANCH_OUTPUT)
        block["onAllSuccess"] = _first(_targets(graph, node.id, JOIN_OUTPUT))

    return block


def build_pipeline_blocks(graph: Graph, registry: NodeTypeRegistry) -> list[dict[str, Any]]:
    """Blocks for every non-start node, in node insertion order."""
    return [
        build_block(graph, node, registry)
        for node in graph.nodes.values()
        if node.type_id != BlockType.start.value
    ]


def build_pipeline_data(
    graph: Graph,
    registry: NodeTypeRegistry,
    name: str,
    pipeline_id: str | None = None,
    description: str | None = None,
) -> PipelineData:
    """Wrap the exported blocks with pipeline metadata."""
    blocks = build_pipeline_blocks(graph, registry)
    data = PipelineData(
        pipeline_id=pipeline_id or generate_pipeline_id(),
        name=name,
        description=description,
        created_at=utc_timestamp(),
        blocks=blocks,
    )
    logger.debug("exported pipeline %s with %d block(s)", data.pipeline_id, len(blocks))
    return data
