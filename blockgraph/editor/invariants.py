"""Whole-graph invariant checks.

Used when a graph arrives from outside the editor (deserialization, a graph
handed to GraphModel) and by tests after arbitrary edit sequences. Every
violation is collected rather than stopping at the first.
"""

from collections import Counter

from pydantic import ValidationError

from blockgraph.errors import Invariant
from blockgraph.models.block_type import BlockType
from blockgraph.models.graph import Graph
from blockgraph.registry.registry import NodeTypeRegistry

Violation = tuple[Invariant, str]


def check_invariants(
    graph: Graph, registry: NodeTypeRegistry, require_start: bool = True
) -> list[Violation]:
    """Return every invariant ``graph`` breaks, in a stable order.

    With ``require_start=False`` a graph without a start node passes, which
    is the state of an editor before the start block is seeded.
    """
    violations: list[Violation] = []

    for key, node in graph.nodes.items():
        if key != node.id:
            violations.append((Invariant.unique_ids, f"node keyed {key!r} has id {node.id!r}"))
    for key, edge in graph.edges.items():
        if key != edge.id:
            violations.append((Invariant.unique_ids, f"edge keyed {key!r} has id {edge.id!r}"))

    starts = [node.id for node in graph.nodes.values() if node.type_id == BlockType.start.value]
    if len(starts) > 1 or (require_start and not starts):
        violations.append(
            (Invariant.single_start_node, f"expected exactly one start node, found {len(starts)}")
        )

    for node in graph.nodes.values():
        definition = registry.get(node.type_id)
        if definition is None:
            violations.append((Invariant.registered_type, f"node {node.id}: unknown type {node.type_id!r}"))
            continue
        if node.deletable != definition.deletable:
            violations.append(
                (Invariant.single_start_node, f"node {node.id}: deletable flag does not match its type")
            )
        try:
            definition.validate_payload(node.payload)
        except ValidationError as exc:
            violations.append(
                (Invariant.payload_shape, f"node {node.id}: {exc.error_count()} invalid payload field(s)")
            )

    fanout: Counter[tuple[str, str]] = Counter()
    for edge in graph.edges.values():
        source = graph.nodes.get(edge.source_node_id)
        target = graph.nodes.get(edge.target_node_id)
        if source is None or target is None:
            violations.append(
                (Invariant.edge_endpoints, f"edge {edge.id}: endpoint node missing")
            )
            continue
        if edge.source_node_id == edge.target_node_id:
            violations.append((Invariant.no_self_loops, f"edge {edge.id}: self-loop on {edge.source_node_id}"))

        source_def = registry.get(source.type_id)
        target_def = registry.get(target.type_id)
        if source_def is None or target_def is None:
            continue  # already reported as registered-type
        if source_def.output_handle(edge.source_handle_id) is None:
            violations.append(
                (Invariant.declared_handles, f"edge {edge.id}: no output {edge.source_handle_id!r} on {source.id}")
            )
        elif source_def.is_fanout_limited(edge.source_handle_id):
            fanout[edge.source_key] += 1
        if target.type_id == BlockType.start.value:
            violations.append(
                (Invariant.single_start_node, f"edge {edge.id}: start node {target.id} cannot have incoming edges")
            )
        elif target_def.input_handle(edge.target_handle_id) is None:
            violations.append(
                (Invariant.declared_handles, f"edge {edge.id}: no input {edge.target_handle_id!r} on {target.id}")
            )

    for (node_id, handle_id), count in fanout.items():
        definition = registry.lookup(graph.nodes[node_id].type_id)
        limit = definition.output_handle(handle_id).fanout_limit
        if count > limit:
            violations.append(
                (Invariant.fanout_limit, f"{node_id}/{handle_id}: {count} edges exceed limit {limit}")
            )

    return violations
