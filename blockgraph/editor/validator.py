"""Connection rules for candidate edges.

``validate`` is a pure, single-pass decision over the current graph: it
never mutates anything and gives the same answer for the same edge set.
"""

import logging
from typing import Self

from pydantic import BaseModel

from blockgraph.errors import ConstraintViolation, ErrorCode, GraphError, NodeNotFound, SelfLoopRejected
from blockgraph.models.graph import EdgeInstance, Graph
from blockgraph.registry.registry import NodeTypeRegistry

logger = logging.getLogger(__name__)


class ConnectionDecision(BaseModel):
    """Accept, or reject with a reason code and message."""

    accepted: bool
    reason: ErrorCode | None = None
    message: str | None = None

    @classmethod
    def accept(cls) -> Self:
        return cls(accepted=True)

    @classmethod
    def reject(cls, reason: ErrorCode, message: str) -> Self:
        return cls(accepted=False, reason=reason, message=message)

    def to_error(self, edge: EdgeInstance) -> GraphError:
        """The exception matching a rejection."""
        context = {"edge_id": edge.id, "source": edge.source_node_id, "target": edge.target_node_id}
        if self.reason == ErrorCode.self_loop_rejected:
            return SelfLoopRejected(self.message or "self-loop rejected", **context)
        return ConstraintViolation(self.message or "connection rejected", **context)


class ConnectionValidator:
    """Decides whether a candidate edge may join the graph."""

    def __init__(self, registry: NodeTypeRegistry) -> None:
        self.registry = registry

    def validate(self, candidate: EdgeInstance, graph: Graph) -> ConnectionDecision:
        """Check ``candidate`` against ``graph``.

        Both endpoint nodes must already be in the graph; a missing one is
        a caller error and raises NodeNotFound.
        """
        decision = self._decide(candidate, graph)
        if not decision.accepted:
            logger.info("rejected edge %s: %s", candidate.id, decision.message)
        return decision

    def _decide(self, candidate: EdgeInstance, graph: Graph) -> ConnectionDecision:
        if candidate.source_node_id == candidate.target_node_id:
            return ConnectionDecision.reject(
                ErrorCode.self_loop_rejected,
                f"Node {candidate.source_node_id} cannot connect to itself",
            )

        source = graph.nodes.get(candidate.source_node_id)
        target = graph.nodes.get(candidate.target_node_id)
        if source is None or target is None:
            missing = candidate.source_node_id if source is None else candidate.target_node_id
            raise NodeNotFound(f"Node {missing} not in graph", node_id=missing)

        source_def = self.registry.lookup(source.type_id)
        target_def = self.registry.lookup(target.type_id)

        handle = source_def.output_handle(candidate.source_handle_id)
        if handle is None:
            return ConnectionDecision.reject(
                ErrorCode.constraint_violation,
                f"{source_def.type_id.value} has no output handle "
                f"'{candidate.source_handle_id}' (declared: {source_def.output_topology.handle_ids()})",
            )

        if target_def.input_handle(candidate.target_handle_id) is None:
            declared = target_def.input_topology.handle_ids()
            if not declared:
                message = f"{target_def.type_id.value} does not accept incoming connections"
            else:
                message = (
                    f"{target_def.type_id.value} has no input handle "
                    f"'{candidate.target_handle_id}' (declared: {declared})"
                )
            return ConnectionDecision.reject(ErrorCode.constraint_violation, message)

        if handle.constrained:
            used = sum(1 for edge in graph.edges.values() if edge.source_key == candidate.source_key)
            if used >= handle.fanout_limit:
                return ConnectionDecision.reject(
                    ErrorCode.constraint_violation,
                    f"Handle '{handle.handle_id}' on {candidate.source_node_id} already has "
                    f"{used} connection(s) (limit {handle.fanout_limit})",
                )

        return ConnectionDecision.accept()


def validate_connection(
    candidate: EdgeInstance, graph: Graph, registry: NodeTypeRegistry
) -> ConnectionDecision:
    """Functional form of ConnectionValidator.validate."""
    return ConnectionValidator(registry).validate(candidate, graph)
