"""Error taxonomy for graph construction and validation.

All of these are deterministic logic errors. Nothing in the engine retries
them; callers decide whether to surface, log or ignore a rejection.
"""

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Stable tags for every failure the engine can report."""

    unknown_node_type = "unknown_node_type"
    duplicate_node_id = "duplicate_node_id"
    duplicate_edge_id = "duplicate_edge_id"
    node_not_found = "node_not_found"
    edge_not_found = "edge_not_found"
    protected_node_deletion = "protected_node_deletion"
    constraint_violation = "constraint_violation"
    self_loop_rejected = "self_loop_rejected"
    malformed_definition = "malformed_definition"


class Invariant(str, Enum):
    """Named graph invariants, reported by MalformedDefinition."""

    single_start_node = "single-start-node"
    unique_ids = "unique-ids"
    edge_endpoints = "edge-endpoints"
    fanout_limit = "fanout-limit"
    registered_type = "registered-type"
    declared_handles = "declared-handles"
    payload_shape = "payload-shape"
    no_self_loops = "no-self-loops"
    schema = "schema"


class GraphError(Exception):
    """Base class for all engine errors."""

    code: ErrorCode

    def __init__(self, message: str, **context: Any) -> None:
        super().__init__(message)
        self.message = message
        self.context = context

    def to_dict(self) -> dict[str, Any]:
        """JSON-friendly form used by the HTTP layer."""
        return {"code": self.code.value, "message": self.message, **self.context}


class UnknownNodeType(GraphError):
    """Raised when a type id is not present in the registry."""

    code = ErrorCode.unknown_node_type


class DuplicateNodeId(GraphError):
    code = ErrorCode.duplicate_node_id


class DuplicateEdgeId(GraphError):
    code = ErrorCode.duplicate_edge_id


class NodeNotFound(GraphError):
    code = ErrorCode.node_not_found


class EdgeNotFound(GraphError):
    code = ErrorCode.edge_not_found


class ProtectedNodeDeletion(GraphError):
    """Raised when removing a node whose deletable flag is false."""

    code = ErrorCode.protected_node_deletion


class ConstraintViolation(GraphError):
    """Raised when a mutation would break a structural rule of the graph."""

    code = ErrorCode.constraint_violation


class SelfLoopRejected(GraphError):
    """Raised for an edge whose source and target are the same node."""

    code = ErrorCode.self_loop_rejected


class MalformedDefinition(GraphError):
    """Raised when a serialized definition violates a graph invariant.

    ``invariant`` names the first violated rule; ``violations`` lists every
    problem found so a caller can report them all at once.
    """

    code = ErrorCode.malformed_definition

    def __init__(
        self,
        invariant: Invariant,
        message: str,
        violations: list[str] | None = None,
    ) -> None:
        super().__init__(message, invariant=invariant.value)
        self.invariant = invariant
        self.violations = violations or [message]

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["violations"] = self.violations
        return data
