"""blockgraph - graph engine for a visual CI/CD pipeline builder."""

from blockgraph.adapters.pipeline_export import build_pipeline_blocks, build_pipeline_data
from blockgraph.adapters.serializer import GraphSerializer
from blockgraph.config import EditorConfig
from blockgraph.editor.factory import NodeInstanceFactory
from blockgraph.editor.graph_model import GraphModel
from blockgraph.editor.reducer import Err, Ok, reduce, reduce_all
from blockgraph.editor.validator import ConnectionValidator
from blockgraph.errors import (
    ConstraintViolation,
    DuplicateEdgeId,
    DuplicateNodeId,
    EdgeNotFound,
    ErrorCode,
    GraphError,
    Invariant,
    MalformedDefinition,
    NodeNotFound,
    ProtectedNodeDeletion,
    SelfLoopRejected,
    UnknownNodeType,
)
from blockgraph.models.block_type import BlockGroup, BlockType, BlockTypeDefinition
from blockgraph.models.graph import EdgeInstance, Graph, NodeInstance, Position
from blockgraph.registry.registry import NodeTypeRegistry, build_default_registry
from blockgraph.session import EditorSession
from blockgraph.utils.identifiers import CounterIdGenerator, UuidIdGenerator

__all__ = [
    # Registry
    "BlockGroup",
    "BlockType",
    "BlockTypeDefinition",
    "NodeTypeRegistry",
    "build_default_registry",
    # Graph
    "Position",
    "NodeInstance",
    "EdgeInstance",
    "Graph",
    # Editing
    "CounterIdGenerator",
    "UuidIdGenerator",
    "NodeInstanceFactory",
    "ConnectionValidator",
    "GraphModel",
    "reduce",
    "reduce_all",
    "Ok",
    "Err",
    "EditorSession",
    "EditorConfig",
    # Persistence and export
    "GraphSerializer",
    "build_pipeline_blocks",
    "build_pipeline_data",
    # Errors
    "ErrorCode",
    "Invariant",
    "GraphError",
    "UnknownNodeType",
    "DuplicateNodeId",
    "DuplicateEdgeId",
    "NodeNotFound",
    "EdgeNotFound",
    "ProtectedNodeDeletion",
    "ConstraintViolation",
    "SelfLoopRejected",
    "MalformedDefinition",
]
