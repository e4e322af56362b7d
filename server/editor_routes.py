"""API routes for the block palette and pipeline editing sessions."""

import logging
from typing import Any

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from blockgraph.editor.reducer import Err, Ok, Result
from blockgraph.errors import ErrorCode, GraphError
from blockgraph.models.block_type import BlockGroup, BlockTypeDefinition, HandleSpec
from blockgraph.models.graph import EdgeInstance, NodeInstance, Position
from blockgraph.session import EditorSession
from server import session_store

logger = logging.getLogger(__name__)

router = APIRouter()

STATUS_BY_CODE = {
    ErrorCode.unknown_node_type: 400,
    ErrorCode.node_not_found: 404,
    ErrorCode.edge_not_found: 404,
    ErrorCode.duplicate_node_id: 409,
    ErrorCode.duplicate_edge_id: 409,
    ErrorCode.protected_node_deletion: 409,
    ErrorCode.constraint_violation: 422,
    ErrorCode.self_loop_rejected: 422,
    ErrorCode.malformed_definition: 422,
}


class BlockInfo(BaseModel):
    """Palette entry for one block type."""

    type_id: str
    label: str
    category: str
    description: str
    icon: str | None = None
    deletable: bool
    input_handles: list[HandleSpec]
    output_handles: list[HandleSpec]
    default_payload: dict[str, Any]


class PipelineSummary(BaseModel):
    pipeline_id: str
    name: str
    description: str | None = None
    created_at: str | None = None
    node_count: int
    edge_count: int
    revision: int


class PipelineCreateRequest(BaseModel):
    name: str
    description: str | None = None


class NodeCreateRequest(BaseModel):
    """Request body for dropping a block on the canvas."""

    type_id: str
    position: Position
    id: str | None = None


class NodeUpdateRequest(BaseModel):
    position: Position | None = None
    payload: dict[str, Any] | None = None  # camelCase keys, merged into the current payload


class EdgeCreateRequest(BaseModel):
    source: str
    source_handle: str
    target: str
    target_handle: str
    id: str | None = None


def _block_info(definition: BlockTypeDefinition) -> BlockInfo:
    return BlockInfo(
        type_id=definition.type_id.value,
        label=definition.label,
        category=definition.category.value,
        description=definition.description,
        icon=definition.icon,
        deletable=definition.deletable,
        input_handles=list(definition.input_topology.handles),
        output_handles=list(definition.output_topology.handles),
        default_payload=definition.default_payload,
    )


def _summary(session: EditorSession) -> PipelineSummary:
    return PipelineSummary(
        pipeline_id=session.pipeline_id,
        name=session.name,
        description=session.description,
        created_at=session_store.get_created_at(session.pipeline_id),
        node_count=session.graph.node_count,
        edge_count=session.graph.edge_count,
        revision=session.revision,
    )


def _http_error(error: GraphError) -> HTTPException:
    return HTTPException(status_code=STATUS_BY_CODE.get(error.code, 400), detail=error.to_dict())


def _unwrap(result: Result) -> Ok:
    if isinstance(result, Err):
        raise _http_error(result.error)
    return result


def _load_session(pipeline_id: str) -> EditorSession:
    session = session_store.get_session(pipeline_id)
    if session is None:
        raise HTTPException(status_code=404, detail=f"Pipeline not found: {pipeline_id}")
    return session


# ---- palette ----


@router.get("/blocks")
def list_blocks_endpoint(category: str | None = None) -> list[BlockInfo]:
    """List block types in palette order, optionally for one category."""
    if category is not None and category not in BlockGroup.__members__:
        raise HTTPException(status_code=400, detail=f"Unknown category: {category}")
    registry = session_store.get_registry()
    return [_block_info(d) for d in registry.list_blocks(category)]


@router.get("/blocks/categories")
def list_categories_endpoint() -> dict[str, list[str]]:
    """Palette grouping: category -> block type ids."""
    grouped = session_store.get_registry().by_category()
    return {group.value: [d.type_id.value for d in definitions] for group, definitions in grouped.items()}


# ---- pipelines ----


@router.post("/pipelines", status_code=201)
def create_pipeline(request: PipelineCreateRequest) -> PipelineSummary:
    session = session_store.create_session(request.name, request.description)
    logger.info("opened pipeline %s (%s)", session.pipeline_id, session.name)
    return _summary(session)


@router.get("/pipelines")
def list_pipelines() -> list[PipelineSummary]:
    return [_summary(session) for session in session_store.list_sessions()]


@router.get("/pipelines/{pipeline_id}")
def get_pipeline_definition(pipeline_id: str) -> dict:
    """The persisted {nodes, edges} definition of a pipeline."""
    return _load_session(pipeline_id).serialize()


@router.put("/pipelines/{pipeline_id}")
def replace_pipeline_definition(pipeline_id: str, definition: dict) -> PipelineSummary:
    """Replace the whole graph with an imported definition."""
    session = _load_session(pipeline_id)
    _unwrap(session.load_definition(definition))
    return _summary(session)


@router.delete("/pipelines/{pipeline_id}")
def delete_pipeline(pipeline_id: str) -> dict:
    if not session_store.delete_session(pipeline_id):
        raise HTTPException(status_code=404, detail=f"Pipeline not found: {pipeline_id}")
    return {"deleted": pipeline_id}


@router.get("/pipelines/{pipeline_id}/export")
def export_pipeline(pipeline_id: str) -> dict:
    """Block list for the execution backend."""
    data = _load_session(pipeline_id).export()
    return data.model_dump(by_alias=True, mode="json")


# ---- nodes ----


@router.post("/pipelines/{pipeline_id}/nodes", status_code=201)
def add_node(pipeline_id: str, request: NodeCreateRequest) -> NodeInstance:
    session = _load_session(pipeline_id)
    result = _unwrap(session.drop_block(request.type_id, request.position, id=request.id))
    return result.value


@router.patch("/pipelines/{pipeline_id}/nodes/{node_id}")
def update_node(pipeline_id: str, node_id: str, request: NodeUpdateRequest) -> NodeInstance:
    """Move a node and/or patch its payload, as one edit."""
    session = _load_session(pipeline_id)
    result = _unwrap(session.edit_node(node_id, changes=request.payload, position=request.position))
    return result.value


@router.delete("/pipelines/{pipeline_id}/nodes/{node_id}")
def delete_node(pipeline_id: str, node_id: str) -> dict:
    """Remove a node; its edges go with it."""
    session = _load_session(pipeline_id)
    result = _unwrap(session.remove_node(node_id))
    return {"deleted": node_id, "removed_edges": [edge.id for edge in result.value]}


# ---- edges ----


@router.post("/pipelines/{pipeline_id}/edges", status_code=201)
def add_edge(pipeline_id: str, request: EdgeCreateRequest) -> EdgeInstance:
    session = _load_session(pipeline_id)
    result = _unwrap(
        session.connect(
            request.source,
            request.source_handle,
            request.target,
            request.target_handle,
            id=request.id,
        )
    )
    return result.value


@router.delete("/pipelines/{pipeline_id}/edges/{edge_id}")
def delete_edge(pipeline_id: str, edge_id: str) -> dict:
    session = _load_session(pipeline_id)
    _unwrap(session.remove_edge(edge_id))
    return {"deleted": edge_id}
