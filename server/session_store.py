"""In-memory store of editor sessions, one per pipeline id.

Sessions live only as long as the process. A single worker owns the dict;
the editor has one writer per pipeline.
"""

from blockgraph.config import EditorConfig
from blockgraph.registry.registry import NodeTypeRegistry, build_default_registry
from blockgraph.session import EditorSession
from blockgraph.utils.identifiers import generate_pipeline_id, utc_timestamp

_registry: NodeTypeRegistry | None = None
_config: EditorConfig | None = None
_sessions: dict[str, EditorSession] = {}
_created_at: dict[str, str] = {}


def configure(config: EditorConfig) -> None:
    """Set the config used for sessions created from now on."""
    global _config
    _config = config


def get_config() -> EditorConfig:
    global _config
    if _config is None:
        _config = EditorConfig.from_env()
    return _config


def get_registry() -> NodeTypeRegistry:
    global _registry
    if _registry is None:
        _registry = build_default_registry()
    return _registry


def create_session(name: str, description: str | None = None) -> EditorSession:
    """Open a new pipeline with its start block placed."""
    pipeline_id = generate_pipeline_id()
    session = EditorSession.create(
        registry=get_registry(),
        config=get_config(),
        name=name,
        pipeline_id=pipeline_id,
        description=description,
    )
    _sessions[pipeline_id] = session
    _created_at[pipeline_id] = utc_timestamp()
    return session


def get_session(pipeline_id: str) -> EditorSession | None:
    return _sessions.get(pipeline_id)


def get_created_at(pipeline_id: str) -> str | None:
    return _created_at.get(pipeline_id)


def list_sessions() -> list[EditorSession]:
    return list(_sessions.values())


def delete_session(pipeline_id: str) -> bool:
    """Drop a session; returns False when it did not exist."""
    _created_at.pop(pipeline_id, None)
    return _sessions.pop(pipeline_id, None) is not None


def clear_sessions() -> None:
    _sessions.clear()
    _created_at.clear()
