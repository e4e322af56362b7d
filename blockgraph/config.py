"""Editor configuration.

Settings are plain dataclass fields; ``EditorConfig.from_env()`` reads the
same values from environment variables (a ``.env`` file is loaded by the
server before this is called).
"""

import os
from dataclasses import dataclass, field

from blockgraph.models.graph import Position
from blockgraph.utils.identifiers import CounterIdGenerator, IdGenerator, UuidIdGenerator

ID_STRATEGIES = {"uuid", "counter"}


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None


@dataclass
class EditorConfig:
    """
    Attributes:
        id_strategy:   "uuid" for ids safe across clients, "counter" for
                       deterministic ids within one process.
        id_prefix:     Prepended to every generated node/edge id.
        start_x:       Canvas position of the seeded start block.
        start_y:       Canvas position of the seeded start block.
        log_level:     Level name applied by the server at startup.
        cors_origins:  Allowed origins for the HTTP surface.
    """

    id_strategy: str = "uuid"
    id_prefix: str = ""
    start_x: float = 100.0
    start_y: float = 100.0
    log_level: str = "INFO"
    cors_origins: list[str] = field(default_factory=lambda: ["*"])

    def __post_init__(self) -> None:
        if self.id_strategy not in ID_STRATEGIES:
            raise ValueError(
                f"id_strategy must be one of {sorted(ID_STRATEGIES)}, got {self.id_strategy!r}"
            )

    @classmethod
    def from_env(cls) -> "EditorConfig":
        return cls(
            id_strategy=os.getenv("BLOCKGRAPH_ID_STRATEGY", "uuid").lower(),
            id_prefix=os.getenv("BLOCKGRAPH_ID_PREFIX", ""),
            start_x=_env_float("BLOCKGRAPH_START_X", 100.0),
            start_y=_env_float("BLOCKGRAPH_START_Y", 100.0),
            log_level=os.getenv("BLOCKGRAPH_LOG_LEVEL", "INFO").upper(),
            # comma-separated, or "*" for all (development only)
            cors_origins=os.getenv("CORS_ORIGINS", "*").split(","),
        )

    @property
    def start_position(self) -> Position:
        return Position(x=self.start_x, y=self.start_y)

    def make_id_generator(self) -> IdGenerator:
        if self.id_strategy == "counter":
            return CounterIdGenerator(prefix=self.id_prefix)
        return UuidIdGenerator(prefix=self.id_prefix)
