"""Block type registry and the built-in catalog."""

from blockgraph.registry.catalog import BLOCK_DEFINITIONS
from blockgraph.registry.registry import NodeTypeRegistry, build_default_registry, type_key

__all__ = [
    "BLOCK_DEFINITIONS",
    "NodeTypeRegistry",
    "build_default_registry",
    "type_key",
]
