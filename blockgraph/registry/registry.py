"""Static catalog of block types, keyed by type id."""

import logging
from collections.abc import Iterable, Iterator

from blockgraph.errors import UnknownNodeType
from blockgraph.models.block_type import BlockGroup, BlockType, BlockTypeDefinition
from blockgraph.registry.catalog import BLOCK_DEFINITIONS

logger = logging.getLogger(__name__)


def type_key(type_id: BlockType | str) -> str:
    """Normalize a BlockType member or plain string to the registry key."""
    if isinstance(type_id, BlockType):
        return type_id.value
    return type_id


class NodeTypeRegistry:
    """Read-only lookup table of BlockTypeDefinitions.

    Contents are fixed when the registry is built. Listing preserves the
    order definitions were supplied in, which is also palette order.

    Usage:
        registry = build_default_registry()
        registry.lookup("os_package").default_payload
        registry.list_blocks(BlockGroup.test)
    """

    def __init__(self, definitions: Iterable[BlockTypeDefinition]) -> None:
        table: dict[str, BlockTypeDefinition] = {}
        for definition in definitions:
            key = definition.type_id.value
            if key in table:
                raise ValueError(f"duplicate block type: {key}")
            table[key] = definition

        protected = [d for d in table.values() if not d.deletable]
        if len(protected) != 1 or protected[0].type_id != BlockType.start:
            raise ValueError("registry must define exactly one protected 'start' block type")

        self._definitions = table
        logger.debug("built block registry with %d types", len(table))

    def lookup(self, type_id: BlockType | str) -> BlockTypeDefinition:
        """Return the definition for ``type_id``; raises UnknownNodeType."""
        definition = self._definitions.get(type_key(type_id))
        if definition is None:
            raise UnknownNodeType(f"Unknown node type: {type_id}", type_id=type_key(type_id))
        return definition

    def get(self, type_id: BlockType | str) -> BlockTypeDefinition | None:
        return self._definitions.get(type_key(type_id))

    def list_blocks(self, category: BlockGroup | str | None = None) -> list[BlockTypeDefinition]:
        """Definitions in insertion order, optionally restricted to one category.

        Returns a new list on every call.
        """
        if category is None:
            return list(self._definitions.values())
        group = BlockGroup(category)
        return [d for d in self._definitions.values() if d.category == group]

    def categories(self) -> list[BlockGroup]:
        """Categories that have at least one block, in first-seen order."""
        seen: list[BlockGroup] = []
        for definition in self._definitions.values():
            if definition.category not in seen:
                seen.append(definition.category)
        return seen

    def by_category(self) -> dict[BlockGroup, list[BlockTypeDefinition]]:
        """Palette grouping: every category, including empty ones."""
        return {group: self.list_blocks(group) for group in BlockGroup}

    @property
    def start_definition(self) -> BlockTypeDefinition:
        return self._definitions[BlockType.start.value]

    def __contains__(self, type_id: object) -> bool:
        if not isinstance(type_id, str):
            return False
        return type_key(type_id) in self._definitions

    def __iter__(self) -> Iterator[BlockTypeDefinition]:
        return iter(list(self._definitions.values()))

    def __len__(self) -> int:
        return len(self._definitions)

    def __repr__(self) -> str:
        return f"NodeTypeRegistry(types={len(self._definitions)})"


def build_default_registry() -> NodeTypeRegistry:
    """Registry holding the built-in CI/CD block catalog."""
    return NodeTypeRegistry(BLOCK_DEFINITIONS)
