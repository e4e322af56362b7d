"""Snapshot sinks: receivers of the graph after each successful edit."""

import json
from pathlib import Path

from blockgraph.adapters.serializer import GraphSerializer
from blockgraph.models.graph import Graph


class SnapshotSink:
    """Protocol for receiving graph snapshots."""

    def publish(self, graph: Graph) -> None:
        """Receive the graph as it stands after an edit."""
        raise NotImplementedError


class ListSink(SnapshotSink):
    """Stores snapshots in a list."""

    def __init__(self) -> None:
        self.snapshots: list[Graph] = []

    def publish(self, graph: Graph) -> None:
        self.snapshots.append(graph)

    @property
    def latest(self) -> Graph | None:
        return self.snapshots[-1] if self.snapshots else None

    def clear(self) -> None:
        self.snapshots.clear()


class FileSink(SnapshotSink):
    """Overwrites a JSON file with the serialized definition (autosave)."""

    def __init__(self, path: Path | str, serializer: GraphSerializer) -> None:
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.serializer = serializer

    def publish(self, graph: Graph) -> None:
        with open(self.path, "w") as f:
            json.dump(self.serializer.serialize(graph), f, indent=2)
