"""Adapters between the graph and the outside world: persistence, export and sinks."""

from blockgraph.adapters.pipeline_export import build_block, build_pipeline_blocks, build_pipeline_data
from blockgraph.adapters.serializer import GraphSerializer
from blockgraph.adapters.sinks import FileSink, ListSink, SnapshotSink

__all__ = [
    "GraphSerializer",
    "build_block",
    "build_pipeline_blocks",
    "build_pipeline_data",
    "SnapshotSink",
    "ListSink",
    "FileSink",
]
