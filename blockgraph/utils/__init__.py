"""Utility functions for blockgraph."""

from blockgraph.utils.identifiers import (
    CounterIdGenerator,
    IdGenerator,
    UuidIdGenerator,
    generate_pipeline_id,
    utc_timestamp,
)

__all__ = [
    "IdGenerator",
    "CounterIdGenerator",
    "UuidIdGenerator",
    "generate_pipeline_id",
    "utc_timestamp",
]
