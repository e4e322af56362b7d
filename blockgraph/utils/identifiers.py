"""ID generation and timestamp utilities."""

import itertools
import uuid
from datetime import datetime, timezone
from typing import Protocol


class IdGenerator(Protocol):
    """Source of identifiers for nodes and edges."""

    def next_id(self) -> str:
        """Return an identifier never returned before by this generator."""
        ...


class CounterIdGenerator:
    """Monotonically increasing ids ("n1", "n2", ...).

    Deterministic, which makes it the choice for tests. Ids are only unique
    within one process; two independent clients will collide.
    """

    def __init__(self, prefix: str = "", start: int = 1) -> None:
        self.prefix = prefix
        self._counter = itertools.count(start)

    def next_id(self) -> str:
        return f"{self.prefix}{next(self._counter)}"

    def __repr__(self) -> str:
        return f"CounterIdGenerator(prefix={self.prefix!r})"


class UuidIdGenerator:
    """Random ids (UUID4), safe across independent clients."""

    def __init__(self, prefix: str = "") -> None:
        self.prefix = prefix

    def next_id(self) -> str:
        return f"{self.prefix}{uuid.uuid4()}"

    def __repr__(self) -> str:
        return f"UuidIdGenerator(prefix={self.prefix!r})"


def generate_pipeline_id() -> str:
    """Generate a unique pipeline ID (UUID4)."""
    return str(uuid.uuid4())


def utc_timestamp() -> str:
    """Generate an ISO8601 UTC timestamp."""
    return datetime.now(timezone.utc).isoformat()
