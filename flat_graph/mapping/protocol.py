"""Mapper protocol.

Anything that turns fetched row dicts into objects implements this
interface. GraphBuildEngine satisfies it, so it can be handed to any
query layer that accepts a mapper.
"""

from __future__ import annotations

from typing import Any, Protocol, TypeVar, runtime_checkable

T = TypeVar("T", covariant=True)


@runtime_checkable
class Mapper(Protocol[T]):
    """Base mapper protocol."""

    def map_one(self, row: Any) -> T:
        """Map a single row to a target object."""
        ...

    def map_many(self, rows: list[Any]) -> list[T]:
        """Map multiple rows to a list of target objects."""
        ...
