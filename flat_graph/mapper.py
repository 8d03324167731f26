"""FlatGraphMapper - public entry point.

Transforms a flat list of rows (typically a JOIN result) into a list of
root entities with populated child collections::

    rows = cursor_rows_as_dicts(...)
    users = FlatGraphMapper.map(rows, UserRow)

Engines are cached per (schema, strategy). Each build call uses fresh
identity maps, so one cached engine is safe to share between threads.
"""

from __future__ import annotations

import logging
from collections.abc import Hashable, Iterable
from typing import Any

from flat_graph.core.cache import ComputeOnceCache
from flat_graph.core.enums import NullIdStrategy
from flat_graph.mapping.extractor import MetadataExtractor
from flat_graph.mapping.graph import GraphBuildEngine
from flat_graph.mapping.plan import SchemaMetadata

logger = logging.getLogger(__name__)


def _create_engine(key: tuple[Hashable, NullIdStrategy]) -> GraphBuildEngine[Any]:
    schema, strategy = key
    engine = GraphBuildEngine.for_schema(schema, strategy)
    logger.debug(
        "Created graph engine for %s (strategy=%s)",
        engine.metadata.schema_name,
        strategy.value,
    )
    return engine


class FlatGraphMapper:
    """Facade over the metadata and engine caches."""

    _engines: ComputeOnceCache[tuple[Hashable, NullIdStrategy], GraphBuildEngine[Any]] = (
        ComputeOnceCache()
    )

    @classmethod
    def map(
        cls,
        rows: Iterable[Any] | None,
        schema: Hashable,
        strategy: NullIdStrategy | str = NullIdStrategy.SKIP,
    ) -> list[Any]:
        """Map rows of ``schema`` into an ordered list of root entities.

        Args:
            rows: Row dicts or row objects; may be empty or None.
            schema: A row class carrying field markers, or a RowSchema.
            strategy: Null child identity handling, as a member or its
                      string value ("skip", "throw", "allow_null").

        Raises:
            ConfigurationError: If the schema is invalid.
            MappingError: If a row cannot be mapped.
        """
        return cls.engine_for(schema, strategy).build(rows)

    @classmethod
    def engine_for(
        cls,
        schema: Hashable,
        strategy: NullIdStrategy | str = NullIdStrategy.SKIP,
    ) -> GraphBuildEngine[Any]:
        """Return the cached engine for (schema, strategy), creating it once."""
        key = (schema, NullIdStrategy.coerce(strategy))
        return cls._engines.get_or_compute(key, _create_engine)

    @classmethod
    def metadata_for(cls, schema: Hashable) -> SchemaMetadata:
        """Return the cached, validated metadata for schema."""
        return MetadataExtractor.extract(schema)

    @classmethod
    def clear_cache(cls) -> None:
        """Drop all cached engines and metadata."""
        cls._engines.clear()
        MetadataExtractor.clear_cache()


def map_rows(
    rows: Iterable[Any] | None,
    schema: Hashable,
    strategy: NullIdStrategy | str = NullIdStrategy.SKIP,
) -> list[Any]:
    """Shorthand for FlatGraphMapper.map."""
    return FlatGraphMapper.map(rows, schema, strategy)
