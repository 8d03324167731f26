"""Graph build engine.

Single-pass O(rows x levels) reconstruction of a deduplicated object graph
from flat, JOIN-shaped rows, driven by SchemaMetadata.
"""

from __future__ import annotations

import logging
from collections.abc import Hashable, Iterable, Mapping
from typing import Any, Generic, TypeVar

from flat_graph.core.cache import ComputeOnceCache
from flat_graph.core.enums import NullIdStrategy
from flat_graph.core.exceptions import (
    FieldAccessError,
    InstantiationError,
    NullIdentityError,
)
from flat_graph.mapping.access import new_instance, resolve_collection_attribute
from flat_graph.mapping.extractor import MetadataExtractor
from flat_graph.mapping.plan import FieldMapping, SchemaMetadata

logger = logging.getLogger(__name__)

R = TypeVar("R")


class _BuildState:
    """Identity maps owned by one build call."""

    __slots__ = ("roots", "children", "links")

    def __init__(self) -> None:
        # (value type, identity value) -> root instance (insertion-ordered)
        self.roots: dict[tuple[type, Any], Any] = {}
        # (entity type, value type, identity value) -> child instance
        self.children: dict[tuple[type, type, Any], Any] = {}
        # (id(collection), id(child)) pairs already appended
        self.links: set[tuple[int, int]] = set()


class GraphBuildEngine(Generic[R]):
    """Builds root entities with fully linked child collections.

    The engine is bound to one schema and one NullIdStrategy. All per-call
    state lives in the call itself, so one engine serves any number of
    concurrent ``build`` calls.

    Args:
        metadata: Extracted schema metadata.
        strategy: Behaviour for missing child identity values.
    """

    def __init__(
        self,
        metadata: SchemaMetadata,
        strategy: NullIdStrategy = NullIdStrategy.SKIP,
    ) -> None:
        self._metadata = metadata
        self._strategy = strategy
        # (parent type, child type) -> collection attribute name, or None
        self._collection_fields: ComputeOnceCache[tuple[type, type], str | None] = (
            ComputeOnceCache()
        )

    @classmethod
    def for_schema(
        cls,
        schema: Hashable,
        strategy: NullIdStrategy = NullIdStrategy.SKIP,
    ) -> GraphBuildEngine[Any]:
        """Create an engine from a row schema, using cached metadata."""
        return cls(MetadataExtractor.extract(schema), strategy)

    @property
    def metadata(self) -> SchemaMetadata:
        return self._metadata

    @property
    def strategy(self) -> NullIdStrategy:
        return self._strategy

    def build(self, rows: Iterable[Any] | None) -> list[R]:
        """Fold rows into an ordered list of deduplicated root entities.

        Roots come back in order of first appearance. Attribute values are
        taken from the first row that introduces an identity value; later
        rows never overwrite them.

        Raises:
            MappingError: On a null identity under THROW, or when a field
                cannot be read, written or an entity constructed. No partial
                result is returned.
        """
        if not rows:
            return []

        state = _BuildState()
        count = 0
        for row in rows:
            self._process_row(row, state)
            count += 1

        logger.debug(
            "Built %d root(s) from %d row(s) for %s",
            len(state.roots),
            count,
            self._metadata.schema_name,
        )
        return list(state.roots.values())

    def map_many(self, rows: list[Any]) -> list[R]:
        """Alias of build() for use wherever a Mapper is expected."""
        return self.build(rows)

    def map_one(self, row: Any) -> R:
        """Not supported: a graph needs the whole result set."""
        raise NotImplementedError(
            "GraphBuildEngine.map_one is not supported. Use build or map_many "
            "to reconstruct graphs from joined result sets."
        )

    # --- Row processing ---

    def _process_row(self, row: Any, state: _BuildState) -> None:
        metadata = self._metadata

        root_id = self._read(row, metadata.root_identity)
        if root_id is None:
            return

        # typed keys keep 1, 1.0 and True apart
        root_key = (type(root_id), root_id)
        root = self._lookup(state.roots, root_key, metadata.root_identity)
        if root is None:
            root = self._new_instance(metadata.root_class)
            self._populate(row, root, metadata.root_mappings)
            state.roots[root_key] = root

        # entity type -> instance seen in this row, for deeper levels
        current: dict[type, Any] = {}

        for level in metadata.levels:
            child_cls = level.target_class
            child_id = self._read(row, level.identity)

            if child_id is None:
                if self._strategy is NullIdStrategy.SKIP:
                    continue
                if self._strategy is NullIdStrategy.THROW:
                    raise NullIdentityError(metadata.schema_name, child_cls.__name__)
                # ALLOW_NULL: None is a valid identity value

            key = (child_cls, type(child_id), child_id)
            child = self._lookup(state.children, key, level.identity)
            if child is None:
                child = self._new_instance(child_cls)
                self._populate(row, child, level.mappings)
                state.children[key] = child

            current[child_cls] = child

            if level.parent_class is metadata.root_class:
                parent = root
            else:
                parent = current.get(level.parent_class)
            if parent is not None:
                self._link(parent, child_cls, child, state)

    def _link(self, parent: Any, child_cls: type, child: Any, state: _BuildState) -> None:
        """Append child to parent's collection unless already there."""
        attribute = self._collection_attribute(type(parent), child_cls)
        if attribute is None:
            return

        try:
            collection = getattr(parent, attribute, None)
            # a list inherited from a class attribute would be shared by all parents
            if collection is None or collection is getattr(type(parent), attribute, None):
                collection = []
                setattr(parent, attribute, collection)
        except (AttributeError, TypeError, ValueError) as e:
            raise FieldAccessError(
                f"Cannot access collection '{attribute}' on {type(parent).__name__}: {e}",
                schema_name=self._metadata.schema_name,
                entity_type=type(parent).__name__,
            ) from e

        link = (id(collection), id(child))
        if link in state.links:
            return
        collection.append(child)
        state.links.add(link)

    def _collection_attribute(self, parent_cls: type, child_cls: type) -> str | None:
        return self._collection_fields.get_or_compute(
            (parent_cls, child_cls), self._find_collection
        )

    def _find_collection(self, key: tuple[type, type]) -> str | None:
        parent_cls, child_cls = key
        attribute = resolve_collection_attribute(parent_cls, child_cls)
        if attribute is None:
            logger.warning(
                "%s has no list[%s] attribute; %s instances will not be linked (schema %s)",
                parent_cls.__name__,
                child_cls.__name__,
                child_cls.__name__,
                self._metadata.schema_name,
            )
        return attribute

    # --- Low-level access ---

    def _lookup(self, identity_map: dict[Any, Any], key: tuple[Any, ...], mapping: FieldMapping) -> Any:
        """Identity-map lookup that reports unhashable identity values."""
        try:
            return identity_map.get(key)
        except TypeError as e:
            raise FieldAccessError(
                f"Identity value for '{mapping.target_class.__name__}' "
                f"(source field '{mapping.source_field}') is not hashable: {e}",
                schema_name=self._metadata.schema_name,
                entity_type=mapping.target_class.__name__,
            ) from e

    def _read(self, row: Any, mapping: FieldMapping) -> Any:
        """Read a mapped source field from a dict row or a row object."""
        source = mapping.source_field
        try:
            if isinstance(row, Mapping):
                return row[source]
            return getattr(row, source)
        except (KeyError, AttributeError) as e:
            raise FieldAccessError(
                f"Cannot read source field '{source}' from {type(row).__name__} row",
                schema_name=self._metadata.schema_name,
                entity_type=mapping.target_class.__name__,
            ) from e

    def _populate(self, row: Any, instance: Any, mappings: tuple[FieldMapping, ...]) -> None:
        """Set every mapped attribute on a freshly created instance."""
        for mapping in mappings:
            value = self._read(row, mapping)
            try:
                setattr(instance, mapping.target_attribute, value)
            except (AttributeError, TypeError, ValueError) as e:
                raise FieldAccessError(
                    f"Cannot set '{mapping.target_attribute}' on "
                    f"{mapping.target_class.__name__}: {e}",
                    schema_name=self._metadata.schema_name,
                    entity_type=mapping.target_class.__name__,
                ) from e

    def _new_instance(self, cls: type) -> Any:
        try:
            return new_instance(cls)
        except Exception as e:
            raise InstantiationError(
                cls.__name__, str(e), schema_name=self._metadata.schema_name
            ) from e
