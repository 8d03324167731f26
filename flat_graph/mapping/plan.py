"""Schema metadata data classes.

Frozen dataclasses produced once per row schema by the MetadataExtractor
and read by GraphBuildEngine at build time.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class FieldMapping:
    """A single row field -> entity attribute rule."""

    source_field: str
    target_class: type
    target_attribute: str
    parent_class: type | None  # None for root-level mappings
    is_id: bool = False

    @property
    def is_root(self) -> bool:
        return self.parent_class is None


@dataclass(frozen=True)
class EntityLevel:
    """All mappings for one non-root entity type."""

    target_class: type
    parent_class: type
    mappings: tuple[FieldMapping, ...]
    identity: FieldMapping


@dataclass(frozen=True)
class SchemaMetadata:
    """Validated mapping description for one row schema.

    ``levels`` keeps child entity types in the order they were first
    declared, which doubles as depth order: shallower levels are expected
    to be declared before deeper ones.
    """

    schema_name: str
    root_class: type
    root_identity: FieldMapping
    root_mappings: tuple[FieldMapping, ...]
    child_mappings: tuple[FieldMapping, ...] = ()
    levels: tuple[EntityLevel, ...] = ()

    def child_types_in_order(self) -> tuple[type, ...]:
        """Child entity types in declaration order."""
        return tuple(level.target_class for level in self.levels)

    def child_mappings_for(self, target_class: type) -> tuple[FieldMapping, ...]:
        """Mappings for one child type; empty if the type is not declared."""
        for level in self.levels:
            if level.target_class is target_class:
                return level.mappings
        return ()
