"""FlatGraph - fold flat JOIN rows into deduplicated object graphs."""

from __future__ import annotations

import logging

from flat_graph.core.enums import NullIdStrategy
from flat_graph.core.exceptions import (
    ConfigurationError,
    ConflictingRootError,
    FieldAccessError,
    FlatGraphError,
    IdentityDeclarationError,
    InstantiationError,
    MappingError,
    MissingRootError,
    NullIdentityError,
    ParentDeclarationError,
    UnresolvedAttributeError,
)
from flat_graph.mapper import FlatGraphMapper, map_rows
from flat_graph.mapping.builder import RowSchema, schema
from flat_graph.mapping.extractor import MetadataExtractor
from flat_graph.mapping.fields import ChildField, ParentField
from flat_graph.mapping.graph import GraphBuildEngine
from flat_graph.mapping.plan import SchemaMetadata

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    # Mapper
    "FlatGraphMapper",
    "map_rows",
    "GraphBuildEngine",
    # Schema
    "ParentField",
    "ChildField",
    "RowSchema",
    "schema",
    "MetadataExtractor",
    "SchemaMetadata",
    # Enums
    "NullIdStrategy",
    # Exceptions
    "FlatGraphError",
    "ConfigurationError",
    "MissingRootError",
    "ConflictingRootError",
    "UnresolvedAttributeError",
    "IdentityDeclarationError",
    "ParentDeclarationError",
    "MappingError",
    "NullIdentityError",
    "FieldAccessError",
    "InstantiationError",
]
