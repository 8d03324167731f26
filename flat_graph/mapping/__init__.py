"""Mapping layer - fold flat rows into object graphs."""

from __future__ import annotations

from flat_graph.mapping.builder import RowSchema, RowSchemaBuilder, schema
from flat_graph.mapping.extractor import MetadataExtractor
from flat_graph.mapping.fields import DEFAULT_IDENTITY_FIELD, ChildField, ParentField
from flat_graph.mapping.graph import GraphBuildEngine
from flat_graph.mapping.plan import EntityLevel, FieldMapping, SchemaMetadata
from flat_graph.mapping.protocol import Mapper

__all__ = [
    "ParentField",
    "ChildField",
    "DEFAULT_IDENTITY_FIELD",
    "RowSchema",
    "RowSchemaBuilder",
    "schema",
    "MetadataExtractor",
    "GraphBuildEngine",
    "Mapper",
    "FieldMapping",
    "EntityLevel",
    "SchemaMetadata",
]
