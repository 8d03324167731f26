"""Metadata extraction.

Scans a row schema once, validates it and produces an immutable
SchemaMetadata. Results are cached per schema for the process lifetime;
a schema that fails validation is never cached and fails again on every use.
"""

from __future__ import annotations

import inspect
import logging
import typing
from collections.abc import Hashable
from typing import Any

from flat_graph.core.cache import ComputeOnceCache
from flat_graph.core.exceptions import (
    ConfigurationError,
    ConflictingRootError,
    IdentityDeclarationError,
    MissingRootError,
    ParentDeclarationError,
    UnresolvedAttributeError,
)
from flat_graph.mapping.access import resolve_attribute
from flat_graph.mapping.builder import RowSchema
from flat_graph.mapping.fields import ChildField, FieldDeclaration, ParentField
from flat_graph.mapping.plan import EntityLevel, FieldMapping, SchemaMetadata

logger = logging.getLogger(__name__)

_MARKER_TYPES = (ParentField, ChildField)


def schema_name_of(schema: Hashable) -> str:
    """Human-readable name for a schema key."""
    if isinstance(schema, RowSchema):
        return schema.name
    if isinstance(schema, type):
        return schema.__name__
    return repr(schema)


def _class_declarations(schema_cls: type) -> list[tuple[str, FieldDeclaration]]:
    """Collect Annotated markers from a row class, base classes first."""
    name = schema_cls.__name__
    annotations: dict[str, Any] = {}
    for klass in reversed(schema_cls.__mro__):
        if klass is object or klass.__module__.split(".")[0] == "pydantic":
            continue
        try:
            annotations.update(inspect.get_annotations(klass, eval_str=True))
        except Exception as e:
            raise ConfigurationError(
                f"Cannot resolve type hints of '{klass.__name__}' for schema '{name}': {e}",
                schema_name=name,
            ) from e

    declarations: list[tuple[str, FieldDeclaration]] = []
    for source, hint in annotations.items():
        if typing.get_origin(hint) is not typing.Annotated:
            continue
        markers = [m for m in hint.__metadata__ if isinstance(m, _MARKER_TYPES)]
        if len(markers) > 1:
            raise ConfigurationError(
                f"Field '{name}.{source}' carries {len(markers)} field markers (expected 1)",
                schema_name=name,
            )
        if markers:
            declarations.append((source, markers[0]))
    return declarations


def _declarations(schema: Hashable) -> list[tuple[str, FieldDeclaration]]:
    if isinstance(schema, RowSchema):
        return list(schema.declarations)
    if isinstance(schema, type):
        return _class_declarations(schema)
    raise ConfigurationError(
        f"Unsupported schema {schema!r}: expected a row class or a RowSchema",
        schema_name=schema_name_of(schema),
    )


def _build_metadata(schema: Hashable) -> SchemaMetadata:
    """Validate a schema's declarations and assemble its SchemaMetadata."""
    name = schema_name_of(schema)
    root_class: type | None = None
    root_mappings: list[FieldMapping] = []
    child_mappings: list[FieldMapping] = []
    # dict preserves first-declaration order of child types
    by_type: dict[type, list[FieldMapping]] = {}

    for source, decl in _declarations(schema):
        if resolve_attribute(decl.target, decl.field) is None:
            raise UnresolvedAttributeError(name, decl.target.__name__, decl.field, source)

        if isinstance(decl, ParentField):
            if root_class is None:
                root_class = decl.target
            elif root_class is not decl.target:
                raise ConflictingRootError(name, root_class.__name__, decl.target.__name__)
            root_mappings.append(
                FieldMapping(source, decl.target, decl.field, None, decl.is_identity())
            )
            continue

        mapping = FieldMapping(source, decl.target, decl.field, decl.parent, decl.is_identity())
        child_mappings.append(mapping)
        by_type.setdefault(decl.target, []).append(mapping)

    if root_class is None:
        raise MissingRootError(name, "no parent fields declared")

    root_ids = [m for m in root_mappings if m.is_id]
    if not root_ids:
        raise MissingRootError(name, f"no identity field declared for '{root_class.__name__}'")
    if len(root_ids) > 1:
        raise IdentityDeclarationError(
            name,
            root_class.__name__,
            f"{len(root_ids)} identity fields ({', '.join(m.source_field for m in root_ids)})",
        )

    levels: list[EntityLevel] = []
    known: set[type] = {root_class}
    for child_cls, mappings in by_type.items():
        child_name = child_cls.__name__
        ids = [m for m in mappings if m.is_id]
        if not ids:
            raise IdentityDeclarationError(name, child_name, "no identity field declared")
        if len(ids) > 1:
            raise IdentityDeclarationError(
                name, child_name, f"{len(ids)} identity fields ({', '.join(m.source_field for m in ids)})"
            )

        parents = {m.parent_class for m in mappings}
        if len(parents) > 1:
            raise ParentDeclarationError(
                name, child_name, f"conflicting parents {sorted(p.__name__ for p in parents)}"
            )
        parent_cls = mappings[0].parent_class
        if parent_cls not in known:
            if parent_cls not in by_type:
                raise ParentDeclarationError(
                    name, child_name, f"parent '{parent_cls.__name__}' is not declared in this schema"
                )
            logger.warning(
                "Schema %s declares %s before its parent %s; it will never be linked",
                name,
                child_name,
                parent_cls.__name__,
            )
        known.add(child_cls)
        levels.append(
            EntityLevel(
                target_class=child_cls,
                parent_class=parent_cls,
                mappings=tuple(mappings),
                identity=ids[0],
            )
        )

    logger.debug(
        "Extracted metadata for %s: root=%s, %d child level(s)",
        name,
        root_class.__name__,
        len(levels),
    )
    return SchemaMetadata(
        schema_name=name,
        root_class=root_class,
        root_identity=root_ids[0],
        root_mappings=tuple(root_mappings),
        child_mappings=tuple(child_mappings),
        levels=tuple(levels),
    )


class MetadataExtractor:
    """Compute-once, cache-forever access to SchemaMetadata.

    For a given schema the metadata is computed by exactly one caller even
    under concurrent use; different schemas never block one another.
    """

    _cache: ComputeOnceCache[Hashable, SchemaMetadata] = ComputeOnceCache()

    @classmethod
    def extract(cls, schema: Hashable) -> SchemaMetadata:
        """Return cached metadata for schema, extracting it on first use.

        Raises:
            ConfigurationError: If the schema is invalid.
        """
        return cls._cache.get_or_compute(schema, _build_metadata)

    @classmethod
    def is_cached(cls, schema: Hashable) -> bool:
        return schema in cls._cache

    @classmethod
    def clear_cache(cls) -> None:
        cls._cache.clear()
