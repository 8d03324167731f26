"""FlatGraph exception hierarchy.

Two tiers: ConfigurationError for schema-level problems detected once at
metadata extraction, MappingError for row-level problems detected while a
graph is being built. Raw attribute/type errors are never exposed to callers.
"""

from __future__ import annotations


class FlatGraphError(Exception):
    """Base exception for all FlatGraph errors."""

    def __init__(self, message: str, *, schema_name: str | None = None) -> None:
        self.schema_name = schema_name
        super().__init__(message)


# --- Configuration ---


class ConfigurationError(FlatGraphError):
    """Base for schema configuration errors raised at extraction time."""


class MissingRootError(ConfigurationError):
    """Raised when a schema declares no root-level identity mapping."""

    def __init__(self, schema_name: str, detail: str) -> None:
        super().__init__(f"Schema '{schema_name}' has no usable root: {detail}", schema_name=schema_name)


class ConflictingRootError(ConfigurationError):
    """Raised when root-level mappings point to different root types."""

    def __init__(self, schema_name: str, first: str, second: str) -> None:
        self.first = first
        self.second = second
        super().__init__(
            f"Multiple root types declared on '{schema_name}': {first} vs {second}. "
            "All parent fields must target the same root type.",
            schema_name=schema_name,
        )


class UnresolvedAttributeError(ConfigurationError):
    """Raised when a target attribute cannot be found on its entity type."""

    def __init__(self, schema_name: str, entity_type: str, attribute: str, source_field: str) -> None:
        self.entity_type = entity_type
        self.attribute = attribute
        self.source_field = source_field
        super().__init__(
            f"Attribute '{attribute}' not found on '{entity_type}' "
            f"(declared on '{schema_name}.{source_field}')",
            schema_name=schema_name,
        )


class IdentityDeclarationError(ConfigurationError):
    """Raised when an entity type has zero or several identity mappings."""

    def __init__(self, schema_name: str, entity_type: str, detail: str) -> None:
        self.entity_type = entity_type
        super().__init__(
            f"Invalid identity declaration for '{entity_type}' on '{schema_name}': {detail}",
            schema_name=schema_name,
        )


class ParentDeclarationError(ConfigurationError):
    """Raised when a child entity type has an inconsistent or unknown parent."""

    def __init__(self, schema_name: str, entity_type: str, detail: str) -> None:
        self.entity_type = entity_type
        super().__init__(
            f"Invalid parent declaration for '{entity_type}' on '{schema_name}': {detail}",
            schema_name=schema_name,
        )


# --- Mapping ---


class MappingError(FlatGraphError):
    """Base for errors raised while building a graph from rows."""

    def __init__(
        self,
        message: str,
        *,
        schema_name: str | None = None,
        entity_type: str | None = None,
    ) -> None:
        self.entity_type = entity_type
        super().__init__(message, schema_name=schema_name)


class NullIdentityError(MappingError):
    """Raised under the THROW strategy when a child identity value is missing."""

    def __init__(self, schema_name: str, entity_type: str) -> None:
        super().__init__(
            f"Null identity for '{entity_type}' while processing '{schema_name}'. "
            "Use NullIdStrategy.SKIP to ignore such rows, or "
            "NullIdStrategy.ALLOW_NULL to allow null-keyed instances.",
            schema_name=schema_name,
            entity_type=entity_type,
        )


class FieldAccessError(MappingError):
    """Raised when a source field cannot be read or a target attribute written."""

    def __init__(
        self,
        detail: str,
        *,
        schema_name: str | None = None,
        entity_type: str | None = None,
    ) -> None:
        super().__init__(detail, schema_name=schema_name, entity_type=entity_type)


class InstantiationError(MappingError):
    """Raised when an entity type cannot be constructed without arguments."""

    def __init__(self, entity_type: str, detail: str, *, schema_name: str | None = None) -> None:
        super().__init__(
            f"Cannot instantiate '{entity_type}': {detail}. "
            "Entities must support parameterless construction.",
            schema_name=schema_name,
            entity_type=entity_type,
        )
