"""Row schema DSL builder.

Provides a fluent builder for describing row schemas explicitly, as an
alternative to ``Annotated`` markers on a row class. Useful when rows are
plain dicts straight from a cursor.
"""

from __future__ import annotations

from dataclasses import dataclass

from flat_graph.core.exceptions import ConfigurationError
from flat_graph.mapping.fields import ChildField, FieldDeclaration, ParentField


@dataclass(frozen=True)
class RowSchema:
    """Immutable, hashable row schema description.

    Usable anywhere a row-schema class is accepted, including as the key of
    the metadata and engine caches.
    """

    name: str
    declarations: tuple[tuple[str, FieldDeclaration], ...]

    @property
    def source_fields(self) -> list[str]:
        return [source for source, _ in self.declarations]


def schema(name: str) -> RowSchemaBuilder:
    """Entry point for the row schema DSL.

    Args:
        name: Schema name used in error messages and logs.

    Returns:
        A builder for chaining field declarations.
    """
    return RowSchemaBuilder(name)


class RowSchemaBuilder:
    """Fluent builder for RowSchema definitions."""

    def __init__(self, name: str) -> None:
        self._name = name
        self._declarations: list[tuple[str, FieldDeclaration]] = []

    def parent(
        self,
        source: str,
        target: type,
        field: str | None = None,
        *,
        identity: bool | None = None,
    ) -> RowSchemaBuilder:
        """Map a row field onto the root entity.

        ``field`` defaults to the source field name.
        """
        self._declarations.append((source, ParentField(target, field or source, identity)))
        return self

    def child(
        self,
        source: str,
        target: type,
        field: str | None = None,
        *,
        parent: type,
        identity: bool | None = None,
    ) -> RowSchemaBuilder:
        """Map a row field onto a child entity held in ``parent``'s collection."""
        self._declarations.append((source, ChildField(target, field or source, parent, identity)))
        return self

    def build(self) -> RowSchema:
        """Freeze the declarations into a RowSchema."""
        seen: set[str] = set()
        for source, _ in self._declarations:
            if source in seen:
                raise ConfigurationError(
                    f"Duplicate source field '{source}' in schema '{self._name}'",
                    schema_name=self._name,
                )
            seen.add(source)
        return RowSchema(name=self._name, declarations=tuple(self._declarations))
