"""Field declaration markers.

Attach a marker to a row-schema attribute through ``typing.Annotated``::

    @dataclass
    class UserRow:
        user_id: Annotated[int | None, ParentField(User, "id")] = None
        role_id: Annotated[int | None, ChildField(Role, "id", parent=User)] = None

or pass markers to the ``schema()`` builder. Either way the extractor sees
the same facts per field: target entity type, target attribute and, for
child levels, the parent type whose collection holds the child.
"""

from __future__ import annotations

from dataclasses import dataclass

DEFAULT_IDENTITY_FIELD = "id"


@dataclass(frozen=True)
class ParentField:
    """Row field belonging to the root entity.

    Args:
        target: The root entity type.
        field: Attribute name on the root entity.
        identity: Mark (or unmark) this field as the root's identity. When
                  left as None, a field named "id" is the identity.
    """

    target: type
    field: str
    identity: bool | None = None

    def is_identity(self) -> bool:
        if self.identity is not None:
            return self.identity
        return self.field == DEFAULT_IDENTITY_FIELD


@dataclass(frozen=True)
class ChildField:
    """Row field belonging to a nested entity level.

    Args:
        target: The child entity type.
        field: Attribute name on the child entity.
        parent: The direct parent type holding a ``list[target]`` attribute.
        identity: Same semantics as ``ParentField.identity``.
    """

    target: type
    field: str
    parent: type
    identity: bool | None = None

    def is_identity(self) -> bool:
        if self.identity is not None:
            return self.identity
        return self.field == DEFAULT_IDENTITY_FIELD


FieldDeclaration = ParentField | ChildField
