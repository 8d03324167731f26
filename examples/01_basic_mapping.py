"""
Example 01: Basic Graph Mapping

This example demonstrates folding a flat USER -> ROLE -> PERMISSION JOIN
result into a deduplicated object graph with an annotated row class.
"""

from dataclasses import dataclass, field
from typing import Annotated, Optional

from flat_graph import ChildField, FlatGraphMapper, ParentField


@dataclass
class Permission:
    """Permission entity"""
    id: Optional[int] = None
    name: Optional[str] = None


@dataclass
class Role:
    """Role entity holding permissions"""
    id: Optional[int] = None
    name: Optional[str] = None
    permissions: list[Permission] = field(default_factory=list)


@dataclass
class User:
    """User root entity holding roles"""
    id: Optional[int] = None
    name: Optional[str] = None
    roles: list[Role] = field(default_factory=list)


@dataclass
class UserRow:
    """One row of the JOIN result"""
    user_id: Annotated[Optional[int], ParentField(User, "id")] = None
    user_name: Annotated[Optional[str], ParentField(User, "name")] = None
    role_id: Annotated[Optional[int], ChildField(Role, "id", parent=User)] = None
    role_name: Annotated[Optional[str], ChildField(Role, "name", parent=User)] = None
    permission_id: Annotated[Optional[int], ChildField(Permission, "id", parent=Role)] = None
    permission_name: Annotated[Optional[str], ChildField(Permission, "name", parent=Role)] = None


def main():
    rows = [
        UserRow(1, "Alice", 10, "ADMIN", 100, "READ"),
        UserRow(1, "Alice", 10, "ADMIN", 101, "WRITE"),
        UserRow(1, "Alice", 20, "USER", 100, "READ"),
        UserRow(2, "Bob", 20, "USER", 100, "READ"),
    ]

    print("=== Graph Mapping ===\n")
    users = FlatGraphMapper.map(rows, UserRow)

    print(f"Reconstructed {len(users)} users from {len(rows)} rows:\n")
    for user in users:
        print(f"User #{user.id}: {user.name}")
        for role in user.roles:
            perms = ", ".join(p.name for p in role.permissions)
            print(f"  - {role.name}: {perms}")
        print()

    shared = users[0].roles[1] is users[1].roles[0]
    print(f"USER role shared between Alice and Bob: {shared}")


if __name__ == "__main__":
    main()
