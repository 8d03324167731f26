"""Unit tests for GraphBuildEngine."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Annotated, Any

import pytest

from flat_graph.core.enums import NullIdStrategy
from flat_graph.core.exceptions import (
    FieldAccessError,
    InstantiationError,
    MappingError,
    NullIdentityError,
)
from flat_graph.mapping.builder import schema
from flat_graph.mapping.fields import ChildField, ParentField
from flat_graph.mapping.graph import GraphBuildEngine


@dataclass(eq=False)
class Permission:
    id: int | None = None
    name: str | None = None


@dataclass(eq=False)
class Role:
    id: int | None = None
    name: str | None = None
    permissions: list[Permission] = field(default_factory=list)


@dataclass(eq=False)
class User:
    id: int | None = None
    name: str | None = None
    roles: list[Role] = field(default_factory=list)


USER_ROWS = (
    schema("user_rows")
    .parent("user_id", User, "id")
    .parent("user_name", User, "name")
    .child("role_id", Role, "id", parent=User)
    .child("role_name", Role, "name", parent=User)
    .child("permission_id", Permission, "id", parent=Role)
    .child("permission_name", Permission, "name", parent=Role)
    .build()
)


@dataclass
class UserRow:
    user_id: Annotated[int | None, ParentField(User, "id")] = None
    user_name: Annotated[str | None, ParentField(User, "name")] = None
    role_id: Annotated[int | None, ChildField(Role, "id", parent=User)] = None
    role_name: Annotated[str | None, ChildField(Role, "name", parent=User)] = None


def _engine(strategy: NullIdStrategy = NullIdStrategy.SKIP) -> GraphBuildEngine[User]:
    return GraphBuildEngine.for_schema(USER_ROWS, strategy)


def _role(user: User, role_id: int) -> Role:
    return next(r for r in user.roles if r.id == role_id)


class TestGraphReconstruction:
    def test_two_roots_in_order_of_first_appearance(self, join_rows: list[dict[str, Any]]) -> None:
        users = _engine().build(join_rows)
        assert [u.id for u in users] == [1, 2]
        assert [u.name for u in users] == ["Alice", "Bob"]

    def test_children_and_grandchildren(self, join_rows: list[dict[str, Any]]) -> None:
        alice, bob = _engine().build(join_rows)

        assert [r.id for r in alice.roles] == [10, 20]
        assert [p.id for p in _role(alice, 10).permissions] == [100, 101]
        assert [p.id for p in _role(alice, 20).permissions] == [100]
        assert [r.id for r in bob.roles] == [20]
        assert [p.id for p in bob.roles[0].permissions] == [100]

    def test_shared_instances_across_parents(self, join_rows: list[dict[str, Any]]) -> None:
        alice, bob = _engine().build(join_rows)

        read_under_admin = _role(alice, 10).permissions[0]
        read_under_user = _role(alice, 20).permissions[0]
        assert read_under_admin is read_under_user
        assert bob.roles[0] is _role(alice, 20)
        assert bob.roles[0].permissions[0] is read_under_admin

    def test_no_duplicates_within_one_collection(self, make_row) -> None:
        rows = [make_row(1, "Alice", 10, "ADMIN", 100, "READ")] * 5
        (alice,) = _engine().build(rows)
        assert len(alice.roles) == 1
        assert len(alice.roles[0].permissions) == 1

    def test_first_row_wins(self, make_row) -> None:
        rows = [
            make_row(1, "Alice", 10, "ADMIN", 100, "READ"),
            make_row(1, "Alicia", 10, "ROOT", 100, "VIEW"),
        ]
        (alice,) = _engine().build(rows)
        assert alice.name == "Alice"
        assert alice.roles[0].name == "ADMIN"
        assert alice.roles[0].permissions[0].name == "READ"

    def test_same_identity_value_on_different_types(self, make_row) -> None:
        rows = [make_row(1, "Alice", 7, "ADMIN", 7, "READ")]
        (alice,) = _engine().build(rows)
        role = alice.roles[0]
        permission = role.permissions[0]
        assert isinstance(role, Role)
        assert isinstance(permission, Permission)
        assert role.name == "ADMIN"
        assert permission.name == "READ"

    def test_identity_values_keep_their_type(self, make_row) -> None:
        rows = [
            make_row(1, "Alice", 1, "ADMIN", 100, "READ"),
            make_row(True, "Flag", 1.0, "FLOAT_ROLE", 100, "READ"),
        ]
        alice, flag = _engine().build(rows)
        assert type(alice.id) is int
        assert flag.id is True
        assert flag.roles[0] is not alice.roles[0]
        assert flag.roles[0].name == "FLOAT_ROLE"
        assert flag.roles[0].permissions[0] is alice.roles[0].permissions[0]

    def test_null_root_skipped(self, make_row) -> None:
        rows = [
            make_row(None, "Ghost", 10, "ADMIN", 100, "READ"),
            make_row(1, "Alice", 10, "ADMIN", 100, "READ"),
        ]
        users = _engine().build(rows)
        assert [u.id for u in users] == [1]

    def test_null_root_has_no_side_effects(self, make_row) -> None:
        rows = [
            make_row(None, "Ghost", 10, "GHOST_ROLE", 100, "READ"),
            make_row(1, "Alice", 10, "ADMIN", 100, "READ"),
        ]
        (alice,) = _engine().build(rows)
        assert alice.roles[0].name == "ADMIN"

    def test_single_row_complete_graph(self, make_row) -> None:
        (carol,) = _engine().build([make_row(99, "Carol", 30, "SUPERUSER", 200, "DELETE")])
        assert carol.name == "Carol"
        assert carol.roles[0].name == "SUPERUSER"
        assert carol.roles[0].permissions[0].name == "DELETE"

    def test_object_rows(self) -> None:
        rows = [
            UserRow(1, "Alice", 10, "ADMIN"),
            UserRow(1, "Alice", 20, "USER"),
            UserRow(2, "Bob", None, None),
        ]
        alice, bob = GraphBuildEngine.for_schema(UserRow).build(rows)
        assert [r.name for r in alice.roles] == ["ADMIN", "USER"]
        assert bob.roles == []


class TestEmptyInput:
    @pytest.mark.parametrize("strategy", list(NullIdStrategy))
    def test_empty_rows(self, strategy: NullIdStrategy) -> None:
        assert _engine(strategy).build([]) == []

    @pytest.mark.parametrize("strategy", list(NullIdStrategy))
    def test_none_rows(self, strategy: NullIdStrategy) -> None:
        assert _engine(strategy).build(None) == []

    def test_generator_rows(self, join_rows: list[dict[str, Any]]) -> None:
        users = _engine().build(row for row in join_rows)
        assert len(users) == 2


class TestNullIdStrategies:
    def test_skip_omits_child(self, make_row) -> None:
        (alice,) = _engine(NullIdStrategy.SKIP).build([make_row(1, "Alice", None, None, None, None)])
        assert alice.roles == []

    def test_throw_aborts(self, make_row) -> None:
        engine = _engine(NullIdStrategy.THROW)
        with pytest.raises(NullIdentityError) as exc_info:
            engine.build([make_row(1, "Alice", None, None, None, None)])
        assert exc_info.value.entity_type == "Role"
        assert exc_info.value.schema_name == "user_rows"
        assert isinstance(exc_info.value, MappingError)

    def test_throw_names_deeper_level(self, make_row) -> None:
        rows = [
            make_row(1, "Alice", 10, "ADMIN", 100, "READ"),
            make_row(1, "Alice", 10, "ADMIN", None, None),
        ]
        with pytest.raises(NullIdentityError, match="Permission"):
            _engine(NullIdStrategy.THROW).build(rows)

    def test_allow_null_creates_null_keyed_child(self, make_row) -> None:
        (alice,) = _engine(NullIdStrategy.ALLOW_NULL).build([make_row(1, "Alice", None, "ORPHAN", None, None)])
        assert len(alice.roles) == 1
        assert alice.roles[0].id is None
        assert alice.roles[0].name == "ORPHAN"

    def test_allow_null_collapses_onto_one_instance(self, make_row) -> None:
        rows = [
            make_row(1, "Alice", None, "FIRST", 100, "READ"),
            make_row(2, "Bob", None, "SECOND", 101, "WRITE"),
        ]
        alice, bob = _engine(NullIdStrategy.ALLOW_NULL).build(rows)
        assert alice.roles[0] is bob.roles[0]
        assert bob.roles[0].name == "FIRST"
        assert [p.id for p in alice.roles[0].permissions] == [100, 101]

    def test_skipped_intermediate_level_drops_deeper_levels(self, make_row) -> None:
        rows = [make_row(1, "Alice", None, None, 100, "READ")]
        (alice,) = _engine(NullIdStrategy.SKIP).build(rows)
        assert alice.roles == []

    def test_strategy_is_per_engine(self, make_row) -> None:
        rows = [make_row(1, "Alice", None, None, None, None)]
        assert _engine(NullIdStrategy.SKIP).build(rows)[0].roles == []
        with pytest.raises(NullIdentityError):
            _engine(NullIdStrategy.THROW).build(rows)


class TestLinking:
    def test_parent_without_collection_is_not_linked(self, caplog: pytest.LogCaptureFixture) -> None:
        @dataclass
        class Badge:
            id: int | None = None

        row_schema = (
            schema("badges")
            .parent("user_id", User, "id")
            .child("badge_id", Badge, "id", parent=User)
            .build()
        )
        engine = GraphBuildEngine.for_schema(row_schema)
        rows = [{"user_id": 1, "badge_id": 5}, {"user_id": 1, "badge_id": 6}]

        (user,) = engine.build(rows)
        assert user.roles == []
        assert caplog.text.count("has no list[Badge] attribute") == 1

    def test_none_collection_is_initialised(self) -> None:
        class Team:
            id: int | None = None
            members: list[Member] | None = None

        row_schema = (
            schema("teams").parent("team_id", Team, "id").child("member_id", Member, "id", parent=Team).build()
        )
        teams = GraphBuildEngine.for_schema(row_schema).build(
            [
                {"team_id": 1, "member_id": 1},
                {"team_id": 2, "member_id": 2},
            ]
        )
        assert [m.id for m in teams[0].members] == [1]
        assert [m.id for m in teams[1].members] == [2]

    def test_class_level_list_is_not_shared(self) -> None:
        row_schema = (
            schema("squads").parent("squad_id", Squad, "id").child("member_id", Member, "id", parent=Squad).build()
        )
        squads = GraphBuildEngine.for_schema(row_schema).build(
            [
                {"squad_id": 1, "member_id": 1},
                {"squad_id": 2, "member_id": 2},
            ]
        )
        assert [m.id for m in squads[0].members] == [1]
        assert [m.id for m in squads[1].members] == [2]
        assert Squad.members == []

    def test_plain_class_with_init_attributes(self) -> None:
        row_schema = (
            schema("shelves")
            .parent("shelf_id", Shelf, "id")
            .parent("label", Shelf)
            .child("book_id", Book, "id", parent=Shelf)
            .child("title", Book, parent=Shelf)
            .build()
        )
        shelves = GraphBuildEngine.for_schema(row_schema).build(
            [
                {"shelf_id": 1, "label": "Fiction", "book_id": 7, "title": "Dune"},
                {"shelf_id": 1, "label": "Fiction", "book_id": 8, "title": "Emma"},
            ]
        )
        assert shelves[0].label == "Fiction"
        assert [b.title for b in shelves[0].books] == ["Dune", "Emma"]


class Book:
    def __init__(self) -> None:
        self.id = None
        self.title = None


class Shelf:
    books: list[Book]

    def __init__(self) -> None:
        self.id = None
        self.label = None
        self.books = []



class Member:
    id: int | None = None


class Squad:
    id: int | None = None
    members: list[Member] = []


class TestMappingErrors:
    def test_missing_source_key(self) -> None:
        rows = [{"user_id": 1}]
        with pytest.raises(FieldAccessError, match="user_name") as exc_info:
            _engine().build(rows)
        assert exc_info.value.schema_name == "user_rows"

    def test_missing_source_attribute(self) -> None:
        class PartialRow:
            user_id = 1

        with pytest.raises(FieldAccessError, match="user_name"):
            GraphBuildEngine.for_schema(UserRow).build([PartialRow()])

    def test_unwritable_attribute(self) -> None:
        class Locked:
            __slots__ = ("id",)
            id: int | None
            name: str | None

        row_schema = schema("locked").parent("locked_id", Locked, "id").parent("name", Locked).build()
        with pytest.raises(FieldAccessError, match="Cannot set 'name'") as exc_info:
            GraphBuildEngine.for_schema(row_schema).build([{"locked_id": 1, "name": "x"}])
        assert exc_info.value.entity_type == "Locked"

    def test_entity_requires_arguments(self) -> None:
        class NeedsArgs:
            id: int

            def __init__(self, id: int) -> None:
                self.id = id

        row_schema = schema("needs_args").parent("id", NeedsArgs).build()
        with pytest.raises(InstantiationError, match="parameterless construction") as exc_info:
            GraphBuildEngine.for_schema(row_schema).build([{"id": 1}])
        assert isinstance(exc_info.value.__cause__, TypeError)

    def test_no_partial_result_on_error(self, make_row) -> None:
        rows = [
            make_row(1, "Alice", 10, "ADMIN", 100, "READ"),
            {"user_id": 2},
        ]
        with pytest.raises(FieldAccessError):
            _engine().build(rows)


    def test_unhashable_root_identity(self, make_row) -> None:
        rows = [make_row([1, 2], "Alice", 10, "ADMIN", 100, "READ")]
        with pytest.raises(FieldAccessError, match="not hashable") as exc_info:
            _engine().build(rows)
        assert exc_info.value.entity_type == "User"
        assert isinstance(exc_info.value.__cause__, TypeError)

    def test_unhashable_child_identity(self, make_row) -> None:
        rows = [make_row(1, "Alice", {"id": 10}, "ADMIN", 100, "READ")]
        with pytest.raises(MappingError, match="role_id") as exc_info:
            _engine().build(rows)
        assert exc_info.value.entity_type == "Role"



class TestMapperInterface:
    def test_map_many_is_build(self, join_rows: list[dict[str, Any]]) -> None:
        assert len(_engine().map_many(join_rows)) == 2

    def test_map_one_raises_not_implemented(self, make_row) -> None:
        with pytest.raises(NotImplementedError):
            _engine().map_one(make_row(1, "Alice", 10, "ADMIN", 100, "READ"))

    def test_engine_properties(self) -> None:
        engine = _engine(NullIdStrategy.THROW)
        assert engine.strategy is NullIdStrategy.THROW
        assert engine.metadata.root_class is User

    def test_engine_reusable_across_calls(self, join_rows: list[dict[str, Any]]) -> None:
        engine = _engine()
        first = engine.build(join_rows)
        second = engine.build(join_rows)
        assert first[0] is not second[0]
        assert len(second[0].roles) == 2


class TestBenchmark10kRows:
    """10k joined rows reconstructed in one pass."""

    def test_10k_row_single_pass(self) -> None:
        rows: list[dict[str, Any]] = []
        for user_id in range(1, 101):
            for role_offset in range(10):
                role_id = user_id * 100 + role_offset
                for permission_id in range(10):
                    rows.append(
                        {
                            "user_id": user_id,
                            "user_name": f"User {user_id}",
                            "role_id": role_id,
                            "role_name": f"Role {role_id}",
                            "permission_id": permission_id,
                            "permission_name": f"Permission {permission_id}",
                        }
                    )

        assert len(rows) == 10_000

        users = _engine().build(rows)

        assert len(users) == 100
        assert all(len(u.roles) == 10 for u in users)
        assert all(len(r.permissions) == 10 for u in users for r in u.roles)
        assert users[0].roles[0].permissions[3] is users[99].roles[9].permissions[3]
