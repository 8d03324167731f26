"""Shared test fixtures."""

from __future__ import annotations

from typing import Any

import pytest

from flat_graph.mapper import FlatGraphMapper


@pytest.fixture(autouse=True)
def _clear_caches():
    """Start every test with empty metadata and engine caches."""
    FlatGraphMapper.clear_cache()
    yield
    FlatGraphMapper.clear_cache()


def _row(
    user_id: Any,
    user_name: Any,
    role_id: Any,
    role_name: Any,
    permission_id: Any,
    permission_name: Any,
) -> dict[str, Any]:
    return {
        "user_id": user_id,
        "user_name": user_name,
        "role_id": role_id,
        "role_name": role_name,
        "permission_id": permission_id,
        "permission_name": permission_name,
    }


@pytest.fixture
def make_row():
    """Helper to build a user/role/permission JOIN row dict.

    Usage:
        make_row(1, "Alice", 10, "ADMIN", 100, "READ")
    """
    return _row


@pytest.fixture
def join_rows() -> list[dict[str, Any]]:
    """A typical USER -> ROLE -> PERMISSION JOIN result.

    user_id | user_name | role_id | role_name | permission_id | permission_name
    --------+-----------+---------+-----------+---------------+----------------
       1    |  Alice    |   10    |  ADMIN    |     100       |  READ
       1    |  Alice    |   10    |  ADMIN    |     101       |  WRITE
       1    |  Alice    |   20    |  USER     |     100       |  READ
       2    |  Bob      |   20    |  USER     |     100       |  READ
    """
    return [
        _row(1, "Alice", 10, "ADMIN", 100, "READ"),
        _row(1, "Alice", 10, "ADMIN", 101, "WRITE"),
        _row(1, "Alice", 20, "USER", 100, "READ"),
        _row(2, "Bob", 20, "USER", 100, "READ"),
    ]
