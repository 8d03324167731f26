"""Null identity strategy enumeration."""

from __future__ import annotations

from enum import Enum

from flat_graph.core.exceptions import ConfigurationError


class NullIdStrategy(Enum):
    """Behaviour when a non-root identity value is missing from a row.

    In a LEFT JOIN result, rows without a match carry null for every column
    of the unmatched table. The strategy applies to a whole build call.

    SKIP:       omit the entity for this row; the root is still created (default).
    THROW:      abort the build on the first null identity.
    ALLOW_NULL: treat null as a valid identity; null-keyed rows share one instance.
    """

    SKIP = "skip"
    THROW = "throw"
    ALLOW_NULL = "allow_null"

    @classmethod
    def coerce(cls, value: NullIdStrategy | str) -> NullIdStrategy:
        """Accept a member or its string value (e.g. from configuration)."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            valid = ", ".join(repr(m.value) for m in cls)
            raise ConfigurationError(f"Unknown null-id strategy {value!r}. Expected one of: {valid}") from None
