"""
Storage-level outcomes surfaced by the persistence layer.

Services catch these instead of inspecting driver error codes. The mapping
from a driver's IntegrityError to a constraint name lives here and only here.
"""

import re

from sqlalchemy.exc import IntegrityError

# Column sets reported by SQLite for each named unique constraint
_SQLITE_UNIQUE_COLUMNS: dict[frozenset[str], str] = {
    frozenset({"teams.user_id", "teams.team_type"}): "uq_team_owner_type",
    frozenset({"users.email"}): "uq_users_email",
}

_SQLITE_UNIQUE_PATTERN = re.compile(r"UNIQUE constraint failed: (.+)")

POSTGRES_UNIQUE_VIOLATION = "23505"


class ConstraintViolationError(Exception):
    """A write was rejected by a named unique constraint."""

    def __init__(self, constraint_name: str):
        self.constraint_name = constraint_name
        super().__init__(f"Unique constraint violated: {constraint_name}")


class ConcurrentWriteError(Exception):
    """An optimistic-concurrency write found the row changed underneath it."""


def unique_constraint_name(exc: IntegrityError) -> str | None:
    """
    Identify the unique constraint behind an IntegrityError.

    Returns:
        The constraint name, or None if the error is not a unique violation
        (foreign key, not-null, ...) or cannot be attributed.
    """
    orig = exc.orig
    # asyncpg errors arrive wrapped by the SQLAlchemy adapter
    driver_error = getattr(orig, "__cause__", None) or orig
    if getattr(driver_error, "sqlstate", None) == POSTGRES_UNIQUE_VIOLATION:
        name = getattr(driver_error, "constraint_name", None)
        return str(name) if name else None

    match = _SQLITE_UNIQUE_PATTERN.search(str(orig))
    if match:
        columns = frozenset(col.strip() for col in match.group(1).split(","))
        return _SQLITE_UNIQUE_COLUMNS.get(columns)

    return None
