"""Shared repository helpers."""

from typing import Optional

from sqlalchemy.exc import IntegrityError

UNIQUE_VIOLATION = "23505"


def unique_violation_field(
    exc: IntegrityError, fields: tuple[str, ...]
) -> Optional[str]:
    """Return which of ``fields`` a unique violation hit, or None.

    Postgres reports SQLSTATE 23505 with the constraint name in the message;
    SQLite reports ``UNIQUE constraint failed: table.column``.
    """
    orig = exc.orig
    code = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    message = str(orig).lower()
    if code != UNIQUE_VIOLATION and "unique" not in message and "duplicate" not in message:
        return None
    for field in fields:
        if field in message:
            return field
    return None
