"""Helpers for interpreting database integrity errors."""

from sqlalchemy.exc import IntegrityError


def is_unique_violation(exc: IntegrityError) -> bool:
    """Whether ``exc`` is a unique-constraint violation (PostgreSQL or SQLite).

    Other integrity failures (NOT NULL, FK) should propagate untouched.
    """
    orig = str(exc.orig).lower() if exc.orig else ""
    return "unique" in orig or "duplicate" in orig
