"""Centralized SQLAlchemy declarative base for prefixstore ORM models.

All ORM models inherit from this base so they share one metadata registry,
which is what Database.create_tables() bootstraps.
"""

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Base class for all ORM models in prefixstore."""

    pass
