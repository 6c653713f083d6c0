"""
Domain models package - SQLAlchemy ORM models.
"""

from domain.models.database import (
    Base,
    build_database_url,
    create_store_engine,
    make_session_factory,
    init_database,
)
from domain.models.meal import Meal, Tag

__all__ = [
    # Database
    "Base",
    "build_database_url",
    "create_store_engine",
    "make_session_factory",
    "init_database",
    # Meal models
    "Meal",
    "Tag",
]
