"""Custom SQLAlchemy types for cross-database compatibility.

This module provides custom column types that work across the database
backends used in production (PostgreSQL) and testing (SQLite).
"""

import json
from typing import Any, Optional, List

from sqlalchemy import Integer, TypeDecorator, Text
from sqlalchemy.dialects.postgresql import ARRAY


class IntegerList(TypeDecorator):
    """
    An ordered integer list type that works with both PostgreSQL and SQLite.

    - On PostgreSQL: Uses native ARRAY(Integer)
    - On SQLite: Stores as JSON text

    Order is preserved in both cases, which evaluation sessions rely on.

    Usage:
        snippet_ids: Mapped[List[int]] = mapped_column(IntegerList(), nullable=False)
    """

    impl = Text  # Default implementation (used for SQLite)
    cache_ok = True

    def load_dialect_impl(self, dialect):
        """Choose implementation based on database dialect."""
        if dialect.name == "postgresql":
            return dialect.type_descriptor(ARRAY(Integer))
        return dialect.type_descriptor(Text())

    def process_bind_param(self, value: Optional[List[int]], dialect) -> Any:
        """Convert Python list to database format."""
        if value is None:
            return None
        if dialect.name == "postgresql":
            return list(value)
        return json.dumps(list(value))

    def process_result_value(self, value: Any, dialect) -> Optional[List[int]]:
        """Convert database value to Python list."""
        if value is None:
            return None
        if isinstance(value, str):
            return json.loads(value)
        return list(value)
