"""
Database infrastructure components.
"""

from harbor.infrastructure.database.connection import (
    Base,
    DatabaseManager,
    get_db_manager,
)

__all__ = [
    "Base",
    "DatabaseManager",
    "get_db_manager",
]
