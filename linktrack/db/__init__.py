"""
Database module with abstraction layer.

This module provides:
- DatabaseAdapter interface: Abstract base class for database implementations
- SQLiteAdapter / MySQLAdapter: backend-specific implementations
- Session management for the click event store
- ContentStore: read-only access to the WordPress content databases

To add a new database backend:
1. Create a new adapter class inheriting from DatabaseAdapter
2. Implement all abstract methods
3. Register it in linktrack/db/factory.py
"""

from linktrack.db.interface import DatabaseAdapter
from linktrack.db.session import get_session, async_session_maker, engine

__all__ = [
    "DatabaseAdapter",
    "get_session",
    "async_session_maker",
    "engine",
]
