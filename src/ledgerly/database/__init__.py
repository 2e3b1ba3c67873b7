"""Database layer for ledgerly application."""

from ledgerly.database.base import Database, UNSET
from ledgerly.database.factories import create_sqlite_database

__all__ = ["Database", "UNSET", "create_sqlite_database"]
