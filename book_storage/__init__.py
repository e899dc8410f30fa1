"""
Хранилище книг в PostgreSQL: контракт, реализация на пуле соединений
psycopg2 и таксономия ошибок.
"""

from book_storage.core.exceptions import (
    BookNotFoundError,
    BookStorageError,
    BookValidationError,
    ConfigurationError,
    DatabaseConnectionError,
    DatabaseError,
    DatabaseQueryError,
    DatabaseTimeoutError,
)
from book_storage.config.settings import AppConfig, Config, DatabaseConfig, PoolConfig
from book_storage.core.models import Book
from book_storage.core.interfaces import IBookDatabase
from book_storage.core.pool import ConnectionPool
from book_storage.core.book_database import PostgresBookDatabase
from book_storage.logger import configure_logging, logger

__version__ = "1.0.0"

__all__ = [
    "AppConfig",
    "Book",
    "BookNotFoundError",
    "BookStorageError",
    "BookValidationError",
    "Config",
    "ConfigurationError",
    "ConnectionPool",
    "DatabaseConfig",
    "DatabaseConnectionError",
    "DatabaseError",
    "DatabaseQueryError",
    "DatabaseTimeoutError",
    "IBookDatabase",
    "PoolConfig",
    "PostgresBookDatabase",
    "configure_logging",
    "logger",
]
