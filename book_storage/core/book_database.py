"""
MODULE: book_storage.core.book_database
RESPONSIBILITY: PostgreSQL implementation of the book storage contract.
ALLOWED: psycopg2, connection pool, logging.
FORBIDDEN: Orchestration logic, schema creation or migration.
ERRORS: BookNotFoundError, BookValidationError, DatabaseError and subclasses.

Хранилище книг в PostgreSQL

Каждая операция - одна транзакция на одном соединении из пула:
commit при успехе, откат при ошибке (откат выполняет пул при возврате
соединения). Все значения передаются параметрами, а не склеиваются в SQL.

Ожидаемая схема (модуль ее не создает):

    CREATE TABLE books (
        id    SERIAL PRIMARY KEY,
        title TEXT NOT NULL
    );
"""

import time
from contextlib import contextmanager
from typing import Any, Callable, Iterator, List, Optional

import psycopg2
import psycopg2.errors
from psycopg2.extras import RealDictCursor

from book_storage.config.settings import DatabaseConfig, PoolConfig
from book_storage.core.exceptions import (
    BookNotFoundError,
    BookValidationError,
    DatabaseConnectionError,
    DatabaseError,
    DatabaseQueryError,
    DatabaseTimeoutError,
)
from book_storage.core.interfaces import IBookDatabase
from book_storage.core.models import Book
from book_storage.core.pool import ConnectionPool
from book_storage.logger import logger

SELECT_BOOK_SQL = "SELECT title FROM books WHERE id = %s"
SELECT_ALL_BOOKS_SQL = "SELECT id, title FROM books"
INSERT_BOOK_SQL = "INSERT INTO books (title) VALUES (%s) RETURNING id"
DELETE_BOOK_SQL = "DELETE FROM books WHERE id = %s"
PING_SQL = "SELECT 1"
SET_STATEMENT_TIMEOUT_SQL = "SELECT set_config('statement_timeout', %s, true)"


class PostgresBookDatabase(IBookDatabase):
    """
    Хранилище книг поверх пула соединений PostgreSQL

    При создании открывает пул и проверяет доступность БД (ping с
    ограничением PoolConfig.ping_timeout). Если проверка не прошла, пул
    закрывается и поднимается DatabaseConnectionError - частично рабочий
    объект вызывающему не возвращается.

    Пример:
        with PostgresBookDatabase(config.database, config.pool) as db:
            book_id = db.add_book("The Go Programming Language")
            print(db.get_book(book_id))
    """

    def __init__(
        self,
        db_config: DatabaseConfig,
        pool_config: Optional[PoolConfig] = None,
        connection_factory: Callable[..., Any] = psycopg2.connect,
    ):
        """
        Args:
            db_config: Конфигурация подключения к БД
            pool_config: Ограничения пула и таймауты (по умолчанию PoolConfig())
            connection_factory: Функция открытия соединения (psycopg2.connect)

        Raises:
            DatabaseConnectionError: Если БД недоступна
        """
        self.db_config = db_config
        self.pool_config = pool_config or PoolConfig()
        self._pool = ConnectionPool(db_config, self.pool_config, connection_factory=connection_factory)

        try:
            self.ping(timeout=self.pool_config.ping_timeout)
        except DatabaseError as e:
            self._discard_pool()
            raise DatabaseConnectionError(
                f"Не удалось подключиться к БД {db_config.database}: {e}",
                operation="connect",
                original_error=e.original_error or e,
            ) from e

        logger.info(f"Успешное подключение к БД: {db_config.database}")

    @property
    def pool(self) -> ConnectionPool:
        return self._pool

    def ping(self, timeout: Optional[float] = None) -> None:
        with self._transaction("ping", timeout) as cursor:
            cursor.execute(PING_SQL)
            cursor.fetchone()

    def get_book(self, book_id: int, timeout: Optional[float] = None) -> str:
        """
        Получение названия книги по идентификатору

        Raises:
            BookNotFoundError: Если книги с таким id нет
            DatabaseError: При ошибке соединения, запроса или разбора строки
        """
        _validate_book_id(book_id)
        with self._transaction("get_book", timeout) as cursor:
            cursor.execute(SELECT_BOOK_SQL, (book_id,))
            row = cursor.fetchone()
            title = None if row is None else _column(row, "title", str, "get_book")

        if title is None:
            raise BookNotFoundError(book_id)
        return title

    def get_all_books(self, timeout: Optional[float] = None) -> List[str]:
        """Названия всех книг; пустой список - не ошибка"""
        return [book.title for book in self._fetch_books("get_all_books", timeout)]

    def list_books(self, timeout: Optional[float] = None) -> List[Book]:
        """Все книги с идентификаторами, в порядке, который вернула база"""
        return self._fetch_books("list_books", timeout)

    def add_book(self, title: str, timeout: Optional[float] = None) -> int:
        """
        Добавление книги

        Повторяющиеся названия допустимы, проверка существования не выполняется.

        Returns:
            Идентификатор, назначенный базой данных
        """
        _validate_title(title)
        with self._transaction("add_book", timeout) as cursor:
            cursor.execute(INSERT_BOOK_SQL, (title,))
            row = cursor.fetchone()
            if row is None:
                raise DatabaseQueryError("INSERT не вернул идентификатор", operation="add_book")
            book_id = _column(row, "id", int, "add_book")

        logger.debug(f"Добавлена книга id={book_id}")
        return book_id

    def delete_book(self, book_id: int, timeout: Optional[float] = None) -> None:
        """
        Удаление книги

        Raises:
            BookNotFoundError: Если запрос выполнился, но не удалил ни одной строки
        """
        _validate_book_id(book_id)
        with self._transaction("delete_book", timeout) as cursor:
            cursor.execute(DELETE_BOOK_SQL, (book_id,))
            deleted = cursor.rowcount

        if deleted == 0:
            raise BookNotFoundError(book_id)
        logger.debug(f"Удалена книга id={book_id}")

    def close(self) -> None:
        """
        Закрытие пула соединений

        Raises:
            DatabaseError: При ошибке закрытия или если хранилище уже закрыто
        """
        self._pool.close()

    def _fetch_books(self, operation: str, timeout: Optional[float]) -> List[Book]:
        books: List[Book] = []
        with self._transaction(operation, timeout) as cursor:
            cursor.execute(SELECT_ALL_BOOKS_SQL)
            for row in cursor:
                books.append(Book(
                    id=_column(row, "id", int, operation),
                    title=_column(row, "title", str, operation),
                ))

        logger.debug(f"{operation}: получено {len(books)} книг")
        return books

    @contextmanager
    def _transaction(self, operation: str, timeout: Optional[float]) -> Iterator[Any]:
        """
        Курсор в отдельной транзакции с переводом ошибок драйвера

        Таймаут отсчитывается от начала операции: если он истек, пока
        ожидалось соединение из пула, запрос не отправляется; остаток
        ограничивает выполнение на сервере (statement_timeout действует
        до конца транзакции). Само ожидание пула ограничено PoolConfig.pool_timeout.
        """
        if timeout is None:
            timeout = self.pool_config.query_timeout
        deadline = None if timeout is None else time.monotonic() + timeout

        try:
            with self._pool.connection() as conn:
                with conn.cursor(cursor_factory=RealDictCursor) as cursor:
                    if deadline is not None:
                        remaining = deadline - time.monotonic()
                        if remaining <= 0:
                            raise DatabaseTimeoutError(
                                f"{operation}: истек таймаут {timeout} с до начала запроса",
                                operation=operation,
                            )
                        cursor.execute(SET_STATEMENT_TIMEOUT_SQL, (str(max(1, int(remaining * 1000))),))
                    yield cursor
                conn.commit()
        except psycopg2.errors.QueryCanceled as e:
            logger.debug(f"{operation}: запрос отменен по таймауту: {e}")
            raise DatabaseTimeoutError(
                f"{operation}: истек таймаут выполнения запроса: {e}",
                operation=operation,
                original_error=e,
            ) from e
        except psycopg2.Error as e:
            logger.debug(f"{operation}: ошибка выполнения запроса: {e}")
            raise DatabaseQueryError(
                f"{operation}: ошибка выполнения запроса: {e}",
                operation=operation,
                original_error=e,
            ) from e
        except DatabaseError as e:
            if e.operation == operation:
                raise
            # Ошибка пула: сохраняем вид ошибки, добавляем имя операции
            raise type(e)(
                f"{operation}: {e}",
                operation=operation,
                original_error=e.original_error or e,
            ) from e

    def _discard_pool(self) -> None:
        """Закрытие пула после неудачной проверки подключения"""
        try:
            self._pool.close()
        except DatabaseError as close_error:
            logger.warning(f"Ошибка при закрытии пула после неудачного подключения: {close_error}")


def _validate_book_id(book_id: Any) -> None:
    if isinstance(book_id, bool) or not isinstance(book_id, int):
        raise BookValidationError(f"Идентификатор книги должен быть int, получено {book_id!r}")


def _validate_title(title: Any) -> None:
    if not isinstance(title, str) or not title:
        raise BookValidationError(f"Название книги должно быть непустой строкой, получено {title!r}")


def _column(row: Any, name: str, expected: type, operation: str) -> Any:
    """Значение столбца строки с проверкой типа"""
    try:
        value = row[name]
    except (KeyError, IndexError, TypeError) as e:
        raise DatabaseQueryError(
            f"{operation}: в строке результата нет столбца {name!r}",
            operation=operation,
            original_error=e,
        ) from e

    if isinstance(value, bool) or not isinstance(value, expected):
        raise DatabaseQueryError(
            f"{operation}: столбец {name!r} имеет тип {type(value).__name__}, ожидался {expected.__name__}",
            operation=operation,
        )
    return value
