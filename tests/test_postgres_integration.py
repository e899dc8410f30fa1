"""
Проверки на настоящем драйвере psycopg2.

Тест недоступного сервера работает всегда; остальные требуют PostgreSQL
и запускаются только при заданной переменной BOOKSTORE_TEST_DB_HOST.
"""

import time
from concurrent.futures import ThreadPoolExecutor

import pytest

from book_storage.config.settings import DatabaseConfig, PoolConfig
from book_storage.core.book_database import PostgresBookDatabase
from book_storage.core.exceptions import (
    BookNotFoundError,
    DatabaseConnectionError,
    DatabaseTimeoutError,
)


def test_unreachable_server_fails_within_ping_timeout():
    # На порту 1 никто не слушает: соединение отвергается сразу
    config = DatabaseConfig(
        host="127.0.0.1",
        port=1,
        database="bookstore",
        user="bookstore_user",
        password="secret",
        sslmode="disable",
    )

    started = time.monotonic()
    with pytest.raises(DatabaseConnectionError) as exc:
        PostgresBookDatabase(config, PoolConfig(ping_timeout=5.0))

    assert time.monotonic() - started < 7
    assert exc.value.original_error is not None


def test_empty_table(pg_store):
    assert pg_store.get_all_books() == []


def test_unknown_ids_are_not_found(pg_store):
    with pytest.raises(BookNotFoundError):
        pg_store.get_book(123456)
    with pytest.raises(BookNotFoundError):
        pg_store.delete_book(123456)


def test_alpha_beta_scenario(pg_store):
    alpha = pg_store.add_book("Alpha")
    pg_store.add_book("Beta")
    assert sorted(pg_store.get_all_books()) == ["Alpha", "Beta"]

    pg_store.delete_book(alpha)

    assert pg_store.get_all_books() == ["Beta"]
    with pytest.raises(BookNotFoundError):
        pg_store.get_book(alpha)


def test_add_then_get(pg_store):
    title = "O'Reilly: \"Fluent Python\""
    book_id = pg_store.add_book(title)

    assert pg_store.get_book(book_id) == title
    assert pg_store.get_all_books().count(title) == 1


def test_concurrent_adds(pg_config):
    titles = [f"Book {i}" for i in range(40)]
    with PostgresBookDatabase(pg_config, PoolConfig(max_open=5, max_idle=2)) as store:
        with ThreadPoolExecutor(max_workers=10) as executor:
            list(executor.map(store.add_book, titles))

        assert sorted(store.get_all_books()) == sorted(titles)
        assert store.pool.stats()["in_use"] == 0
        assert store.pool.stats()["idle"] <= 2


def test_statement_timeout_cancels_query(pg_store):
    # Держим блокировку таблицы во второй транзакции, чтобы SELECT ждал
    with pg_store.pool.connection() as blocker:
        with blocker.cursor() as cursor:
            cursor.execute("LOCK TABLE books IN ACCESS EXCLUSIVE MODE")

        started = time.monotonic()
        with pytest.raises(DatabaseTimeoutError):
            pg_store.get_all_books(timeout=0.5)
        assert time.monotonic() - started < 3
