"""
Общие фикстуры: psycopg2-совместимые подмены соединения для юнит-тестов
и подключение к настоящему PostgreSQL для интеграционных тестов.
"""

import os
import sys
import threading

import psycopg2
import pytest
from loguru import logger
from psycopg2 import extensions

from book_storage.config.settings import DatabaseConfig, PoolConfig
from book_storage.core.book_database import PostgresBookDatabase


class FakeBackend:
    """In-memory таблица books и журнал выполненных запросов"""

    def __init__(self):
        self.lock = threading.Lock()
        self.rows = {}
        self.next_id = 1
        self.executed = []
        self.connections = []
        self.connect_kwargs = []
        self.connect_error = None
        # подстрока SQL -> исключение, которое поднимет execute()
        self.failures = {}
        # строки, которые вернет SELECT id, title вместо таблицы
        self.rows_override = None
        # исключение при итерации по результату после первой строки
        self.iteration_error = None

    def connect(self, **kwargs):
        with self.lock:
            self.connect_kwargs.append(kwargs)
            if self.connect_error is not None:
                raise self.connect_error
            conn = FakeConnection(self)
            self.connections.append(conn)
            return conn

    def queries(self, prefix):
        return [(sql, params) for sql, params in self.executed if sql.startswith(prefix)]


class FakeConnection:
    def __init__(self, backend):
        self.backend = backend
        self.closed = 0
        self.status = extensions.TRANSACTION_STATUS_IDLE
        self.commits = 0
        self.rollbacks = 0

    def cursor(self, cursor_factory=None):
        return FakeCursor(self)

    def get_transaction_status(self):
        return self.status

    def commit(self):
        self.commits += 1
        self.status = extensions.TRANSACTION_STATUS_IDLE

    def rollback(self):
        self.rollbacks += 1
        self.status = extensions.TRANSACTION_STATUS_IDLE

    def close(self):
        self.closed = 1


class FakeCursor:
    def __init__(self, connection):
        self.connection = connection
        self.backend = connection.backend
        self.rowcount = -1
        self._result = []

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        return False

    def execute(self, sql, params=None):
        backend = self.backend
        self.connection.status = extensions.TRANSACTION_STATUS_INTRANS
        with backend.lock:
            backend.executed.append((sql, params))
            for fragment, error in backend.failures.items():
                if fragment in sql:
                    self.connection.status = extensions.TRANSACTION_STATUS_INERROR
                    raise error

            if sql.startswith("SELECT set_config"):
                self._result = [{"set_config": params[0]}]
            elif sql == "SELECT 1":
                self._result = [{"?column?": 1}]
            elif sql.startswith("SELECT title FROM books WHERE id"):
                title = backend.rows.get(params[0])
                self._result = [] if title is None else [{"title": title}]
            elif sql.startswith("SELECT id, title FROM books"):
                if backend.rows_override is not None:
                    self._result = list(backend.rows_override)
                else:
                    self._result = [{"id": k, "title": v} for k, v in backend.rows.items()]
            elif sql.startswith("INSERT INTO books"):
                book_id = backend.next_id
                backend.next_id += 1
                backend.rows[book_id] = params[0]
                self._result = [{"id": book_id}]
                self.rowcount = 1
            elif sql.startswith("DELETE FROM books"):
                self.rowcount = 1 if backend.rows.pop(params[0], None) is not None else 0
                self._result = []
            else:
                raise psycopg2.ProgrammingError(f"unexpected statement: {sql}")

    def fetchone(self):
        return self._result.pop(0) if self._result else None

    def __iter__(self):
        rows, self._result = self._result, []
        for index, row in enumerate(rows):
            if index > 0 and self.backend.iteration_error is not None:
                raise self.backend.iteration_error
            yield row


@pytest.fixture()
def backend():
    return FakeBackend()


@pytest.fixture()
def db_config():
    return DatabaseConfig(
        host="db.test",
        database="bookstore",
        user="bookstore_user",
        password="secret",
        sslmode="disable",
    )


@pytest.fixture()
def make_store(backend, db_config):
    """Фабрика хранилищ на подмененном драйвере; все открытые закрываются"""
    stores = []

    def _make(**pool_options):
        store = PostgresBookDatabase(
            db_config,
            PoolConfig(**pool_options),
            connection_factory=backend.connect,
        )
        stores.append(store)
        return store

    yield _make

    for store in stores:
        if not store.pool.closed:
            store.close()


@pytest.fixture()
def store(make_store):
    return make_store()


@pytest.fixture()
def restore_logger():
    yield
    logger.remove()
    logger.add(sys.stderr)


def _integration_config():
    host = os.getenv("BOOKSTORE_TEST_DB_HOST")
    if not host:
        return None
    return DatabaseConfig(
        host=host,
        port=int(os.getenv("BOOKSTORE_TEST_DB_PORT", "5432")),
        database=os.getenv("BOOKSTORE_TEST_DB_NAME", "bookstore_test"),
        user=os.getenv("BOOKSTORE_TEST_DB_USER", "postgres"),
        password=os.getenv("BOOKSTORE_TEST_DB_PASSWORD", ""),
        sslmode=os.getenv("BOOKSTORE_TEST_DB_SSLMODE", "disable"),
    )


@pytest.fixture()
def pg_config():
    config = _integration_config()
    if config is None:
        pytest.skip("BOOKSTORE_TEST_DB_HOST не задан - интеграционные тесты пропущены")

    # Схему хранилище не создает, готовим ее здесь
    conn = psycopg2.connect(**config.get_connection_kwargs())
    try:
        with conn, conn.cursor() as cursor:
            cursor.execute("CREATE TABLE IF NOT EXISTS books (id SERIAL PRIMARY KEY, title TEXT NOT NULL)")
            cursor.execute("TRUNCATE books RESTART IDENTITY")
    finally:
        conn.close()
    return config


@pytest.fixture()
def pg_store(pg_config):
    with PostgresBookDatabase(pg_config) as store:
        yield store
