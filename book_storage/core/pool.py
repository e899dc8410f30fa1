"""
MODULE: book_storage.core.pool
RESPONSIBILITY: PostgreSQL connection pool on top of sqlalchemy.pool.QueuePool.
ALLOWED: psycopg2, SQLAlchemy pool, logging.
FORBIDDEN: Business logic, SQL of specific tables (use book_database).
ERRORS: DatabaseError, DatabaseConnectionError, DatabaseTimeoutError.

Пул соединений PostgreSQL.

Пулом управляет QueuePool из SQLAlchemy, соединения остаются обычными
соединениями psycopg2 (курсоры, RealDictCursor, commit). Ограничения:
- max_idle -> pool_size: сколько соединений хранится между запросами;
- max_open -> pool_size + max_overflow: сколько может быть открыто всего;
- max_lifetime -> recycle: соединение старше срока переоткрывается;
- pool_timeout -> timeout: сколько ждать свободного соединения.

При возврате в пул незавершенная транзакция откатывается. Пул не делает
повторных попыток: ошибки драйвера переводятся в DatabaseError сразу.
"""

import threading
from contextlib import contextmanager
from typing import Any, Callable, Dict, Iterator, Optional

import psycopg2
import psycopg2.errors
from sqlalchemy import exc as sa_exc
from sqlalchemy.pool import QueuePool

from book_storage.config.settings import DatabaseConfig, PoolConfig
from book_storage.core.exceptions import (
    DatabaseConnectionError,
    DatabaseError,
    DatabaseTimeoutError,
)
from book_storage.logger import logger


class ConnectionPool:
    """
    Пул соединений поверх psycopg2.connect

    Attributes:
        db_config: Конфигурация подключения к БД
        config: Ограничения пула
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
            pool_config: Ограничения пула (по умолчанию PoolConfig())
            connection_factory: Функция открытия соединения (psycopg2.connect)
        """
        self.db_config = db_config
        self.config = pool_config or PoolConfig()
        self._connection_factory = connection_factory
        self._lock = threading.Lock()
        self._closed = False

        # pool_size=0 в QueuePool означает "без ограничения", поэтому max_idle >= 1
        pool_size = min(self.config.max_idle, self.config.max_open)
        self._pool = QueuePool(
            self._connect,
            pool_size=pool_size,
            max_overflow=self.config.max_open - pool_size,
            timeout=self.config.pool_timeout,
            recycle=self.config.max_lifetime,
            reset_on_return="rollback",
        )

    @property
    def closed(self) -> bool:
        return self._closed

    def stats(self) -> Dict[str, int]:
        """Текущее состояние пула"""
        return {
            "idle": self._pool.checkedin(),
            "in_use": self._pool.checkedout(),
            "pool_size": self._pool.size(),
            "max_open": self.config.max_open,
        }

    @contextmanager
    def connection(self) -> Iterator[Any]:
        """
        Контекстный менеджер: соединение из пула с гарантированным возвратом

        Соединение, на котором произошла ошибка связи, закрывается и в пул
        не возвращается. Отмена запроса по statement_timeout соединение не ломает.

        Raises:
            DatabaseTimeoutError: Если свободное соединение не появилось за pool_timeout
            DatabaseConnectionError: При ошибке открытия нового соединения
            DatabaseError: Если пул закрыт
        """
        if self._closed:
            raise DatabaseError("Пул соединений закрыт", operation="acquire")

        try:
            conn = self._pool.connect()
        except sa_exc.TimeoutError as e:
            raise DatabaseTimeoutError(
                f"Нет свободных соединений: все {self.config.max_open} заняты "
                f"(ожидание {self.config.pool_timeout} с)",
                operation="acquire",
                original_error=e,
            ) from e
        except psycopg2.Error as e:
            raise DatabaseConnectionError(
                f"Ошибка подключения к БД {self.db_config.database}: {e}",
                operation="connect",
                original_error=e,
            ) from e
        except Exception as e:
            raise DatabaseConnectionError(
                f"Неожиданная ошибка при подключении к БД {self.db_config.database}: {e}",
                operation="connect",
                original_error=e,
            ) from e

        try:
            yield conn
        except psycopg2.errors.QueryCanceled:
            self._release(conn)
            raise
        except (psycopg2.OperationalError, psycopg2.InterfaceError) as e:
            logger.debug(f"Соединение с БД {self.db_config.database} сломано и закрывается: {e}")
            conn.invalidate(e)
            raise
        except BaseException:
            self._release(conn)
            raise
        else:
            self._release(conn)

    def close(self) -> None:
        """
        Закрытие пула

        Простаивающие соединения закрываются сразу, выданные - при возврате.

        Raises:
            DatabaseError: Если пул уже закрыт или соединения не закрылись
        """
        with self._lock:
            if self._closed:
                raise DatabaseError("Пул соединений уже закрыт", operation="close")
            self._closed = True

        in_use = self._pool.checkedout()
        try:
            self._pool.dispose()
        except sa_exc.SQLAlchemyError as e:
            raise DatabaseError(
                f"Ошибка при закрытии соединений: {e}",
                operation="close",
                original_error=e,
            ) from e

        logger.info(f"Пул соединений к БД {self.db_config.database} закрыт (выданных соединений: {in_use})")

    def _connect(self) -> Any:
        """Открытие физического соединения; вызывается QueuePool"""
        raw = self._connection_factory(**self.db_config.get_connection_kwargs())
        logger.debug(f"Открыто соединение к БД {self.db_config.database}")
        return raw

    def _release(self, conn: Any) -> None:
        # После close() выданное соединение закрывается, а не кладется в пул
        if self._closed:
            conn.invalidate()
        else:
            conn.close()
