"""
MODULE: book_storage.config.settings
RESPONSIBILITY: Application configuration loading and validation.
ALLOWED: os, dotenv, dataclasses.
FORBIDDEN: Complex business logic, database connections (only config).
ERRORS: ConfigurationError (validation).

Конфигурация хранилища книг.

Параметры подключения никогда не зашиваются в код: они загружаются
из окружения / .env файла и явно передаются в конструктор хранилища.
"""

from dataclasses import dataclass
from typing import Dict, Any, Optional
import os

from dotenv import load_dotenv
from loguru import logger

from book_storage.core.exceptions import ConfigurationError


@dataclass(frozen=True)
class DatabaseConfig:
    """Конфигурация подключения к PostgreSQL"""
    host: str
    database: str
    user: str
    password: str
    port: int = 5432
    sslmode: str = "prefer"
    connect_timeout: int = 5

    def get_connection_kwargs(self) -> Dict[str, Any]:
        """Получить параметры для psycopg2.connect"""
        return {
            "host": self.host,
            "port": self.port,
            "dbname": self.database,
            "user": self.user,
            "password": self.password,
            "sslmode": self.sslmode,
            "connect_timeout": self.connect_timeout,
        }

    def to_dict(self) -> Dict[str, Any]:
        """Преобразование в словарь (без пароля)"""
        return {
            "host": self.host,
            "port": self.port,
            "database": self.database,
            "user": self.user,
            "sslmode": self.sslmode,
        }

    def __repr__(self) -> str:
        return (
            f"DatabaseConfig(host={self.host!r}, port={self.port!r}, "
            f"database={self.database!r}, user={self.user!r}, sslmode={self.sslmode!r})"
        )


@dataclass(frozen=True)
class PoolConfig:
    """
    Конфигурация пула соединений

    Attributes:
        max_open: Максимум одновременно открытых соединений
        max_idle: Максимум простаивающих соединений между запросами
        max_lifetime: Время жизни физического соединения, сек
        ping_timeout: Ограничение проверки доступности при создании, сек
        query_timeout: Таймаут операции по умолчанию, сек (None - без ограничения)
        pool_timeout: Ожидание свободного соединения из пула, сек
    """
    max_open: int = 25
    max_idle: int = 10
    max_lifetime: float = 300.0
    ping_timeout: float = 5.0
    query_timeout: Optional[float] = None
    pool_timeout: float = 30.0

    def __post_init__(self):
        if self.max_open < 1:
            raise ConfigurationError(f"max_open должен быть >= 1, получено {self.max_open}")
        # max_idle больше max_open допустим: простаивающих не бывает больше открытых
        if self.max_idle < 1:
            raise ConfigurationError(f"max_idle должен быть >= 1, получено {self.max_idle}")
        if self.max_lifetime <= 0:
            raise ConfigurationError(f"max_lifetime должен быть > 0, получено {self.max_lifetime}")
        if self.ping_timeout <= 0:
            raise ConfigurationError(f"ping_timeout должен быть > 0, получено {self.ping_timeout}")
        if self.query_timeout is not None and self.query_timeout <= 0:
            raise ConfigurationError(f"query_timeout должен быть > 0, получено {self.query_timeout}")
        if self.pool_timeout <= 0:
            raise ConfigurationError(f"pool_timeout должен быть > 0, получено {self.pool_timeout}")


@dataclass(frozen=True)
class AppConfig:
    """Конфигурация логирования приложения"""
    log_level: str = "INFO"
    log_dir: str = "logs"
    log_rotation: str = "10 MB"
    log_retention: str = "30 days"


class Config:
    """
    Главный класс конфигурации, загружающий все настройки из .env файла
    """

    def __init__(self, env_file: Optional[str] = None):
        """
        Инициализация конфигурации

        Args:
            env_file: Путь к .env файлу (опционально)

        Raises:
            ConfigurationError: Если обязательная переменная не найдена
                или значение не проходит валидацию
        """
        self._load_environment(env_file)
        self.database = self._load_database_config()
        self.pool = self._load_pool_config()
        self.app = self._load_app_config()

    def _load_environment(self, env_file: Optional[str]) -> None:
        """Загрузка переменных окружения"""
        if env_file and os.path.exists(env_file):
            load_dotenv(env_file)
        else:
            load_dotenv()

    def _get_env_var(self, key: str, default: Any = None, required: bool = False) -> Any:
        """
        Получение переменной окружения с валидацией

        Args:
            key: Ключ переменной
            default: Значение по умолчанию
            required: Обязательная ли переменная

        Returns:
            Значение переменной

        Raises:
            ConfigurationError: Если обязательная переменная не найдена
        """
        value = os.getenv(key)

        if value is None:
            if required:
                raise ConfigurationError(f"Обязательная переменная окружения {key} не найдена")
            return default

        return value

    def _get_env_int(self, key: str, default: int = 0) -> int:
        """Получение int переменной из окружения"""
        try:
            return int(self._get_env_var(key, default))
        except (TypeError, ValueError) as e:
            logger.warning(f"Неверный формат int для {key}: {e}, используется значение по умолчанию: {default}")
            return default

    def _get_env_float(self, key: str, default: Optional[float] = None) -> Optional[float]:
        """Получение float переменной из окружения"""
        value = self._get_env_var(key, default)
        if value is None or value == "":
            return default
        try:
            return float(value)
        except (TypeError, ValueError) as e:
            logger.warning(f"Неверный формат float для {key}: {e}, используется значение по умолчанию: {default}")
            return default

    def _load_database_config(self) -> DatabaseConfig:
        """Загрузка конфигурации базы данных"""
        return DatabaseConfig(
            host=self._get_env_var("BOOKSTORE_DB_HOST", "localhost"),
            port=self._get_env_int("BOOKSTORE_DB_PORT", 5432),
            database=self._get_env_var("BOOKSTORE_DB_NAME", required=True),
            user=self._get_env_var("BOOKSTORE_DB_USER", required=True),
            password=self._get_env_var("BOOKSTORE_DB_PASSWORD", required=True),
            sslmode=self._get_env_var("BOOKSTORE_DB_SSLMODE", "prefer"),
            connect_timeout=self._get_env_int("BOOKSTORE_DB_CONNECT_TIMEOUT", 5),
        )

    def _load_pool_config(self) -> PoolConfig:
        """Загрузка конфигурации пула соединений"""
        return PoolConfig(
            max_open=self._get_env_int("BOOKSTORE_POOL_MAX_OPEN", 25),
            max_idle=self._get_env_int("BOOKSTORE_POOL_MAX_IDLE", 10),
            max_lifetime=self._get_env_float("BOOKSTORE_POOL_MAX_LIFETIME", 300.0),
            ping_timeout=self._get_env_float("BOOKSTORE_PING_TIMEOUT", 5.0),
            query_timeout=self._get_env_float("BOOKSTORE_QUERY_TIMEOUT", None),
            pool_timeout=self._get_env_float("BOOKSTORE_POOL_TIMEOUT", 30.0),
        )

    def _load_app_config(self) -> AppConfig:
        """Загрузка конфигурации логирования"""
        return AppConfig(
            log_level=self._get_env_var("LOG_LEVEL", "INFO").upper(),
            log_dir=self._get_env_var("LOG_DIR", "logs"),
            log_rotation=self._get_env_var("LOG_ROTATION", "10 MB"),
            log_retention=self._get_env_var("LOG_RETENTION", "30 days"),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Преобразование конфигурации в словарь (без паролей)"""
        return {
            "database": self.database.to_dict(),
            "pool": {
                "max_open": self.pool.max_open,
                "max_idle": self.pool.max_idle,
                "max_lifetime": self.pool.max_lifetime,
                "ping_timeout": self.pool.ping_timeout,
                "query_timeout": self.pool.query_timeout,
                "pool_timeout": self.pool.pool_timeout,
            },
            "app": {
                "log_level": self.app.log_level,
                "log_dir": self.app.log_dir,
            },
        }
