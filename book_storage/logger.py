"""
MODULE: book_storage.logger
RESPONSIBILITY: Centralized Loguru configuration and logger instance provision.
ALLOWED: Configuring loguru, exporting `logger` object.
FORBIDDEN: Business logic, re-configuring logger in other modules.
ERRORS: OSError (if log directory creation fails).

Централизованная настройка логирования через Loguru.
ЗАПРЕЩЕНО настраивать logger в других модулях!
Все модули должны импортировать logger отсюда: from book_storage.logger import logger

Сам пакет только пишет в logger; обработчики устанавливает вызывающее
приложение через configure_logging().
"""
import sys
from pathlib import Path
from typing import Optional

from loguru import logger

from book_storage.config.settings import AppConfig

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
)
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}"


def configure_logging(app_config: Optional[AppConfig] = None) -> Path:
    """
    Установка обработчиков логирования

    Args:
        app_config: Конфигурация логирования (по умолчанию AppConfig())

    Returns:
        Путь к директории логов
    """
    app_config = app_config or AppConfig()

    # Удаляем стандартный handler
    logger.remove()

    log_dir = Path(app_config.log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)

    # Консольный вывод
    logger.add(
        sys.stderr,
        format=CONSOLE_FORMAT,
        level=app_config.log_level,
        colorize=True,
    )

    # Файл приложения (DEBUG и выше)
    logger.add(
        log_dir / "app.log",
        format=FILE_FORMAT,
        level="DEBUG",
        rotation=app_config.log_rotation,
        retention=app_config.log_retention,
        compression="zip",
    )

    # Файл ошибок (ERROR и выше)
    logger.add(
        log_dir / "errors.log",
        format=FILE_FORMAT,
        level="ERROR",
        rotation=app_config.log_rotation,
        retention="90 days",
        compression="zip",
    )

    return log_dir


__all__ = ["logger", "configure_logging"]
