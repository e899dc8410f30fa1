"""
MODULE: book_storage.core.interfaces
RESPONSIBILITY: Define the abstract storage contract for books.
ALLOWED: Typing imports, ABC, logging.
FORBIDDEN: Implementation details, concrete classes (except data structures).
ERRORS: BookNotFoundError, DatabaseError (declared, not raised here).

Интерфейс хранилища книг.

Каждая реализация обязана поддерживать операции ниже с одинаковой
семантикой ошибок:
- BookNotFoundError - записи с таким id нет (get_book, delete_book);
- DatabaseError и наследники - любой другой сбой (соединение, запрос,
  разбор строки, таймаут).
"""

from abc import ABC, abstractmethod
from typing import List, Optional

from book_storage.core.exceptions import DatabaseError
from book_storage.core.models import Book
from book_storage.logger import logger


class IBookDatabase(ABC):
    """Интерфейс для хранилища книг"""

    @abstractmethod
    def get_book(self, book_id: int, timeout: Optional[float] = None) -> str:
        """
        Получение названия книги по идентификатору

        Raises:
            BookNotFoundError: Если книги с таким id нет
            DatabaseError: При любой другой ошибке
        """

    @abstractmethod
    def add_book(self, title: str, timeout: Optional[float] = None) -> int:
        """
        Добавление книги; идентификатор назначает база данных

        Returns:
            Идентификатор новой записи
        """

    @abstractmethod
    def delete_book(self, book_id: int, timeout: Optional[float] = None) -> None:
        """
        Удаление книги по идентификатору

        Raises:
            BookNotFoundError: Если ни одна строка не была удалена
            DatabaseError: При любой другой ошибке
        """

    @abstractmethod
    def get_all_books(self, timeout: Optional[float] = None) -> List[str]:
        """Названия всех книг в порядке, который вернула база (может быть пустым)"""

    @abstractmethod
    def list_books(self, timeout: Optional[float] = None) -> List[Book]:
        """Все книги вместе с идентификаторами"""

    @abstractmethod
    def ping(self, timeout: Optional[float] = None) -> None:
        """Проверка доступности базы данных"""

    @abstractmethod
    def close(self) -> None:
        """Освобождение всех соединений; повторный вызов - ошибка"""

    def __enter__(self):
        """Поддержка контекстного менеджера"""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """
        Автоматическое закрытие хранилища

        Если блок with завершился исключением, ошибка закрытия только
        логируется и не подменяет исходное исключение.
        """
        try:
            self.close()
        except DatabaseError as close_error:
            if exc_type is None:
                raise
            logger.warning(f"Ошибка при закрытии хранилища после исключения {exc_type.__name__}: {close_error}")
