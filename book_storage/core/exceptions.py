"""
MODULE: book_storage.core.exceptions
RESPONSIBILITY: Define the error taxonomy of the book storage layer.
ALLOWED: Inheriting from BookStorageError.
FORBIDDEN: Business logic, driver imports.
ERRORS: None (defines errors).

Пользовательские исключения хранилища книг.

"Не найдено" (BookNotFoundError) намеренно не является DatabaseError,
чтобы вызывающий код всегда мог отличить отсутствие записи от сбоя БД.
"""

from typing import Optional


class BookStorageError(Exception):
    """Базовое исключение хранилища книг"""
    pass


class ConfigurationError(BookStorageError):
    """Ошибка конфигурации (отсутствующие или неверные настройки)"""
    pass


class BookValidationError(BookStorageError):
    """Неверные входные данные (идентификатор или название книги)"""
    pass


class BookNotFoundError(BookStorageError):
    """Запрошенная или удаляемая книга не существует"""

    def __init__(self, book_id: int):
        super().__init__(f"Книга с id={book_id} не найдена")
        self.book_id = book_id


class DatabaseError(BookStorageError):
    """
    Ошибка при работе с базой данных

    Attributes:
        operation: Имя операции хранилища, в которой произошла ошибка
        original_error: Исходное исключение драйвера (если есть)
    """

    def __init__(
        self,
        message: str,
        operation: Optional[str] = None,
        original_error: Optional[BaseException] = None,
    ):
        super().__init__(message)
        self.operation = operation
        self.original_error = original_error


class DatabaseConnectionError(DatabaseError):
    """Ошибка подключения к базе данных (в т.ч. при создании хранилища)"""
    pass


class DatabaseQueryError(DatabaseError):
    """Ошибка выполнения запроса или разбора строки результата"""
    pass


class DatabaseTimeoutError(DatabaseQueryError):
    """Истек срок ожидания соединения из пула или выполнения запроса"""
    pass


__all__ = [
    "BookStorageError",
    "ConfigurationError",
    "BookValidationError",
    "BookNotFoundError",
    "DatabaseError",
    "DatabaseConnectionError",
    "DatabaseQueryError",
    "DatabaseTimeoutError",
]
