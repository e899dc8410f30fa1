"""
MODULE: book_storage.core.models
RESPONSIBILITY: Define domain data structures (dataclasses).
ALLOWED: Dataclasses, Typing.
FORBIDDEN: Business logic, database operations.
ERRORS: None.

Модели данных хранилища книг
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class Book:
    """
    Модель книги

    Attributes:
        id: Уникальный идентификатор, назначается базой данных
        title: Название книги (непустая строка)
    """
    id: int
    title: str
