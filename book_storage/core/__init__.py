"""
CORE LAYER CONTRACT

This package contains the storage contract and its PostgreSQL implementation.

RULES:
- interfaces.py declares the contract, book_database.py implements it
- Every driver error leaves this layer as a BookStorageError subclass
- No retries, no caching, no schema migration

LAYER RESPONSIBILITY:
- Error taxonomy (exceptions.py)
- Domain models (models.py)
- Connection pooling (pool.py)
- Book storage contract and implementation

Import concrete classes from their modules, e.g.
`from book_storage.core.book_database import PostgresBookDatabase`.
"""
