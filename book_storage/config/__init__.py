from book_storage.config.settings import AppConfig, Config, DatabaseConfig, PoolConfig

__all__ = ["AppConfig", "Config", "DatabaseConfig", "PoolConfig"]
