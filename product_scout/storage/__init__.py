"""Durable storage of crawled domains and product URLs."""
from product_scout.storage.base import ProductStorage, StorageError
from product_scout.storage.sqlalchemy_storage import SQLAlchemyProductStorage, build_storage

__all__ = ("ProductStorage", "StorageError", "SQLAlchemyProductStorage", "build_storage")
