"""
SQLAlchemy-backed storage for domains and product URLs.
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Callable, Optional

from sqlalchemy import create_engine, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from product_scout.storage.base import ProductStorage, StorageError
from product_scout.storage.models import Base, Domain, ProductURL

_DEFAULT_BATCH_SIZE = 1000

_INSERTS: dict[str, Callable[..., Any]] = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


class SQLAlchemyProductStorage(ProductStorage):
    """
    Persist crawl results with dialect-native ``INSERT ... ON CONFLICT``.
    """

    def __init__(self, engine: Engine, *, batch_size: int = _DEFAULT_BATCH_SIZE) -> None:
        dialect = engine.dialect.name
        if dialect not in _INSERTS:
            raise StorageError(f"Unsupported database dialect: {dialect}")
        self._engine = engine
        self._insert = _INSERTS[dialect]
        self._batch_size = max(1, batch_size)
        self._session_factory = sessionmaker(
            bind=engine,
            class_=Session,
            autoflush=False,
            expire_on_commit=False,
        )

    def create_schema(self) -> None:
        try:
            Base.metadata.create_all(self._engine)
        except SQLAlchemyError as exc:
            raise StorageError(f"Failed to create schema: {exc}") from exc

    @contextmanager
    def _transaction(self) -> Iterator[Session]:
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except SQLAlchemyError as exc:
            session.rollback()
            raise StorageError(str(exc)) from exc
        finally:
            session.close()

    def upsert_domain(self, url: str) -> int:
        now = datetime.now(timezone.utc)
        stmt = self._insert(Domain).values(url=url, last_crawled_at=now)
        stmt = stmt.on_conflict_do_update(
            index_elements=[Domain.url],
            set_={"last_crawled_at": now},
        )
        with self._transaction() as session:
            session.execute(stmt)
            domain_id = session.scalar(select(Domain.id).where(Domain.url == url))
        if domain_id is None:
            raise StorageError(f"Domain row for {url} not found after upsert")
        return domain_id

    def upsert_product_urls(self, urls: Sequence[str], domain_id: int) -> int:
        if not urls:
            return 0

        payloads = [{"url": url, "domain_id": domain_id} for url in dict.fromkeys(urls)]
        inserted = 0
        with self._transaction() as session:
            for start in range(0, len(payloads), self._batch_size):
                chunk = payloads[start : start + self._batch_size]
                stmt = (
                    self._insert(ProductURL)
                    .values(chunk)
                    .on_conflict_do_nothing(index_elements=[ProductURL.url])
                    .returning(ProductURL.id)
                )
                inserted += len(session.scalars(stmt).all())
        return inserted

    def product_urls(self, domain_id: Optional[int] = None) -> list[str]:
        stmt = select(ProductURL.url).order_by(ProductURL.id)
        if domain_id is not None:
            stmt = stmt.where(ProductURL.domain_id == domain_id)
        with self._transaction() as session:
            return list(session.scalars(stmt).all())


def build_storage(database_url: str, *, create_schema: bool = True, **engine_kwargs: Any) -> SQLAlchemyProductStorage:
    """Create an engine for *database_url* and wrap it in a storage object."""
    try:
        engine = create_engine(database_url, pool_pre_ping=True, **engine_kwargs)
    except (SQLAlchemyError, ImportError) as exc:
        raise StorageError(f"Cannot create engine for {database_url!r}: {exc}") from exc
    storage = SQLAlchemyProductStorage(engine)
    if create_schema:
        storage.create_schema()
    return storage
