"""
SQLAlchemy data context and the generic repository built on top of it.
"""

from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from contextlib import AbstractContextManager, nullcontext
from decimal import Decimal
from typing import Any, Generic, Iterator, Optional

from sqlalchemy import Column, ForeignKey, Integer, String, Table, create_engine, select
from sqlalchemy.engine import URL, make_url
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, declarative_base, relationship, selectinload, sessionmaker
from sqlalchemy.orm.exc import FlushError
from sqlalchemy.pool import StaticPool
from sqlalchemy.types import TypeDecorator

from catalog.models import Category, Product
from catalog.repository import MAX_ID, MIN_ID, DuplicateEntityError, T, needs_generated_id

logger = logging.getLogger(__name__)

Base = declarative_base()


class ExactDecimal(TypeDecorator):
    """Stores a Decimal as its string form so no scale or float rounding
    is applied by the database."""

    impl = String
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        return str(Decimal(value))

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return Decimal(value)


def _storable_id(id: int) -> bool:
    return MIN_ID <= id <= MAX_ID


product_categories = Table(
    "product_categories",
    Base.metadata,
    Column("product_id", ForeignKey("products.id"), primary_key=True),
    Column("category_id", ForeignKey("categories.id"), primary_key=True),
)


class ProductRow(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String, nullable=False)
    price = Column(ExactDecimal, nullable=False, default=Decimal("0"))
    discounted_price = Column(ExactDecimal, nullable=False, default=Decimal("0"))
    description = Column(String, nullable=False)
    image = Column(String, nullable=False)

    categories = relationship(
        "CategoryRow", secondary=product_categories, back_populates="products"
    )


class CategoryRow(Base):
    __tablename__ = "categories"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String, nullable=False)

    products = relationship(
        "ProductRow", secondary=product_categories, back_populates="categories"
    )


def _is_sqlite_memory(url: URL) -> bool:
    return url.get_backend_name() == "sqlite" and url.database in (None, "", ":memory:")


class DataContext:
    """
    Owns the engine and session factory for one database. Accepts any
    SQLAlchemy URL; the schema is created if it does not exist yet.
    """

    def __init__(self, database_url: str):
        if not database_url:
            raise ValueError("database_url is required for DataContext")
        url = make_url(database_url)
        if _is_sqlite_memory(url):
            # Every session must see the same in-memory database.
            self.engine = create_engine(
                url,
                poolclass=StaticPool,
                connect_args={"check_same_thread": False},
            )
        else:
            self.engine = create_engine(
                url,
                pool_pre_ping=True,
                pool_recycle=1800,
            )
        self.Session = sessionmaker(
            bind=self.engine, class_=Session, expire_on_commit=False
        )
        Base.metadata.create_all(self.engine)
        logger.info("Data context ready on %s", url.render_as_string(hide_password=True))

    def dispose(self) -> None:
        self.engine.dispose()


class EntityMapper(ABC, Generic[T]):
    """Describes how one entity type is stored: its row class, its side of
    the many-to-many relation and the record/row conversions."""

    entity_name: str
    row_type: Any
    related_row_type: Any
    relation: str

    @abstractmethod
    def to_row(self, item: T) -> Any:
        ...

    @abstractmethod
    def to_record(self, row: Any) -> T:
        ...

    @abstractmethod
    def related_ids(self, item: T) -> set[int]:
        ...

    @abstractmethod
    def set_related_ids(self, item: T, ids: set[int]) -> None:
        ...


class ProductMapper(EntityMapper[Product]):
    entity_name = "Product"
    row_type = ProductRow
    related_row_type = CategoryRow
    relation = "categories"

    def to_row(self, item: Product) -> ProductRow:
        return ProductRow(
            id=item.id or None,
            title=item.title,
            price=item.price,
            discounted_price=item.discounted_price,
            description=item.description,
            image=item.image,
        )

    def to_record(self, row: ProductRow) -> Product:
        return Product(
            id=row.id,
            title=row.title,
            price=row.price,
            discounted_price=row.discounted_price,
            description=row.description,
            image=row.image,
            category_ids={category.id for category in row.categories},
        )

    def related_ids(self, item: Product) -> set[int]:
        return set(item.category_ids)

    def set_related_ids(self, item: Product, ids: set[int]) -> None:
        item.category_ids = ids


class CategoryMapper(EntityMapper[Category]):
    entity_name = "Category"
    row_type = CategoryRow
    related_row_type = ProductRow
    relation = "products"

    def to_row(self, item: Category) -> CategoryRow:
        return CategoryRow(id=item.id or None, name=item.name)

    def to_record(self, row: CategoryRow) -> Category:
        return Category(
            id=row.id,
            name=row.name,
            product_ids={product.id for product in row.products},
        )

    def related_ids(self, item: Category) -> set[int]:
        return set(item.product_ids)

    def set_related_ids(self, item: Category, ids: set[int]) -> None:
        item.product_ids = ids


class SqlRepository(Generic[T]):
    """
    Repository backed by a DataContext. Every operation runs in its own
    session; mutations commit before returning.
    """

    def __init__(
        self,
        context: DataContext,
        mapper: EntityMapper[T],
        *,
        serialize_writes: bool = True,
        batch_size: int = 100,
    ):
        if context is None:
            raise ValueError("context is required for SqlRepository")
        self.context = context
        self.mapper = mapper
        self.batch_size = batch_size
        self._lock: AbstractContextManager = (
            threading.RLock() if serialize_writes else nullcontext()
        )

    def _load_related(self, session: Session, ids: set[int]) -> list[Any]:
        ids = {id for id in ids if _storable_id(id)}
        if not ids:
            return []
        related = self.mapper.related_row_type
        return list(session.scalars(select(related).where(related.id.in_(ids))))

    def add(self, item: T) -> None:
        if item.id and not _storable_id(item.id):
            raise ValueError(f"{self.mapper.entity_name} id {item.id} is out of range")
        with self._lock, self.context.Session() as session:
            row = self.mapper.to_row(item)
            wanted = self.mapper.related_ids(item)
            linked = self._load_related(session, wanted)
            linked_ids = {related.id for related in linked}
            if wanted - linked_ids:
                logger.warning(
                    "Ignoring unknown related ids %s for %s",
                    sorted(wanted - linked_ids),
                    self.mapper.entity_name,
                )
            setattr(row, self.mapper.relation, linked)
            session.add(row)
            try:
                session.commit()
            except (IntegrityError, FlushError) as exc:
                session.rollback()
                raise DuplicateEntityError(self.mapper.entity_name, item.id) from exc
            if needs_generated_id(item):
                item.id = row.id
            self.mapper.set_related_ids(item, linked_ids)

    def delete(self, id: int) -> None:
        if not _storable_id(id):
            return
        # Read and remove share the lock, so concurrent deletes of the same
        # id cannot interleave.
        with self._lock, self.context.Session() as session:
            row = session.get(self.mapper.row_type, id)
            if row is None:
                return
            session.delete(row)
            session.commit()

    def get(self, id: int) -> Optional[T]:
        if not _storable_id(id):
            return None
        with self.context.Session() as session:
            row = session.get(self.mapper.row_type, id)
            if row is None:
                return None
            return self.mapper.to_record(row)

    def get_all(self) -> Iterator[T]:
        row_type = self.mapper.row_type
        stmt = (
            select(row_type)
            .options(selectinload(getattr(row_type, self.mapper.relation)))
            .execution_options(yield_per=self.batch_size)
        )
        with self.context.Session() as session:
            for row in session.scalars(stmt):
                yield self.mapper.to_record(row)
