"""
Repository wiring for the FastAPI app.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from catalog.config import Settings
from catalog.db import CategoryMapper, DataContext, ProductMapper, SqlRepository
from catalog.memory import InMemoryRepository
from catalog.models import Category, Product
from catalog.repository import Repository

logger = logging.getLogger(__name__)


@dataclass
class Repositories:
    """One repository per entity type, shared by every request."""

    products: Repository[Product]
    categories: Repository[Category]
    context: Optional[DataContext] = None


def build_repositories(settings: Settings) -> Repositories:
    if settings.use_in_memory_backends:
        logger.info("Using in-memory repositories")
        return Repositories(
            products=InMemoryRepository(serialize_writes=settings.serialize_writes),
            categories=InMemoryRepository(serialize_writes=settings.serialize_writes),
        )

    context = DataContext(settings.database_url)
    return Repositories(
        products=SqlRepository(
            context,
            ProductMapper(),
            serialize_writes=settings.serialize_writes,
            batch_size=settings.stream_batch_size,
        ),
        categories=SqlRepository(
            context,
            CategoryMapper(),
            serialize_writes=settings.serialize_writes,
            batch_size=settings.stream_batch_size,
        ),
        context=context,
    )
