"""
Entity records shared by every repository backend.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional


@dataclass
class Category:
    name: str
    id: Optional[int] = None
    product_ids: set[int] = field(default_factory=set)


@dataclass
class Product:
    title: str
    description: str
    image: str
    price: Decimal = Decimal("0")
    discounted_price: Decimal = Decimal("0")
    id: Optional[int] = None
    category_ids: set[int] = field(default_factory=set)
