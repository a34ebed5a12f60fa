"""
Pydantic schemas for the catalog API.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Annotated, Optional

from pydantic import BaseModel, Field, PlainSerializer

from catalog.models import Category, Product
from catalog.repository import MAX_ID

Money = Annotated[
    Decimal, PlainSerializer(float, return_type=float, when_used="json")
]
EntityId = Annotated[int, Field(ge=0, le=MAX_ID)]


class ProductIn(BaseModel):
    id: Optional[EntityId] = None
    title: str = Field(..., min_length=1)
    price: Money = Decimal("0")
    discounted_price: Money = Decimal("0")
    description: str = Field(..., min_length=1)
    image: str = Field(..., min_length=1)
    category_ids: list[EntityId] = Field(default_factory=list)

    def to_entity(self) -> Product:
        return Product(
            id=self.id,
            title=self.title,
            price=self.price,
            discounted_price=self.discounted_price,
            description=self.description,
            image=self.image,
            category_ids=set(self.category_ids),
        )


class ProductOut(BaseModel):
    id: int
    title: str
    price: Money
    discounted_price: Money
    description: str
    image: str
    category_ids: list[int]

    @classmethod
    def from_entity(cls, product: Product) -> "ProductOut":
        return cls(
            id=product.id,
            title=product.title,
            price=product.price,
            discounted_price=product.discounted_price,
            description=product.description,
            image=product.image,
            category_ids=sorted(product.category_ids),
        )


class CategoryIn(BaseModel):
    id: Optional[EntityId] = None
    name: str = Field(..., min_length=1)
    product_ids: list[EntityId] = Field(default_factory=list)

    def to_entity(self) -> Category:
        return Category(id=self.id, name=self.name, product_ids=set(self.product_ids))


class CategoryOut(BaseModel):
    id: int
    name: str
    product_ids: list[int]

    @classmethod
    def from_entity(cls, category: Category) -> "CategoryOut":
        return cls(
            id=category.id,
            name=category.name,
            product_ids=sorted(category.product_ids),
        )


class StatusResponse(BaseModel):
    status: str
