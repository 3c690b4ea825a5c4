"""
Storage Access Layer

One repository per entity, each exposing the same capability set:
get, find_one, find, count, paginate, save and delete.
Repositories flush but never commit; the calling service owns the
transaction.
"""

import logging
from typing import Any, Generic, Optional, Sequence, TypeVar

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from eats.core.results import Page
from eats.models import (
    Category,
    Dish,
    Order,
    OrderItem,
    Payment,
    Restaurant,
    User,
    Verification,
)

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT")


class Repository(Generic[ModelT]):
    """Generic async repository bound to one mapped class."""

    model: type

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, entity_id: int) -> Optional[ModelT]:
        return await self.db.get(self.model, entity_id)

    async def find_one(self, *criteria: Any) -> Optional[ModelT]:
        result = await self.db.execute(select(self.model).where(*criteria))
        return result.scalars().first()

    async def find(
        self,
        *criteria: Any,
        order_by: Sequence[Any] = (),
        offset: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> list[ModelT]:
        query = select(self.model).where(*criteria).order_by(*order_by, self.model.id)
        if offset is not None:
            query = query.offset(offset)
        if limit is not None:
            query = query.limit(limit)
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def count(self, *criteria: Any) -> int:
        result = await self.db.execute(
            select(func.count(self.model.id)).where(*criteria)
        )
        return result.scalar() or 0

    async def paginate(
        self,
        *criteria: Any,
        page: int,
        page_size: int,
        order_by: Sequence[Any] = (),
    ) -> Page[ModelT]:
        """Return one page (1-based) plus the total number of matches."""
        total = await self.count(*criteria)
        results = await self.find(
            *criteria,
            order_by=order_by,
            offset=(page - 1) * page_size,
            limit=page_size,
        )
        return Page(results=results, total_results=total, page_size=page_size)

    async def save(self, entity: ModelT) -> ModelT:
        self.db.add(entity)
        await self.db.flush()
        return entity

    async def delete(self, entity: ModelT) -> None:
        await self.db.delete(entity)
        await self.db.flush()


class UserRepository(Repository[User]):
    model = User


class VerificationRepository(Repository[Verification]):
    model = Verification


class RestaurantRepository(Repository[Restaurant]):
    model = Restaurant


class DishRepository(Repository[Dish]):
    model = Dish


class OrderRepository(Repository[Order]):
    model = Order


class OrderItemRepository(Repository[OrderItem]):
    model = OrderItem


class PaymentRepository(Repository[Payment]):
    model = Payment


class CategoryRepository(Repository[Category]):
    model = Category

    @staticmethod
    def normalize(raw_name: str) -> tuple[str, str]:
        """Return the stored (name, slug) pair for a user supplied name."""
        name = raw_name.strip().lower()
        return name, name.replace(" ", "-")

    async def get_or_create(self, raw_name: str) -> Category:
        name, slug = self.normalize(raw_name)
        category = await self.find_one(Category.slug == slug)
        if category:
            return category

        try:
            async with self.db.begin_nested():
                category = Category(name=name, slug=slug)
                self.db.add(category)
        except IntegrityError:
            # Another request inserted the same slug first
            logger.info(f"Category '{slug}' created concurrently, reusing it")
            category = await self.find_one(Category.slug == slug)
            if category is None:
                raise
        return category
