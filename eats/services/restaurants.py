"""
Restaurant & Menu Service

CRUD over restaurants, categories and dishes. Every mutation first runs
the ownership check: the acting owner must be the restaurant's recorded
owner (for dishes, the owner of the dish's restaurant).
"""

import logging
from dataclasses import dataclass, field
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from eats.core.config import get_settings
from eats.core.results import ErrorCode, Page, ServiceResult
from eats.models import Category, Dish, Order, Restaurant, User
from eats.repositories import (
    CategoryRepository,
    DishRepository,
    OrderRepository,
    RestaurantRepository,
)
from eats.schemas import (
    CreateDishInput,
    CreateRestaurantInput,
    EditDishInput,
    EditRestaurantInput,
)

logger = logging.getLogger(__name__)

PROMOTED_FIRST = (Restaurant.is_promoted.desc(),)


@dataclass
class CategoryListing:
    category: Category
    restaurant_count: int


@dataclass
class CategoryPage:
    category: Category
    restaurants: Page[Restaurant]


@dataclass
class OwnedRestaurant:
    restaurant: Restaurant
    orders: list[Order] = field(default_factory=list)


class RestaurantService:
    def __init__(self, db: AsyncSession, page_size: Optional[int] = None):
        self.db = db
        self.page_size = page_size or get_settings().pagination_unit
        self.restaurants = RestaurantRepository(db)
        self.dishes = DishRepository(db)
        self.categories = CategoryRepository(db)
        self.orders = OrderRepository(db)

    # =========================================================================
    # OWNERSHIP
    # =========================================================================

    async def can_edit_restaurant(
        self,
        owner: User,
        restaurant_id: int,
    ) -> ServiceResult[Restaurant]:
        """Check the restaurant exists and belongs to ``owner``."""
        restaurant = await self.restaurants.get(restaurant_id)
        if not restaurant:
            return ServiceResult.failure(ErrorCode.NOT_FOUND, "Restaurant not found")
        if restaurant.owner_id != owner.id:
            logger.info(f"User #{owner.id} denied on restaurant #{restaurant_id}")
            return ServiceResult.failure(
                ErrorCode.NOT_OWNER,
                "You can't edit a restaurant that you don't own",
            )
        return ServiceResult.success(restaurant)

    async def can_edit_dish(self, owner: User, dish_id: int) -> ServiceResult[Dish]:
        dish = await self.dishes.get(dish_id)
        if not dish:
            return ServiceResult.failure(ErrorCode.NOT_FOUND, "Dish not found")
        if dish.restaurant.owner_id != owner.id:
            logger.info(f"User #{owner.id} denied on dish #{dish_id}")
            return ServiceResult.failure(
                ErrorCode.NOT_OWNER,
                "You can't edit a menu on a restaurant that you don't own",
            )
        return ServiceResult.success(dish)

    # =========================================================================
    # RESTAURANTS
    # =========================================================================

    async def create_restaurant(
        self,
        owner: User,
        data: CreateRestaurantInput,
    ) -> ServiceResult[Restaurant]:
        owner_id = owner.id
        try:
            restaurant = Restaurant(
                name=data.name,
                address=data.address,
                cover_image=data.cover_image,
                owner_id=owner_id,
            )
            restaurant.category = await self.categories.get_or_create(data.category_name)
            await self.restaurants.save(restaurant)
            await self.db.commit()
        except SQLAlchemyError:
            await self.db.rollback()
            logger.exception(f"Could not create restaurant for owner #{owner_id}")
            return ServiceResult.failure(ErrorCode.INFRASTRUCTURE_FAILURE, "Could not create restaurant")

        logger.info(f"Restaurant #{restaurant.id} '{restaurant.name}' created by owner #{owner_id}")
        return ServiceResult.success(restaurant)

    async def edit_restaurant(
        self,
        owner: User,
        restaurant_id: int,
        data: EditRestaurantInput,
    ) -> ServiceResult[Restaurant]:
        try:
            check = await self.can_edit_restaurant(owner, restaurant_id)
            if not check.ok:
                return check
            restaurant = check.value

            changes = data.model_dump(exclude_unset=True, exclude={"category_name"})
            for key, value in changes.items():
                setattr(restaurant, key, value)
            if data.category_name:
                restaurant.category = await self.categories.get_or_create(data.category_name)

            await self.restaurants.save(restaurant)
            await self.db.commit()
        except SQLAlchemyError:
            await self.db.rollback()
            logger.exception(f"Could not edit restaurant #{restaurant_id}")
            return ServiceResult.failure(ErrorCode.INFRASTRUCTURE_FAILURE, "Could not edit Restaurant")
        return ServiceResult.success(restaurant)

    async def delete_restaurant(self, owner: User, restaurant_id: int) -> ServiceResult[None]:
        owner_id = owner.id
        try:
            check = await self.can_edit_restaurant(owner, restaurant_id)
            if not check.ok:
                return ServiceResult.failure(check.error_code, check.error)
            await self.restaurants.delete(check.value)
            await self.db.commit()
        except SQLAlchemyError:
            await self.db.rollback()
            logger.exception(f"Could not delete restaurant #{restaurant_id}")
            return ServiceResult.failure(ErrorCode.INFRASTRUCTURE_FAILURE, "Could not delete Restaurant")

        logger.info(f"Restaurant #{restaurant_id} deleted by owner #{owner_id}")
        return ServiceResult.success()

    async def all_restaurants(self, page: int = 1) -> ServiceResult[Page[Restaurant]]:
        try:
            results = await self.restaurants.paginate(
                page=page,
                page_size=self.page_size,
                order_by=PROMOTED_FIRST,
            )
        except SQLAlchemyError:
            logger.exception("Could not list restaurants")
            return ServiceResult.failure(ErrorCode.INFRASTRUCTURE_FAILURE, "Could not load Restaurants")
        return ServiceResult.success(results)

    async def find_restaurant_by_id(self, restaurant_id: int) -> ServiceResult[Restaurant]:
        try:
            restaurant = await self.restaurants.get(restaurant_id)
        except SQLAlchemyError:
            logger.exception(f"Could not load restaurant #{restaurant_id}")
            return ServiceResult.failure(ErrorCode.INFRASTRUCTURE_FAILURE, "Could not get Restaurant")
        if not restaurant:
            return ServiceResult.failure(ErrorCode.NOT_FOUND, "Restaurant not found")
        return ServiceResult.success(restaurant)

    async def search_restaurant_by_name(
        self,
        query: str,
        page: int = 1,
    ) -> ServiceResult[Page[Restaurant]]:
        try:
            results = await self.restaurants.paginate(
                Restaurant.name.ilike(f"%{query}%"),
                page=page,
                page_size=self.page_size,
            )
        except SQLAlchemyError:
            logger.exception(f"Restaurant search failed for {query!r}")
            return ServiceResult.failure(ErrorCode.INFRASTRUCTURE_FAILURE, "Could not Search Restaurant")
        return ServiceResult.success(results)

    async def my_restaurants(self, owner: User, page: int = 1) -> ServiceResult[Page[Restaurant]]:
        owner_id = owner.id
        try:
            results = await self.restaurants.paginate(
                Restaurant.owner_id == owner_id,
                page=page,
                page_size=self.page_size,
            )
        except SQLAlchemyError:
            logger.exception(f"Could not list restaurants of owner #{owner_id}")
            return ServiceResult.failure(ErrorCode.INFRASTRUCTURE_FAILURE, "Could not find restaurants")
        return ServiceResult.success(results)

    async def my_restaurant(self, owner: User, restaurant_id: int) -> ServiceResult[OwnedRestaurant]:
        try:
            restaurant = await self.restaurants.find_one(
                Restaurant.id == restaurant_id,
                Restaurant.owner_id == owner.id,
            )
            if not restaurant:
                return ServiceResult.failure(ErrorCode.NOT_FOUND, "Restaurant not found")
            orders = await self.orders.find(Order.restaurant_id == restaurant.id)
        except SQLAlchemyError:
            logger.exception(f"Could not load restaurant #{restaurant_id}")
            return ServiceResult.failure(ErrorCode.INFRASTRUCTURE_FAILURE, "Could not find restaurant")
        return ServiceResult.success(OwnedRestaurant(restaurant=restaurant, orders=orders))

    # =========================================================================
    # CATEGORIES
    # =========================================================================

    async def all_categories(self) -> ServiceResult[list[CategoryListing]]:
        try:
            listings = []
            for category in await self.categories.find():
                count = await self.restaurants.count(Restaurant.category_id == category.id)
                listings.append(CategoryListing(category=category, restaurant_count=count))
        except SQLAlchemyError:
            logger.exception("Could not list categories")
            return ServiceResult.failure(ErrorCode.INFRASTRUCTURE_FAILURE, "Could not load Categories")
        return ServiceResult.success(listings)

    async def find_category_by_slug(self, slug: str, page: int = 1) -> ServiceResult[CategoryPage]:
        try:
            category = await self.categories.find_one(Category.slug == slug)
            if not category:
                return ServiceResult.failure(ErrorCode.NOT_FOUND, "Category not found")
            restaurants = await self.restaurants.paginate(
                Restaurant.category_id == category.id,
                page=page,
                page_size=self.page_size,
                order_by=PROMOTED_FIRST,
            )
        except SQLAlchemyError:
            logger.exception(f"Could not load category {slug!r}")
            return ServiceResult.failure(ErrorCode.INFRASTRUCTURE_FAILURE, "Could not load Category")
        return ServiceResult.success(CategoryPage(category=category, restaurants=restaurants))

    # =========================================================================
    # DISHES
    # =========================================================================

    async def create_dish(self, owner: User, data: CreateDishInput) -> ServiceResult[Dish]:
        try:
            check = await self.can_edit_restaurant(owner, data.restaurant_id)
            if not check.ok:
                return ServiceResult.failure(check.error_code, check.error)

            dish = Dish(
                name=data.name,
                price=data.price,
                photo=data.photo,
                description=data.description,
                options=[option.model_dump() for option in data.options],
                restaurant=check.value,
            )
            await self.dishes.save(dish)
            await self.db.commit()
        except SQLAlchemyError:
            await self.db.rollback()
            logger.exception(f"Could not create dish on restaurant #{data.restaurant_id}")
            return ServiceResult.failure(ErrorCode.INFRASTRUCTURE_FAILURE, "Could not create Dish")

        logger.info(f"Dish #{dish.id} '{dish.name}' added to restaurant #{data.restaurant_id}")
        return ServiceResult.success(dish)

    async def edit_dish(self, owner: User, dish_id: int, data: EditDishInput) -> ServiceResult[Dish]:
        try:
            check = await self.can_edit_dish(owner, dish_id)
            if not check.ok:
                return check
            dish = check.value

            changes = data.model_dump(exclude_unset=True)
            for key, value in changes.items():
                setattr(dish, key, value)

            await self.dishes.save(dish)
            await self.db.commit()
        except SQLAlchemyError:
            await self.db.rollback()
            logger.exception(f"Could not edit dish #{dish_id}")
            return ServiceResult.failure(ErrorCode.INFRASTRUCTURE_FAILURE, "Could not edit menu")
        return ServiceResult.success(dish)

    async def delete_dish(self, owner: User, dish_id: int) -> ServiceResult[None]:
        try:
            check = await self.can_edit_dish(owner, dish_id)
            if not check.ok:
                return ServiceResult.failure(check.error_code, check.error)
            await self.dishes.delete(check.value)
            await self.db.commit()
        except SQLAlchemyError:
            await self.db.rollback()
            logger.exception(f"Could not delete dish #{dish_id}")
            return ServiceResult.failure(ErrorCode.INFRASTRUCTURE_FAILURE, "Could not delete menu")
        return ServiceResult.success()
