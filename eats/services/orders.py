"""
Order Lifecycle Service

Order placement, role-scoped visibility and role-gated status changes.

Status workflow:
    Pending -> Cooking -> Cooked -> PickedUp -> Deleverd

Owners move an order to Cooking/Cooked, delivery drivers to
PickedUp/Deleverd. The first driver to move an unassigned order
becomes its driver. The target status is gated by role only; the
value itself may be set out of sequence.
"""

import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from eats.core.results import ErrorCode, ServiceResult
from eats.models import Dish, Order, OrderItem, OrderStatus, Restaurant, User, UserRole
from eats.repositories import (
    DishRepository,
    OrderItemRepository,
    OrderRepository,
    RestaurantRepository,
)
from eats.schemas import CreateOrderInput, OrderItemOptionInput

logger = logging.getLogger(__name__)

ALLOWED_STATUS_BY_ROLE: dict[UserRole, frozenset[OrderStatus]] = {
    UserRole.OWNER: frozenset({OrderStatus.COOKING, OrderStatus.COOKED}),
    UserRole.DELIVERY: frozenset({OrderStatus.PICKED_UP, OrderStatus.DELIVERED}),
}


def price_dish(dish: Dish, selections: list[OrderItemOptionInput]) -> float:
    """
    Price of one dish with the chosen options.

    A selection adds the option's own extra when the option has one,
    otherwise the extra of the chosen choice. Selections that do not
    match a declared option add nothing.
    """
    price = dish.price
    declared = {option["name"]: option for option in dish.options or []}

    for selection in selections:
        option = declared.get(selection.name)
        if option is None:
            continue
        if option.get("extra"):
            price += option["extra"]
            continue
        for choice in option.get("choices") or []:
            if choice.get("name") == selection.choice and choice.get("extra"):
                price += choice["extra"]
    return price


class OrderService:
    def __init__(self, db: AsyncSession):
        self.db = db
        self.orders = OrderRepository(db)
        self.order_items = OrderItemRepository(db)
        self.restaurants = RestaurantRepository(db)
        self.dishes = DishRepository(db)

    def can_see_order(self, user: User, order: Order) -> bool:
        if user.role == UserRole.CLIENT:
            return order.customer_id == user.id
        if user.role == UserRole.DELIVERY:
            return order.driver_id == user.id
        if user.role == UserRole.OWNER:
            return order.restaurant is not None and order.restaurant.owner_id == user.id
        return False

    async def create_order(self, customer: User, data: CreateOrderInput) -> ServiceResult[Order]:
        customer_id = customer.id
        try:
            restaurant = await self.restaurants.get(data.restaurant_id)
            if not restaurant:
                return ServiceResult.failure(ErrorCode.NOT_FOUND, "Restaurant not found")

            total = 0.0
            items = []
            for item in data.items:
                dish = await self.dishes.get(item.dish_id)
                if not dish or dish.restaurant_id != restaurant.id:
                    # Nothing is flushed yet, so the order is abandoned whole
                    return ServiceResult.failure(ErrorCode.NOT_FOUND, "Dish not found")
                total += price_dish(dish, item.options)
                items.append(OrderItem(
                    dish=dish,
                    options=[option.model_dump() for option in item.options],
                ))

            order = Order(
                customer_id=customer_id,
                restaurant=restaurant,
                items=items,
                total=round(total, 2),
                status=OrderStatus.PENDING,
            )
            await self.orders.save(order)
            await self.db.commit()
        except SQLAlchemyError:
            await self.db.rollback()
            logger.exception(f"Could not create order for customer #{customer_id}")
            return ServiceResult.failure(ErrorCode.INFRASTRUCTURE_FAILURE, "Could not create order")

        logger.info(
            f"Order #{order.id} placed by customer #{customer_id} "
            f"at restaurant #{restaurant.id} (total={order.total:.2f})"
        )
        return ServiceResult.success(order)

    async def get_orders(
        self,
        user: User,
        status: Optional[OrderStatus] = None,
        restaurant_id: Optional[int] = None,
    ) -> ServiceResult[list[Order]]:
        user_id = user.id
        criteria = []
        if user.role == UserRole.CLIENT:
            criteria.append(Order.customer_id == user_id)
        elif user.role == UserRole.DELIVERY:
            criteria.append(Order.driver_id == user_id)
        elif user.role == UserRole.OWNER:
            owned = select(Restaurant.id).where(Restaurant.owner_id == user_id)
            criteria.append(Order.restaurant_id.in_(owned))
            if restaurant_id is not None:
                criteria.append(Order.restaurant_id == restaurant_id)
        else:
            return ServiceResult.failure(ErrorCode.NOT_ALLOWED, "You can't see orders")

        if status is not None:
            criteria.append(Order.status == status)

        try:
            orders = await self.orders.find(*criteria)
        except SQLAlchemyError:
            logger.exception(f"Could not list orders for user #{user_id}")
            return ServiceResult.failure(ErrorCode.INFRASTRUCTURE_FAILURE, "Could not get orders")
        return ServiceResult.success(orders)

    async def get_order(self, user: User, order_id: int) -> ServiceResult[Order]:
        try:
            order = await self.orders.get(order_id)
        except SQLAlchemyError:
            logger.exception(f"Could not load order #{order_id}")
            return ServiceResult.failure(ErrorCode.INFRASTRUCTURE_FAILURE, "Could not load order")

        if not order:
            return ServiceResult.failure(ErrorCode.NOT_FOUND, "Order not found")
        if not self.can_see_order(user, order):
            return ServiceResult.failure(ErrorCode.NOT_ALLOWED, "You can't see that order")
        return ServiceResult.success(order)

    async def edit_order(
        self,
        user: User,
        order_id: int,
        status: OrderStatus,
    ) -> ServiceResult[Order]:
        try:
            order = await self.orders.get(order_id)
            if not order:
                return ServiceResult.failure(ErrorCode.NOT_FOUND, "Order not found")

            if status not in ALLOWED_STATUS_BY_ROLE.get(user.role, frozenset()):
                return self._reject(user, order, status)

            if user.role == UserRole.OWNER:
                if not self.can_see_order(user, order):
                    return self._reject(user, order, status)
            elif user.role == UserRole.DELIVERY:
                if order.driver_id is not None and order.driver_id != user.id:
                    return self._reject(user, order, status)
                if order.driver_id is None:
                    order.driver_id = user.id
                    logger.info(f"Order #{order.id} claimed by driver #{user.id}")

            order.status = status
            await self.orders.save(order)
            await self.db.commit()
        except SQLAlchemyError:
            await self.db.rollback()
            logger.exception(f"Could not edit order #{order_id}")
            return ServiceResult.failure(ErrorCode.INFRASTRUCTURE_FAILURE, "Could not edit order")

        logger.info(f"Order #{order.id} moved to {status.value} by user #{user.id}")
        return ServiceResult.success(order)

    def _reject(self, user: User, order: Order, status: OrderStatus) -> ServiceResult[Order]:
        logger.warning(
            f"User #{user.id} ({user.role.value}) may not move order #{order.id} to {status.value}"
        )
        return ServiceResult.failure(ErrorCode.NOT_ALLOWED, "You can't do that.")
