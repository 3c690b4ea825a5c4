"""
Promotion Payment Service

Owners pay to promote a restaurant. A verified payment marks the
restaurant as promoted for ``promotion_days``; promoted restaurants are
listed first until the promotion expires.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from eats.core.config import get_settings
from eats.core.results import ErrorCode, ServiceResult
from eats.models import Payment, Restaurant, User
from eats.repositories import PaymentRepository, RestaurantRepository
from eats.services.gateway import BasePaymentGateway, get_payment_gateway

logger = logging.getLogger(__name__)


class PaymentService:
    def __init__(
        self,
        db: AsyncSession,
        gateway: Optional[BasePaymentGateway] = None,
    ):
        self.db = db
        self.gateway = gateway or get_payment_gateway()
        self.promotion_days = get_settings().promotion_days
        self.payments = PaymentRepository(db)
        self.restaurants = RestaurantRepository(db)

    async def create_payment(
        self,
        owner: User,
        transaction_id: str,
        restaurant_id: int,
    ) -> ServiceResult[Payment]:
        try:
            restaurant = await self.restaurants.get(restaurant_id)
            if not restaurant:
                return ServiceResult.failure(ErrorCode.NOT_FOUND, "Restaurant not found.")
            if restaurant.owner_id != owner.id:
                return ServiceResult.failure(ErrorCode.NOT_OWNER, "You are not allowed to do this.")

            transaction = await self.gateway.verify_transaction(transaction_id)
            if not transaction.success:
                logger.warning(
                    f"Payment {transaction_id} for restaurant #{restaurant_id} rejected: "
                    f"{transaction.error_message}"
                )
                return ServiceResult.failure(
                    ErrorCode.NOT_ALLOWED,
                    transaction.error_message or "Payment was not completed.",
                )

            payment = await self.payments.save(Payment(
                transaction_id=transaction_id,
                user_id=owner.id,
                restaurant=restaurant,
            ))
            restaurant.is_promoted = True
            restaurant.promoted_until = datetime.now(timezone.utc) + timedelta(days=self.promotion_days)
            await self.restaurants.save(restaurant)
            await self.db.commit()
        except SQLAlchemyError:
            await self.db.rollback()
            logger.exception(f"Could not record payment {transaction_id}")
            return ServiceResult.failure(ErrorCode.INFRASTRUCTURE_FAILURE, "Could not create payment.")

        logger.info(
            f"Restaurant #{restaurant.id} promoted until {restaurant.promoted_until:%Y-%m-%d} "
            f"({self.gateway.provider_name} {transaction_id})"
        )
        return ServiceResult.success(payment)

    async def get_payments(self, owner: User) -> ServiceResult[list[Payment]]:
        owner_id = owner.id
        try:
            payments = await self.payments.find(Payment.user_id == owner_id)
        except SQLAlchemyError:
            logger.exception(f"Could not load payments of owner #{owner_id}")
            return ServiceResult.failure(ErrorCode.INFRASTRUCTURE_FAILURE, "Could not load payments.")
        return ServiceResult.success(payments)

    async def expire_promotions(self, now: datetime) -> ServiceResult[int]:
        """Clear the promotion of every restaurant whose promotion ended before ``now``."""
        try:
            expired = await self.restaurants.find(
                Restaurant.is_promoted.is_(True),
                Restaurant.promoted_until < now,
            )
            for restaurant in expired:
                restaurant.is_promoted = False
                restaurant.promoted_until = None
            await self.db.commit()
        except SQLAlchemyError:
            await self.db.rollback()
            logger.exception("Could not expire promotions")
            return ServiceResult.failure(ErrorCode.INFRASTRUCTURE_FAILURE, "Could not expire promotions.")

        if expired:
            logger.info(f"Expired promotion of {len(expired)} restaurant(s)")
        return ServiceResult.success(len(expired))
