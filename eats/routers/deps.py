"""
Request dependencies: database session, authenticated user and the
role guard applied ahead of every role-gated route.
"""

import logging
from typing import Callable, Optional

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from eats.core.security import InvalidTokenError, TokenService, get_token_service
from eats.database import get_db
from eats.models import User, UserRole
from eats.services.gateway import BasePaymentGateway, get_payment_gateway
from eats.services.uploads import UploadService
from eats.services.users import VerificationMailer
from eats.tasks import queue_verification_email

logger = logging.getLogger(__name__)

ANY_ROLE = "Any"


def get_tokens() -> TokenService:
    return get_token_service()


def get_mailer() -> VerificationMailer:
    return queue_verification_email


def get_gateway() -> BasePaymentGateway:
    return get_payment_gateway()


def get_uploads() -> UploadService:
    return UploadService()


async def get_current_user(
    x_jwt: Optional[str] = Header(None, alias="x-jwt"),
    db: AsyncSession = Depends(get_db),
    tokens: TokenService = Depends(get_tokens),
) -> Optional[User]:
    """Resolve the user behind the ``x-jwt`` header, or None."""
    if not x_jwt:
        return None
    try:
        payload = tokens.verify(x_jwt)
    except InvalidTokenError as e:
        logger.debug(f"Rejected token: {e}")
        return None

    user_id = payload.get("id")
    if not isinstance(user_id, int):
        return None
    return await db.get(User, user_id)


def require_role(*roles: str) -> Callable:
    """
    Build a dependency admitting only authenticated users whose role is
    in ``roles``. ``"Any"`` admits every authenticated user.
    """
    allowed = set(roles)

    async def guard(user: Optional[User] = Depends(get_current_user)) -> User:
        if user is None:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden resource")
        if ANY_ROLE not in allowed and user.role.value not in allowed:
            logger.info(f"User #{user.id} ({user.role.value}) blocked, requires {sorted(allowed)}")
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden resource")
        return user

    return guard


any_user = require_role(ANY_ROLE)
client_only = require_role(UserRole.CLIENT.value)
owner_only = require_role(UserRole.OWNER.value)
owner_or_delivery = require_role(UserRole.OWNER.value, UserRole.DELIVERY.value)
