"""
User Account Service

Registration, login, profile edits and the email verification workflow.
"""

import logging
import uuid
from typing import Callable, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from eats.core.results import ErrorCode, ServiceResult
from eats.core.security import TokenService
from eats.models import User, UserRole, Verification
from eats.repositories import UserRepository, VerificationRepository

logger = logging.getLogger(__name__)

# (email, code) -> None; must not raise
VerificationMailer = Callable[[str, str], None]


class UserService:
    def __init__(
        self,
        db: AsyncSession,
        tokens: TokenService,
        mailer: VerificationMailer,
    ):
        self.db = db
        self.tokens = tokens
        self.mailer = mailer
        self.users = UserRepository(db)
        self.verifications = VerificationRepository(db)

    async def _issue_verification(self, user: User) -> Verification:
        previous = await self.verifications.find_one(Verification.user_id == user.id)
        if previous:
            await self.verifications.delete(previous)
        return await self.verifications.save(
            Verification(user=user, code=uuid.uuid4().hex)
        )

    async def create_account(
        self,
        email: str,
        password: str,
        role: UserRole,
    ) -> ServiceResult[User]:
        try:
            if await self.users.find_one(User.email == email):
                return ServiceResult.failure(
                    ErrorCode.ALREADY_EXISTS,
                    "User with input email already exists.",
                )
            user = await self.users.save(User(email=email, password=password, role=role))
            verification = await self._issue_verification(user)
            await self.db.commit()
        except IntegrityError:
            # Lost a race against a signup with the same email
            await self.db.rollback()
            logger.info(f"Signup for {email} collided with an existing account")
            return ServiceResult.failure(
                ErrorCode.ALREADY_EXISTS,
                "User with input email already exists.",
            )
        except SQLAlchemyError:
            await self.db.rollback()
            logger.exception(f"Could not create account for {email}")
            return ServiceResult.failure(ErrorCode.INFRASTRUCTURE_FAILURE, "Couldn't create User")

        logger.info(f"Account #{user.id} created ({role.value})")
        self.mailer(user.email, verification.code)
        return ServiceResult.success(user)

    async def login(self, email: str, password: str) -> ServiceResult[str]:
        try:
            user = await self.users.find_one(User.email == email)
        except SQLAlchemyError:
            logger.exception("Login lookup failed")
            return ServiceResult.failure(ErrorCode.INFRASTRUCTURE_FAILURE, "Couldn't log in")

        if not user:
            return ServiceResult.failure(ErrorCode.NOT_FOUND, "User not found")
        if not user.check_password(password):
            return ServiceResult.failure(ErrorCode.WRONG_PASSWORD, "Wrong Password")
        return ServiceResult.success(self.tokens.sign({"id": user.id}))

    async def find_by_id(self, user_id: int) -> ServiceResult[User]:
        try:
            user = await self.users.get(user_id)
        except SQLAlchemyError:
            logger.exception(f"Could not load user #{user_id}")
            return ServiceResult.failure(ErrorCode.INFRASTRUCTURE_FAILURE, "Couldn't load User")
        if not user:
            return ServiceResult.failure(ErrorCode.NOT_FOUND, "User not found")
        return ServiceResult.success(user)

    async def edit_profile(
        self,
        user_id: int,
        email: Optional[str] = None,
        password: Optional[str] = None,
    ) -> ServiceResult[User]:
        verification = None
        try:
            user = await self.users.get(user_id)
            if not user:
                return ServiceResult.failure(ErrorCode.NOT_FOUND, "User not found")

            if email and email != user.email:
                if await self.users.find_one(User.email == email):
                    return ServiceResult.failure(
                        ErrorCode.ALREADY_EXISTS,
                        "User with input email already exists.",
                    )
                user.email = email
                user.verified = False
                verification = await self._issue_verification(user)
            if password:
                user.password = password

            await self.users.save(user)
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            logger.info(f"Email change of user #{user_id} collided with an existing account")
            return ServiceResult.failure(
                ErrorCode.ALREADY_EXISTS,
                "User with input email already exists.",
            )
        except SQLAlchemyError:
            await self.db.rollback()
            logger.exception(f"Could not update profile of user #{user_id}")
            return ServiceResult.failure(ErrorCode.INFRASTRUCTURE_FAILURE, "Couldn't update profile")

        if verification:
            self.mailer(user.email, verification.code)
        return ServiceResult.success(user)

    async def verify_email(self, code: str) -> ServiceResult[User]:
        try:
            verification = await self.verifications.find_one(Verification.code == code)
            if not verification:
                return ServiceResult.failure(ErrorCode.NOT_FOUND, "Verification not found.")

            user = verification.user
            user.verified = True
            await self.users.save(user)
            await self.verifications.delete(verification)
            await self.db.commit()
        except SQLAlchemyError:
            await self.db.rollback()
            logger.exception("Could not verify email")
            return ServiceResult.failure(ErrorCode.INFRASTRUCTURE_FAILURE, "Could not verify email.")

        logger.info(f"User #{user.id} verified {user.email}")
        return ServiceResult.success(user)
