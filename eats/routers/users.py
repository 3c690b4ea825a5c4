from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from eats.core.security import TokenService
from eats.database import get_db
from eats.models import User
from eats.routers.deps import any_user, get_mailer, get_tokens
from eats.schemas import (
    CoreOutput,
    CreateAccountInput,
    EditProfileInput,
    LoginInput,
    LoginOutput,
    UserProfileOutput,
    UserResponse,
    VerifyEmailInput,
)
from eats.services.users import UserService, VerificationMailer

router = APIRouter(prefix="/users", tags=["Users"])


def get_user_service(
    db: AsyncSession = Depends(get_db),
    tokens: TokenService = Depends(get_tokens),
    mailer: VerificationMailer = Depends(get_mailer),
) -> UserService:
    return UserService(db, tokens, mailer)


@router.post("", response_model=CoreOutput, summary="createAccount")
async def create_account(
    data: CreateAccountInput,
    service: UserService = Depends(get_user_service),
) -> CoreOutput:
    result = await service.create_account(data.email, data.password, data.role)
    return CoreOutput(**result.to_dict())


@router.post("/login", response_model=LoginOutput, summary="login")
async def login(
    data: LoginInput,
    service: UserService = Depends(get_user_service),
) -> LoginOutput:
    result = await service.login(data.email, data.password)
    return LoginOutput(**result.to_dict(), token=result.value)


@router.get("/me", response_model=UserResponse, summary="me")
async def me(user: User = Depends(any_user)) -> UserResponse:
    return UserResponse.model_validate(user)


@router.patch("/me", response_model=CoreOutput, summary="editProfile")
async def edit_profile(
    data: EditProfileInput,
    user: User = Depends(any_user),
    service: UserService = Depends(get_user_service),
) -> CoreOutput:
    result = await service.edit_profile(user.id, email=data.email, password=data.password)
    return CoreOutput(**result.to_dict())


@router.post("/verify-email", response_model=CoreOutput, summary="verifyEmail")
async def verify_email(
    data: VerifyEmailInput,
    service: UserService = Depends(get_user_service),
) -> CoreOutput:
    result = await service.verify_email(data.code)
    return CoreOutput(**result.to_dict())


@router.get("/{user_id}", response_model=UserProfileOutput, summary="userProfile")
async def user_profile(
    user_id: int,
    user: User = Depends(any_user),
    service: UserService = Depends(get_user_service),
) -> UserProfileOutput:
    result = await service.find_by_id(user_id)
    return UserProfileOutput(**result.to_dict(), user=result.value)
