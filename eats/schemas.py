"""
Pydantic Schemas for Request/Response Validation

Every response extends ``CoreOutput``: an ``ok`` flag plus an optional
error message and machine-readable error code. Domain payload fields are
added per operation.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, EmailStr, Field, field_validator

from eats.core.results import ErrorCode
from eats.models import OrderStatus, UserRole


class ORMModel(BaseModel):
    class Config:
        from_attributes = True


# =============================================================================
# SHARED
# =============================================================================

class CoreOutput(ORMModel):
    """Envelope returned by every operation."""
    ok: bool
    error: Optional[str] = None
    error_code: Optional[ErrorCode] = None


class PaginationOutput(CoreOutput):
    total_pages: Optional[int] = None
    total_results: Optional[int] = None


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    database: str
    redis: str
    payment_gateway: str
    notification_service: str
    timestamp: datetime


# =============================================================================
# USERS
# =============================================================================

class CreateAccountInput(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1, max_length=128)
    role: UserRole


class LoginInput(BaseModel):
    email: EmailStr
    password: str


class EditProfileInput(BaseModel):
    email: Optional[EmailStr] = None
    password: Optional[str] = Field(None, min_length=1, max_length=128)


class VerifyEmailInput(BaseModel):
    code: str


class UserResponse(ORMModel):
    id: int
    email: str
    role: UserRole
    verified: bool


class LoginOutput(CoreOutput):
    token: Optional[str] = None


class UserProfileOutput(CoreOutput):
    user: Optional[UserResponse] = None


# =============================================================================
# CATALOG
# =============================================================================

class DishChoice(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    extra: Optional[float] = Field(None, ge=0)


class DishOption(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    choices: List[DishChoice] = Field(default_factory=list)
    extra: Optional[float] = Field(None, ge=0)


class CreateRestaurantInput(BaseModel):
    name: str = Field(..., min_length=2, max_length=100, examples=["Pizza Place"])
    address: str = Field(..., min_length=1, max_length=255)
    cover_image: Optional[str] = Field(None, max_length=500)
    category_name: str = Field(..., min_length=1, max_length=100, examples=["italian"])


class EditRestaurantInput(BaseModel):
    name: Optional[str] = Field(None, min_length=2, max_length=100)
    address: Optional[str] = Field(None, min_length=1, max_length=255)
    cover_image: Optional[str] = Field(None, max_length=500)
    category_name: Optional[str] = Field(None, min_length=1, max_length=100)

    @field_validator("name", "address", "category_name")
    @classmethod
    def not_null(cls, v):
        if v is None:
            raise ValueError("may be omitted but not null")
        return v


class CreateDishInput(BaseModel):
    restaurant_id: int
    name: str = Field(..., min_length=1, max_length=100, examples=["Margherita"])
    price: float = Field(..., ge=0, examples=[10])
    description: str = Field(default="", max_length=500)
    photo: Optional[str] = Field(None, max_length=500)
    options: List[DishOption] = Field(default_factory=list)


class EditDishInput(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    price: Optional[float] = Field(None, ge=0)
    description: Optional[str] = Field(None, max_length=500)
    photo: Optional[str] = Field(None, max_length=500)
    options: Optional[List[DishOption]] = None

    @field_validator("name", "price", "description")
    @classmethod
    def not_null(cls, v):
        if v is None:
            raise ValueError("may be omitted but not null")
        return v


class CategoryResponse(ORMModel):
    id: int
    name: str
    slug: str
    cover_image: Optional[str] = None
    restaurant_count: Optional[int] = None


class DishResponse(ORMModel):
    id: int
    name: str
    price: float
    photo: Optional[str] = None
    description: str
    options: Optional[List[DishOption]] = None
    restaurant_id: int


class RestaurantResponse(ORMModel):
    id: int
    name: str
    address: str
    cover_image: Optional[str] = None
    is_promoted: bool
    promoted_until: Optional[datetime] = None
    owner_id: int
    category: Optional[CategoryResponse] = None


class RestaurantDetailResponse(RestaurantResponse):
    menu: List[DishResponse] = Field(default_factory=list)


class RestaurantsOutput(PaginationOutput):
    results: List[RestaurantResponse] = Field(default_factory=list)


class RestaurantOutput(CoreOutput):
    restaurant: Optional[RestaurantDetailResponse] = None


class SearchRestaurantOutput(PaginationOutput):
    restaurants: List[RestaurantResponse] = Field(default_factory=list)


class AllCategoriesOutput(CoreOutput):
    categories: List[CategoryResponse] = Field(default_factory=list)


class CategoryOutput(PaginationOutput):
    category: Optional[CategoryResponse] = None
    restaurants: List[RestaurantResponse] = Field(default_factory=list)


# =============================================================================
# ORDERS
# =============================================================================

class OrderItemOptionInput(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    choice: Optional[str] = Field(None, max_length=100)


class CreateOrderItemInput(BaseModel):
    dish_id: int
    options: List[OrderItemOptionInput] = Field(default_factory=list)


class CreateOrderInput(BaseModel):
    restaurant_id: int
    items: List[CreateOrderItemInput] = Field(..., min_length=1)


class EditOrderInput(BaseModel):
    status: OrderStatus


class OrderItemResponse(ORMModel):
    id: int
    dish: Optional[DishResponse] = None
    options: Optional[List[OrderItemOptionInput]] = None


class OrderResponse(ORMModel):
    id: int
    status: OrderStatus
    total: Optional[float] = None
    customer_id: Optional[int] = None
    driver_id: Optional[int] = None
    restaurant_id: Optional[int] = None
    items: List[OrderItemResponse] = Field(default_factory=list)
    created_at: Optional[datetime] = None


class GetOrdersOutput(CoreOutput):
    orders: List[OrderResponse] = Field(default_factory=list)


class GetOrderOutput(CoreOutput):
    order: Optional[OrderResponse] = None


class MyRestaurantsOutput(PaginationOutput):
    restaurants: List[RestaurantResponse] = Field(default_factory=list)


class MyRestaurantOutput(CoreOutput):
    restaurant: Optional[RestaurantDetailResponse] = None
    orders: List[OrderResponse] = Field(default_factory=list)


# =============================================================================
# PAYMENTS & UPLOADS
# =============================================================================

class CreatePaymentInput(BaseModel):
    transaction_id: str = Field(..., min_length=1, max_length=100)
    restaurant_id: int


class PaymentResponse(ORMModel):
    id: int
    transaction_id: str
    restaurant_id: int
    created_at: Optional[datetime] = None


class GetPaymentsOutput(CoreOutput):
    payments: List[PaymentResponse] = Field(default_factory=list)


class UploadOutput(CoreOutput):
    url: Optional[str] = None
