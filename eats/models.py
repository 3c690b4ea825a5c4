"""
SQLAlchemy Database Models

Marketplace entities:
- Users (clients, restaurant owners, delivery drivers) and email verification
- Restaurants, categories and dishes
- Orders and their items
- Promotion payments
"""

import enum

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Integer,
    JSON,
    String,
    Table,
)
from sqlalchemy.orm import relationship, validates
from sqlalchemy.sql import func

from eats.core.security import hash_password, verify_password
from eats.database import Base


class UserRole(str, enum.Enum):
    """Roles persisted on a user."""
    CLIENT = "Client"
    OWNER = "Owner"
    DELIVERY = "Delivery"


class OrderStatus(str, enum.Enum):
    """Order status workflow: Pending -> Cooking -> Cooked -> PickedUp -> Deleverd."""
    PENDING = "Pending"
    COOKING = "Cooking"
    COOKED = "Cooked"
    PICKED_UP = "PickedUp"
    DELIVERED = "Deleverd"


class CoreEntity:
    """Identity and timestamp columns shared by every table."""
    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
    )

    # Load server generated timestamps right after INSERT/UPDATE
    __mapper_args__ = {"eager_defaults": True}


# =============================================================================
# USERS
# =============================================================================

class User(CoreEntity, Base):
    __tablename__ = "users"

    email = Column(String(255), nullable=False, unique=True, index=True)
    password = Column(String(255), nullable=False)
    role = Column(Enum(UserRole), nullable=False)
    verified = Column(Boolean, default=False, nullable=False)

    @validates("password")
    def _hash_password(self, key, password: str) -> str:
        # Every assignment stores a fresh hash, never the plain text
        return hash_password(password)

    def check_password(self, password: str) -> bool:
        return verify_password(password, self.password)

    def __repr__(self):
        return f"<User #{self.id} - {self.email} - {self.role.value}>"


class Verification(CoreEntity, Base):
    __tablename__ = "verifications"

    code = Column(String(64), nullable=False, unique=True, index=True)
    user_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )

    user = relationship("User", lazy="selectin")


# =============================================================================
# CATALOG
# =============================================================================

class Category(CoreEntity, Base):
    __tablename__ = "categories"

    name = Column(String(100), nullable=False, unique=True)
    slug = Column(String(100), nullable=False, unique=True, index=True)
    cover_image = Column(String(500), nullable=True)

    def __repr__(self):
        return f"<Category {self.slug}>"


class Restaurant(CoreEntity, Base):
    __tablename__ = "restaurants"

    name = Column(String(100), nullable=False, index=True)
    cover_image = Column(String(500), nullable=True)
    address = Column(String(255), nullable=False)

    is_promoted = Column(Boolean, default=False, nullable=False, index=True)
    promoted_until = Column(DateTime(timezone=True), nullable=True)

    category_id = Column(
        Integer,
        ForeignKey("categories.id", ondelete="SET NULL"),
        nullable=True,
    )
    owner_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    category = relationship("Category", lazy="selectin")
    owner = relationship("User", lazy="selectin")
    menu = relationship(
        "Dish",
        back_populates="restaurant",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="Dish.id",
    )

    def __repr__(self):
        return f"<Restaurant #{self.id} - {self.name}>"


class Dish(CoreEntity, Base):
    __tablename__ = "dishes"

    name = Column(String(100), nullable=False)
    price = Column(Float, nullable=False)
    photo = Column(String(500), nullable=True)
    description = Column(String(500), nullable=False, default="")
    # [{"name": ..., "extra": ..., "choices": [{"name": ..., "extra": ...}]}]
    options = Column(JSON, nullable=True)

    restaurant_id = Column(
        Integer,
        ForeignKey("restaurants.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    restaurant = relationship("Restaurant", back_populates="menu", lazy="selectin")

    def __repr__(self):
        return f"<Dish #{self.id} - {self.name} - {self.price}>"


# =============================================================================
# ORDERS
# =============================================================================

order_items_link = Table(
    "order_items_link",
    Base.metadata,
    Column("order_id", ForeignKey("orders.id", ondelete="CASCADE"), primary_key=True),
    Column("order_item_id", ForeignKey("order_items.id", ondelete="CASCADE"), primary_key=True),
)


class OrderItem(CoreEntity, Base):
    __tablename__ = "order_items"

    dish_id = Column(
        Integer,
        ForeignKey("dishes.id", ondelete="CASCADE"),
        nullable=True,
    )
    # [{"name": ..., "choice": ...}] stored as sent by the client
    options = Column(JSON, nullable=True)

    dish = relationship("Dish", lazy="selectin")


class Order(CoreEntity, Base):
    __tablename__ = "orders"

    customer_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    driver_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    restaurant_id = Column(
        Integer,
        ForeignKey("restaurants.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    total = Column(Float, nullable=True)
    status = Column(
        Enum(OrderStatus),
        default=OrderStatus.PENDING,
        nullable=False,
        index=True,
    )

    customer = relationship("User", foreign_keys=[customer_id], lazy="selectin")
    driver = relationship("User", foreign_keys=[driver_id], lazy="selectin")
    restaurant = relationship("Restaurant", lazy="selectin")
    items = relationship(
        "OrderItem",
        secondary=order_items_link,
        lazy="selectin",
        order_by="OrderItem.id",
    )

    def __repr__(self):
        return f"<Order #{self.id} - {self.status.value}>"


# =============================================================================
# PAYMENTS
# =============================================================================

class Payment(CoreEntity, Base):
    __tablename__ = "payments"

    transaction_id = Column(String(100), nullable=False, index=True)
    user_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    restaurant_id = Column(
        Integer,
        ForeignKey("restaurants.id", ondelete="CASCADE"),
        nullable=False,
    )

    restaurant = relationship("Restaurant", lazy="selectin")

    def __repr__(self):
        return f"<Payment {self.transaction_id} - restaurant #{self.restaurant_id}>"
