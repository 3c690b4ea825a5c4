from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from eats.database import get_db
from eats.models import OrderStatus, User
from eats.routers.deps import any_user, client_only, owner_or_delivery
from eats.schemas import (
    CoreOutput,
    CreateOrderInput,
    EditOrderInput,
    GetOrderOutput,
    GetOrdersOutput,
)
from eats.services.orders import OrderService

router = APIRouter(prefix="/orders", tags=["Orders"])


def get_order_service(db: AsyncSession = Depends(get_db)) -> OrderService:
    return OrderService(db)


@router.post("", response_model=CoreOutput, summary="createOrder")
async def create_order(
    data: CreateOrderInput,
    customer: User = Depends(client_only),
    service: OrderService = Depends(get_order_service),
) -> CoreOutput:
    result = await service.create_order(customer, data)
    return CoreOutput(**result.to_dict())


@router.get("", response_model=GetOrdersOutput, summary="getOrders")
async def get_orders(
    status: Optional[OrderStatus] = Query(None),
    restaurant_id: Optional[int] = Query(None),
    user: User = Depends(any_user),
    service: OrderService = Depends(get_order_service),
) -> GetOrdersOutput:
    result = await service.get_orders(user, status=status, restaurant_id=restaurant_id)
    return GetOrdersOutput(**result.to_dict(), orders=result.value or [])


@router.get("/{order_id}", response_model=GetOrderOutput, summary="getOrder")
async def get_order(
    order_id: int,
    user: User = Depends(any_user),
    service: OrderService = Depends(get_order_service),
) -> GetOrderOutput:
    result = await service.get_order(user, order_id)
    return GetOrderOutput(**result.to_dict(), order=result.value)


@router.patch("/{order_id}", response_model=CoreOutput, summary="editOrder")
async def edit_order(
    order_id: int,
    data: EditOrderInput,
    user: User = Depends(owner_or_delivery),
    service: OrderService = Depends(get_order_service),
) -> CoreOutput:
    result = await service.edit_order(user, order_id, data.status)
    return CoreOutput(**result.to_dict())
