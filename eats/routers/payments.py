from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from eats.database import get_db
from eats.models import User
from eats.routers.deps import get_gateway, owner_only
from eats.schemas import CoreOutput, CreatePaymentInput, GetPaymentsOutput
from eats.services.gateway import BasePaymentGateway
from eats.services.payments import PaymentService

router = APIRouter(prefix="/payments", tags=["Payments"])


def get_payment_service(
    db: AsyncSession = Depends(get_db),
    gateway: BasePaymentGateway = Depends(get_gateway),
) -> PaymentService:
    return PaymentService(db, gateway)


@router.post("", response_model=CoreOutput, summary="createPayment")
async def create_payment(
    data: CreatePaymentInput,
    owner: User = Depends(owner_only),
    service: PaymentService = Depends(get_payment_service),
) -> CoreOutput:
    result = await service.create_payment(owner, data.transaction_id, data.restaurant_id)
    return CoreOutput(**result.to_dict())


@router.get("", response_model=GetPaymentsOutput, summary="getPayments")
async def get_payments(
    owner: User = Depends(owner_only),
    service: PaymentService = Depends(get_payment_service),
) -> GetPaymentsOutput:
    result = await service.get_payments(owner)
    return GetPaymentsOutput(**result.to_dict(), payments=result.value or [])
