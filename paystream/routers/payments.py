import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from paystream.core.config import Settings
from paystream.core.dependencies import get_broadcaster, get_ledger, get_settings
from paystream.models.payment_schemas import (
    ErrorResponse,
    PaymentCreateRequest,
    PaymentCreateResponse,
    PaymentDraft,
    PaymentListResponse,
)
from paystream.services.broadcaster import EventBroadcaster
from paystream.services.ledger import PaymentLedger

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "",
    response_model=PaymentCreateResponse,
    responses={400: {"model": ErrorResponse}},
)
async def create_payment(
    request: PaymentCreateRequest,
    ledger: PaymentLedger = Depends(get_ledger),
    broadcaster: EventBroadcaster = Depends(get_broadcaster),
    settings: Settings = Depends(get_settings),
):
    """
    Record a payment confirmation
    Stores the payment and pushes it to every live viewer
    """
    if request.amount > settings.PAYMENT_MAX_AMOUNT:
        return JSONResponse(
            status_code=400,
            content={
                "ok": False,
                "errors": [
                    f"amount: Input should be less than or equal to {settings.PAYMENT_MAX_AMOUNT:g}"
                ],
            },
        )

    record = ledger.append(PaymentDraft(
        name=request.full_name,
        method=request.method,
        amount=request.amount,
    ))

    # push to live stream
    delivered = broadcaster.publish("payment", record.model_dump(mode="json"))
    logger.info(f"Payment recorded ({record.method.value}, {record.amount:g}); pushed to {delivered} viewers")

    return PaymentCreateResponse(payment=record)


@router.get("", response_model=PaymentListResponse)
async def list_payments(
    limit: Optional[int] = Query(None, ge=0, description="Number of payments to return (0 or omitted: default, capped at 200)"),
    ledger: PaymentLedger = Depends(get_ledger),
    settings: Settings = Depends(get_settings),
):
    """List the most recent payments, newest first"""
    return PaymentListResponse(payments=ledger.recent(limit or settings.PAYMENTS_DEFAULT_LIMIT))
