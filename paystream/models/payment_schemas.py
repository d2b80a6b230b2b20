from enum import Enum
from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_serializer


class PaymentMethod(str, Enum):
    """Payment methods accepted by the confirmation form"""
    QR = "QR"
    APPLE_PAY = "Apple Pay"
    BANK_TRANSFER = "Bank Transfer"


class PaymentCreateRequest(BaseModel):
    """Request model for submitting a payment confirmation"""
    full_name: str = Field(
        ...,
        alias="fullName",
        min_length=2,
        max_length=80,
        description="Name of the payer",
        examples=["Priya N."]
    )
    method: PaymentMethod = Field(
        ...,
        description="How the payment was made",
        examples=["QR", "Apple Pay", "Bank Transfer"]
    )
    amount: float = Field(
        ...,
        ge=1,
        allow_inf_nan=False,
        description="Amount paid; the upper bound is PAYMENT_MAX_AMOUNT",
        examples=[15, 20]
    )

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "fullName": "Priya N.",
                "method": "QR",
                "amount": 15
            }
        }
    )


class PaymentDraft(BaseModel):
    """Validated payment waiting for the ledger to stamp it"""
    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1)
    method: PaymentMethod
    amount: float = Field(..., gt=0)

    @field_serializer("amount")
    def serialize_amount(self, amount: float) -> Union[int, float]:
        # Whole amounts go out as 15, not 15.0
        return int(amount) if amount.is_integer() else amount


class PaymentRecord(PaymentDraft):
    """Stored payment confirmation"""
    ts: int = Field(
        ...,
        description="Creation time in milliseconds since the epoch"
    )

    model_config = ConfigDict(
        frozen=True,
        json_schema_extra={
            "example": {
                "name": "Priya N.",
                "method": "QR",
                "amount": 15,
                "ts": 1718000000000
            }
        }
    )


class PaymentCreateResponse(BaseModel):
    ok: bool = True
    payment: PaymentRecord


class PaymentListResponse(BaseModel):
    ok: bool = True
    payments: List[PaymentRecord]


class ErrorResponse(BaseModel):
    """Generic error response"""
    ok: bool = False
    error: Optional[str] = Field(
        None,
        description="Error message"
    )
    errors: Optional[List[str]] = Field(
        None,
        description="Field-level validation messages"
    )
