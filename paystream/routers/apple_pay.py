from fastapi import APIRouter, Depends, Request, Response

from paystream.core.dependencies import get_session_validator
from paystream.models.payment_schemas import ErrorResponse
from paystream.services.merchant_session import MerchantSessionValidator

router = APIRouter()


@router.post(
    "/validate-session",
    responses={
        400: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
        501: {"model": ErrorResponse},
    },
)
async def validate_session(
    request: Request,
    validator: MerchantSessionValidator = Depends(get_session_validator),
):
    """
    Apple Pay merchant validation proxy
    The frontend posts { validationURL } from ApplePaySession.onvalidatemerchant
    and gets back the merchant session signed by Apple
    """
    try:
        body = await request.json()
    except ValueError:
        body = None

    validation_url = body.get("validationURL") if isinstance(body, dict) else None
    if validation_url is not None and not isinstance(validation_url, str):
        validation_url = None

    session = await validator.validate(validation_url)
    return Response(content=session, media_type="application/json")
