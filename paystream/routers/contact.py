import logging

from fastapi import APIRouter, Depends

from paystream.core.dependencies import get_contact_inbox
from paystream.models.contact_schemas import ContactRequest, ContactResponse
from paystream.models.payment_schemas import ErrorResponse
from paystream.services.contact_inbox import ContactInbox

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("", response_model=ContactResponse, responses={400: {"model": ErrorResponse}})
async def submit_contact(
    request: ContactRequest,
    inbox: ContactInbox = Depends(get_contact_inbox),
):
    """Store a contact form submission"""
    inbox.add(request)
    logger.info(f"Contact message received ({len(inbox)} total)")
    return ContactResponse()
