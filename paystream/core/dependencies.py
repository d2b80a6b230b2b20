from fastapi import Request

from paystream.core.config import Settings
from paystream.services.broadcaster import EventBroadcaster
from paystream.services.contact_inbox import ContactInbox
from paystream.services.ledger import PaymentLedger
from paystream.services.merchant_session import MerchantSessionValidator


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_ledger(request: Request) -> PaymentLedger:
    return request.app.state.ledger


def get_broadcaster(request: Request) -> EventBroadcaster:
    return request.app.state.broadcaster


def get_session_validator(request: Request) -> MerchantSessionValidator:
    return request.app.state.session_validator


def get_contact_inbox(request: Request) -> ContactInbox:
    return request.app.state.contact_inbox
