from datetime import datetime

from pydantic import BaseModel, Field


class ContactRequest(BaseModel):
    """Request model for the contact form"""
    name: str = Field(..., min_length=2, max_length=80)
    email: str = Field(
        ...,
        max_length=120,
        pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$",
        examples=["neha@example.com"]
    )
    message: str = Field(..., min_length=5, max_length=2000)


class ContactMessage(ContactRequest):
    """Stored contact form submission"""
    received_at: datetime = Field(default_factory=datetime.now)


class ContactResponse(BaseModel):
    ok: bool = True
    message: str = "Thanks for reaching out!"
