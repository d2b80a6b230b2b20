from typing import List

from paystream.models.contact_schemas import ContactMessage, ContactRequest


class ContactInbox:
    """In-memory store for contact form submissions"""

    def __init__(self):
        self._messages: List[ContactMessage] = []

    def __len__(self) -> int:
        return len(self._messages)

    def add(self, request: ContactRequest) -> ContactMessage:
        message = ContactMessage(**request.model_dump())
        self._messages.append(message)
        return message

    def all(self) -> List[ContactMessage]:
        return list(self._messages)
