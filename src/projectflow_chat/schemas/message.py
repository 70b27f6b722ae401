"""Chat message Pydantic schemas."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from projectflow_chat.models import Message


class MessageCreate(BaseModel):
    """Schema for posting a message to the global chat."""

    text: str | None = Field(None, description="Message body; must not be blank")


class MessageSender(BaseModel):
    """Author details embedded in message payloads."""

    id: int
    name: str


class MessageResponse(BaseModel):
    """Message as returned by the API and pushed over WebSocket events.

    ``text`` is the readable body: the decrypted ciphertext when available,
    otherwise the stored plaintext.
    """

    id: int
    text: str
    encrypted_text: str | None
    is_encrypted: bool
    sender: MessageSender
    recipients: list[int]
    read_by: list[int]
    date: datetime

    @classmethod
    def from_message(cls, message: Message, text: str) -> MessageResponse:
        """Build a payload from a persisted message and its readable body."""
        return cls(
            id=message.id,
            text=text,
            encrypted_text=message.encrypted_text,
            is_encrypted=message.is_encrypted,
            sender=MessageSender(id=message.sender.id, name=message.sender.name),
            recipients=sorted(message.recipient_ids),
            read_by=sorted(message.read_by_ids),
            date=message.date,
        )


class UnreadCountResponse(BaseModel):
    """Unread message count for the calling user."""

    count: int = Field(..., ge=0)
