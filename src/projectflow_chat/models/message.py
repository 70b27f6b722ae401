# src/projectflow_chat/models/message.py
"""Models describing global chat messages and their read markers."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from projectflow_chat.db.session import Base
from projectflow_chat.db.time import utcnow

from .user import User


class Message(Base):
    """Chat message posted to the global room.

    The plaintext body is always kept. ``encrypted_text`` holds a ciphertext of
    the same body produced at creation time; ``is_encrypted`` is only set when
    that ciphertext is known to be valid.
    """

    __tablename__ = "chat_message"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    text: Mapped[str] = mapped_column(Text, nullable=False)
    encrypted_text: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_encrypted: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    sender_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("app_user.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        nullable=False,
        index=True,
    )

    sender: Mapped[User] = relationship("User", lazy="joined")
    # Frozen at creation: rows are only ever inserted together with the message.
    recipients: Mapped[list[MessageRecipient]] = relationship(
        "MessageRecipient",
        back_populates="message",
        cascade="all, delete-orphan",
    )
    # Append-only read markers.
    read_markers: Mapped[list[MessageRead]] = relationship(
        "MessageRead",
        back_populates="message",
        cascade="all, delete-orphan",
    )

    @property
    def recipient_ids(self) -> set[int]:
        """Return the ids of the users this message was addressed to."""
        return {link.user_id for link in self.recipients}

    @property
    def read_by_ids(self) -> set[int]:
        """Return the ids of the users who have read this message."""
        return {marker.user_id for marker in self.read_markers}


class MessageRecipient(Base):
    """Snapshot of one intended reader of a message."""

    __tablename__ = "chat_message_recipient"

    message_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("chat_message.id", ondelete="CASCADE"),
        primary_key=True,
    )
    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("app_user.id", ondelete="CASCADE"),
        primary_key=True,
        index=True,
    )

    message: Mapped[Message] = relationship("Message", back_populates="recipients")


class MessageRead(Base):
    """Read marker recording that a user acknowledged a message."""

    __tablename__ = "chat_message_read"

    message_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("chat_message.id", ondelete="CASCADE"),
        primary_key=True,
    )
    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("app_user.id", ondelete="CASCADE"),
        primary_key=True,
        index=True,
    )
    read_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    message: Mapped[Message] = relationship("Message", back_populates="read_markers")
