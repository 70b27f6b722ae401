"""Persistence and queries for global chat messages.

The store owns every rule about a message's lifetime:

- recipients are snapshotted from the user directory when the message is
  created and never recomputed;
- the sender is always the first entry in the read markers;
- read markers are only ever inserted, so the read set never shrinks;
- only the sender or an administrator may delete a message.

Cipher trouble never escapes this module. A message whose encryption failed
is stored with ``is_encrypted=False``, and a ciphertext that no longer
decrypts is read back as the stored plaintext.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from sqlalchemy import desc, exists, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from projectflow_chat.core.settings import settings
from projectflow_chat.models import Message, MessageRead, MessageRecipient
from projectflow_chat.services import users as user_directory
from projectflow_chat.services.crypto import MessageCipher, get_message_cipher

logger = logging.getLogger(__name__)


class MessageError(Exception):
    """Base class for message store failures surfaced to callers."""


class MessageValidationError(MessageError):
    """Raised when a message body is rejected before persistence."""


class MessageNotFoundError(MessageError):
    """Raised when the referenced message does not exist."""


class MessageAuthorizationError(MessageError):
    """Raised when the caller may not act on the referenced message."""


class MessageStore:
    """Message persistence bound to a database session."""

    def __init__(self, db: Session, cipher: MessageCipher | None = None) -> None:
        self.db = db
        self.cipher = cipher or get_message_cipher()

    def create_message(self, sender_id: int, text: str | None) -> Message:
        """Persist a new message from ``sender_id`` addressed to everyone else.

        Raises:
            MessageValidationError: If the body is empty after trimming or too long
        """
        if text is None or not text.strip():
            raise MessageValidationError("Text is required")
        if len(text) > settings.message_max_length:
            raise MessageValidationError(
                f"Text must be at most {settings.message_max_length} characters"
            )

        recipient_ids = user_directory.list_user_ids_except(self.db, sender_id)
        encrypted_text = self.cipher.encrypt(text)

        message = Message(
            text=text,
            encrypted_text=encrypted_text,
            is_encrypted=encrypted_text is not None,
            sender_id=sender_id,
        )
        message.recipients = [MessageRecipient(user_id=user_id) for user_id in recipient_ids]
        message.read_markers = [MessageRead(user_id=sender_id)]

        self.db.add(message)
        self.db.commit()
        self.db.refresh(message)

        logger.info(
            "Message %s created by user %s for %d recipients (encrypted=%s)",
            message.id,
            sender_id,
            len(recipient_ids),
            message.is_encrypted,
        )
        return message

    def get_message(self, message_id: int) -> Message:
        """Return a message or raise :class:`MessageNotFoundError`."""
        message = self.db.get(Message, message_id)
        if message is None:
            raise MessageNotFoundError("Message not found")
        return message

    def list_recent(self, reader_id: int, limit: int | None = None) -> Sequence[Message]:
        """Return the newest messages and mark them read for ``reader_id``."""
        limit = settings.message_list_limit if limit is None else max(1, limit)
        messages = (
            self.db.query(Message)
            .options(selectinload(Message.read_markers))
            .order_by(desc(Message.date), desc(Message.id))
            .limit(limit)
            .all()
        )

        unread = [message for message in messages if reader_id not in message.read_by_ids]
        if unread:
            for message in unread:
                message.read_markers.append(MessageRead(user_id=reader_id))
            try:
                self.db.commit()
            except IntegrityError:
                # Another request recorded some of the same markers first.
                self.db.rollback()
                for message in unread:
                    self._insert_read_marker(message.id, reader_id)
        return messages

    def mark_read(self, message_id: int, user_id: int) -> Message:
        """Record that ``user_id`` has read the message.

        Raises:
            MessageNotFoundError: If the message does not exist
            MessageAuthorizationError: If the user is not a recipient
        """
        message = self.get_message(message_id)
        if user_id not in message.recipient_ids:
            raise MessageAuthorizationError("User not authorized")

        if user_id not in message.read_by_ids:
            message.read_markers.append(MessageRead(user_id=user_id))
            try:
                self.db.commit()
            except IntegrityError:
                # A concurrent request recorded the same marker first.
                self.db.rollback()
        return message

    def count_unread(self, user_id: int) -> int:
        """Count messages addressed to ``user_id`` that it has not read."""
        already_read = (
            exists()
            .where(MessageRead.message_id == MessageRecipient.message_id)
            .where(MessageRead.user_id == user_id)
        )
        count = (
            self.db.query(func.count(MessageRecipient.message_id))
            .filter(MessageRecipient.user_id == user_id, ~already_read)
            .scalar()
        )
        return int(count or 0)

    def delete_message(self, message_id: int, requester_id: int, requester_is_admin: bool) -> int:
        """Remove a message owned by the requester, or any message for admins.

        Returns:
            The id of the deleted message

        Raises:
            MessageNotFoundError: If the message does not exist
            MessageAuthorizationError: If the requester is neither sender nor admin
        """
        message = self.get_message(message_id)
        if not requester_is_admin and message.sender_id != requester_id:
            raise MessageAuthorizationError("User not authorized")

        self.db.delete(message)
        self.db.commit()
        logger.info("Message %s deleted by user %s", message_id, requester_id)
        return message_id

    def readable_text(self, message: Message) -> str:
        """Return the body to show readers, preferring the encrypted copy."""
        if message.is_encrypted and message.encrypted_text:
            decrypted = self.cipher.decrypt(message.encrypted_text)
            if decrypted:
                return decrypted
            logger.warning("Falling back to stored plaintext for message %s", message.id)
        return message.text

    def _insert_read_marker(self, message_id: int, user_id: int) -> None:
        self.db.add(MessageRead(message_id=message_id, user_id=user_id))
        try:
            self.db.commit()
        except IntegrityError:
            # Marker already present: marking read is idempotent.
            self.db.rollback()
