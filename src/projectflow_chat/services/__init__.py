"""Business logic services for the ProjectFlow chat service."""

from .crypto import MessageCipher, get_message_cipher
from .messages import (
    MessageAuthorizationError,
    MessageError,
    MessageNotFoundError,
    MessageStore,
    MessageValidationError,
)

__all__ = [
    "MessageCipher",
    "get_message_cipher",
    "MessageStore",
    "MessageError",
    "MessageValidationError",
    "MessageNotFoundError",
    "MessageAuthorizationError",
]
