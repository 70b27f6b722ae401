# src/projectflow_chat/models/__init__.py
"""SQLAlchemy models for the ProjectFlow chat service."""

from .message import Message, MessageRead, MessageRecipient
from .user import ROLE_ADMIN, ROLE_USER, User

__all__ = [
    "Message", "MessageRead", "MessageRecipient",
    "User", "ROLE_ADMIN", "ROLE_USER",
]
