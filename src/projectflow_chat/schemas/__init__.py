"""
Pydantic schemas for API request/response models.

These schemas define the structure of API data for serialization and validation.
"""

from .message import MessageCreate, MessageResponse, MessageSender, UnreadCountResponse
from .user import UserCreate, UserResponse

__all__ = [
    "MessageCreate", "MessageResponse", "MessageSender", "UnreadCountResponse",
    "UserCreate", "UserResponse",
]
