"""Shared API dependencies for authentication and common functionality."""

from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session, sessionmaker

from projectflow_chat.core.security import decode_user_id
from projectflow_chat.db.session import get_db, get_session_factory
from projectflow_chat.models import User
from projectflow_chat.realtime.registry import ConnectionRegistry, get_connection_registry
from projectflow_chat.services.messages import MessageStore

# HTTP Bearer scheme for JWT authentication
bearer_scheme = HTTPBearer()

# Type alias for database session dependency
SessionDep = Annotated[Session, Depends(get_db)]

# Session factory for long-lived handlers that must not pin a connection
SessionFactoryDep = Annotated[sessionmaker, Depends(get_session_factory)]


def authenticate_token(db: Session, token: str | None) -> User | None:
    """Resolve a bearer token to a directory user.

    Args:
        db: Database session
        token: Encoded JWT, possibly missing

    Returns:
        The matching user, or None if the token is missing, invalid, or names
        an unknown user
    """
    if not token:
        return None
    user_id = decode_user_id(token)
    if user_id is None:
        return None
    return db.get(User, user_id)


def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(bearer_scheme)],
    db: SessionDep,
) -> User:
    """Get the current authenticated user from JWT token.

    Args:
        credentials: HTTP Bearer token credentials
        db: Database session

    Returns:
        User object for the authenticated user

    Raises:
        HTTPException: If token is invalid or user not found
    """
    user = authenticate_token(db, credentials.credentials)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
        )
    return user


# Type alias for current user dependency
CurrentUserDep = Annotated[User, Depends(get_current_user)]


def require_admin(current_user: CurrentUserDep) -> User:
    """Allow only administrators through."""
    if not current_user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Access denied. Admin privileges required.",
        )
    return current_user


AdminUserDep = Annotated[User, Depends(require_admin)]


def get_message_store(db: SessionDep) -> MessageStore:
    """Return a message store bound to the request's session."""
    return MessageStore(db)


MessageStoreDep = Annotated[MessageStore, Depends(get_message_store)]
RegistryDep = Annotated[ConnectionRegistry, Depends(get_connection_registry)]
