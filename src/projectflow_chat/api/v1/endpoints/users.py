"""User directory endpoints."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, Query, status
from sqlalchemy.exc import IntegrityError

from projectflow_chat.api.v1.dependencies import AdminUserDep, CurrentUserDep, SessionDep
from projectflow_chat.models import User
from projectflow_chat.schemas.user import UserCreate, UserResponse
from projectflow_chat.services import users as user_directory

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/", response_model=list[UserResponse])
async def list_users(
    _current_user: CurrentUserDep,
    db: SessionDep,
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
) -> list[User]:
    """List directory entries."""
    return list(user_directory.get_users(db, skip=skip, limit=limit))


@router.get("/me", response_model=UserResponse)
async def get_me(current_user: CurrentUserDep) -> User:
    """Return the caller's own directory entry."""
    return current_user


@router.post("/", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def create_user(
    payload: UserCreate,
    _admin: AdminUserDep,
    db: SessionDep,
) -> User:
    """Add a user to the directory (administrators only).

    New users only receive messages sent after they were added.
    """
    if user_directory.get_user_by_email(db, payload.email) is not None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="User already exists",
        )
    try:
        return user_directory.create_user(
            db, payload.name, payload.email, admin=payload.role == "admin"
        )
    except IntegrityError as err:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="User already exists",
        ) from err
