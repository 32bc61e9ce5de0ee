"""
User API endpoints.

Registration, login, logout-everywhere and account listing.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, BackgroundTasks, Query, status
from pydantic import EmailStr, Field

from poketeams.api.deps import CurrentUser, EmailServiceDep, SessionDep
from poketeams.api.schemas import CamelModel, PaginatedUsersResponse, UserResponse
from poketeams.config import DEFAULT_LIMIT, DEFAULT_PAGE
from poketeams.db.operations import get_user, list_users
from poketeams.models.failure import InvalidCredentialsError, NotFoundError
from poketeams.models.pagination import calculate_pagination_metadata, create_pagination_params
from poketeams.services.identity import (
    NewUserData,
    authenticate_user,
    invalidate_all_sessions,
    register_user,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["users"])

PASSWORD_MIN_LENGTH = 8


class RegisterRequest(CamelModel):
    """Request model for creating an account."""

    name: str = Field(..., min_length=1, description="First name")
    last_name: str = Field(..., min_length=1, description="Last name")
    email: EmailStr
    password: str = Field(..., min_length=PASSWORD_MIN_LENGTH)

    def to_new_user(self) -> NewUserData:
        return NewUserData(
            name=self.name,
            last_name=self.last_name,
            email=str(self.email),
            password=self.password,
        )


class RegisterResponse(CamelModel):
    user: UserResponse


class LoginRequest(CamelModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class LoginResponse(CamelModel):
    message: str
    token: str
    user: UserResponse


class LogoutResponse(CamelModel):
    message: str
    token_version: int


@router.post("", response_model=RegisterResponse, status_code=status.HTTP_201_CREATED)
async def create_user(
    request: RegisterRequest,
    session: SessionDep,
    background_tasks: BackgroundTasks,
    email_service: EmailServiceDep,
) -> RegisterResponse:
    """
    Register a new account.

    The welcome e-mail is sent after the response; its failure does not
    affect registration.
    """
    user = await register_user(session, request.to_new_user())
    background_tasks.add_task(email_service.send_welcome_email, user.email, user.name)
    return RegisterResponse(user=UserResponse.model_validate(user))


@router.post("/login", response_model=LoginResponse)
async def login(request: LoginRequest, session: SessionDep) -> LoginResponse:
    result = await authenticate_user(session, str(request.email), request.password)
    if not result.success or result.token is None or result.user is None:
        raise InvalidCredentialsError(result.message)

    return LoginResponse(
        message=result.message,
        token=result.token,
        user=UserResponse.model_validate(result.user),
    )


@router.post("/logout", response_model=LogoutResponse)
async def logout(session: SessionDep, user: CurrentUser) -> LogoutResponse:
    """Invalidate every token issued to the caller, including this one."""
    token_version = await invalidate_all_sessions(session, user.id)
    return LogoutResponse(
        message="All sessions have been invalidated",
        token_version=token_version,
    )


@router.get("", response_model=PaginatedUsersResponse)
async def get_users(
    session: SessionDep,
    _user: CurrentUser,
    page: Annotated[int, Query()] = DEFAULT_PAGE,
    limit: Annotated[int, Query()] = DEFAULT_LIMIT,
) -> PaginatedUsersResponse:
    """List accounts, newest first."""
    params = create_pagination_params(page, limit)
    users, total = await list_users(session, offset=params.offset, limit=params.limit)
    return PaginatedUsersResponse(
        data=[UserResponse.model_validate(u) for u in users],
        pagination=calculate_pagination_metadata(params.page, params.limit, total),
    )


@router.get("/{user_id}", response_model=UserResponse)
async def get_user_by_id(user_id: int, session: SessionDep, _user: CurrentUser) -> UserResponse:
    user = await get_user(session, user_id)
    if user is None:
        raise NotFoundError("User not found")
    return UserResponse.model_validate(user)
