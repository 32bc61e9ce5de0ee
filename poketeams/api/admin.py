"""
Admin API endpoints.
"""

import logging

from fastapi import APIRouter, status

from poketeams.api.deps import AdminUser, SessionDep
from poketeams.api.schemas import CamelModel, UserResponse
from poketeams.api.users import RegisterRequest
from poketeams.services.identity import create_or_promote_admin

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])


class CreateAdminResponse(CamelModel):
    user: UserResponse
    message: str


@router.post("/users", response_model=CreateAdminResponse, status_code=status.HTTP_201_CREATED)
async def create_admin_user(
    request: RegisterRequest, session: SessionDep, admin: AdminUser
) -> CreateAdminResponse:
    """Create an admin account, or promote the existing account with that e-mail."""
    user = await create_or_promote_admin(session, request.to_new_user())
    logger.info("Admin user %s created/updated successfully by admin %d", user.email, admin.id)
    return CreateAdminResponse(
        user=UserResponse.model_validate(user),
        message="Admin user created successfully",
    )
