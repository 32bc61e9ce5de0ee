"""
Shared FastAPI dependencies.

Bearer authentication, the admin gate, and the process-wide catalog
singletons (one PokéAPI client, one rarity cache, one allocator).
"""

import logging
from functools import lru_cache
from typing import Annotated

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from poketeams.db.database import get_session
from poketeams.models.db import UserDB
from poketeams.models.failure import AuthenticationRequiredError, ForbiddenError
from poketeams.models.team import UserRole
from poketeams.services.catalog_client import PokeApiClient
from poketeams.services.email import EmailService, get_email_service
from poketeams.services.identity import is_user_admin, resolve_principal
from poketeams.services.mystery_box import MysteryBoxAllocator
from poketeams.services.rarity_cache import RarityCache

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)

SessionDep = Annotated[AsyncSession, Depends(get_session)]


@lru_cache
def get_catalog_client() -> PokeApiClient:
    return PokeApiClient()


@lru_cache
def get_rarity_cache() -> RarityCache:
    return RarityCache(get_catalog_client())


@lru_cache
def get_allocator() -> MysteryBoxAllocator:
    return MysteryBoxAllocator(get_rarity_cache())


async def get_current_user(
    session: SessionDep,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
) -> UserDB:
    """
    Resolve the request's bearer token to a user.

    Raises:
        AuthenticationRequiredError: If no bearer token was sent (401)
        InvalidTokenError: If the token is bad, expired or invalidated (403)
    """
    if credentials is None or not credentials.credentials:
        raise AuthenticationRequiredError()
    return await resolve_principal(session, credentials.credentials)


CurrentUser = Annotated[UserDB, Depends(get_current_user)]


async def require_admin(session: SessionDep, user: CurrentUser) -> UserDB:
    """Allow the request through only for admins (403 otherwise)."""
    if not await is_user_admin(session, user.id):
        logger.info(
            "Access denied: User %d attempted action requiring roles: %s",
            user.id,
            UserRole.ADMIN.value,
        )
        raise ForbiddenError(f"Required roles: {UserRole.ADMIN.value}")
    return user


AdminUser = Annotated[UserDB, Depends(require_admin)]
CatalogClientDep = Annotated[PokeApiClient, Depends(get_catalog_client)]
AllocatorDep = Annotated[MysteryBoxAllocator, Depends(get_allocator)]
EmailServiceDep = Annotated[EmailService, Depends(get_email_service)]
