"""
Identity and access.

Registration, login, bearer-token issuance and verification, the admin
role check, and logout-everywhere via the per-user token version.

A token carries the user's `token_version` at issue time. Bumping the
version on the user row invalidates every token issued before the bump.
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

import bcrypt
import jwt
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from poketeams.config import settings
from poketeams.db.errors import ConstraintViolationError
from poketeams.db.operations import (
    bump_token_version,
    create_user,
    get_user,
    get_user_by_email,
    set_user_role,
)
from poketeams.models.db import UserDB
from poketeams.models.failure import (
    EmailAlreadyExistsError,
    InvalidTokenError,
    NotFoundError,
    StorageError,
)
from poketeams.models.team import UserRole

logger = logging.getLogger(__name__)

# bcrypt only reads the first 72 bytes of a password
BCRYPT_MAX_BYTES = 72

SESSION_INVALID_MESSAGE = "Session invalid, please log in again"


@dataclass(frozen=True)
class NewUserData:
    name: str
    last_name: str
    email: str
    password: str


@dataclass(frozen=True)
class TokenClaims:
    """Verified contents of a bearer token."""

    user_id: int
    token_version: int
    issued_at: datetime
    expires_at: datetime


@dataclass(frozen=True)
class LoginResult:
    success: bool
    message: str
    token: str | None = None
    user: UserDB | None = None


# =============================================================================
# PASSWORDS
# =============================================================================


def _password_bytes(password: str) -> bytes:
    return password.encode("utf-8")[:BCRYPT_MAX_BYTES]


async def hash_password(password: str) -> str:
    """Hash a password with bcrypt off the event loop."""
    salt = bcrypt.gensalt(rounds=settings.bcrypt_rounds)
    hashed = await asyncio.to_thread(bcrypt.hashpw, _password_bytes(password), salt)
    return hashed.decode("utf-8")


async def verify_password(password: str, password_hash: str) -> bool:
    try:
        return await asyncio.to_thread(
            bcrypt.checkpw, _password_bytes(password), password_hash.encode("utf-8")
        )
    except ValueError:
        # Stored value is not a bcrypt hash
        logger.warning("Stored password hash could not be parsed")
        return False


# =============================================================================
# TOKENS
# =============================================================================


def issue_token(user: UserDB, now: datetime | None = None) -> str:
    """Sign a bearer token stamped with the user's current token version."""
    issued_at = now or datetime.now(UTC)
    payload = {
        "sub": str(user.id),
        "ver": user.token_version,
        "iat": issued_at,
        "exp": issued_at + timedelta(minutes=settings.jwt_expires_minutes),
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_token(token: str) -> TokenClaims:
    """
    Verify a bearer token's signature and expiry.

    Raises:
        InvalidTokenError: If the token is malformed, forged or expired
    """
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            options={"require": ["sub", "ver", "iat", "exp"]},
        )
        return TokenClaims(
            user_id=int(payload["sub"]),
            token_version=int(payload["ver"]),
            issued_at=datetime.fromtimestamp(payload["iat"], UTC),
            expires_at=datetime.fromtimestamp(payload["exp"], UTC),
        )
    except jwt.PyJWTError as e:
        logger.warning("Token verification failed: %s", e)
        raise InvalidTokenError() from e
    except (TypeError, ValueError) as e:
        logger.warning("Token carries malformed claims: %s", e)
        raise InvalidTokenError() from e


async def resolve_principal(session: AsyncSession, token: str) -> UserDB:
    """
    Resolve a bearer token to the user it was issued to.

    Raises:
        InvalidTokenError: If the token does not verify, the user no longer
            exists, or the user's sessions were invalidated after issue
    """
    claims = decode_token(token)

    user = await get_user(session, claims.user_id)
    if user is None:
        logger.warning("User %d from token not found in database", claims.user_id)
        raise InvalidTokenError(SESSION_INVALID_MESSAGE)

    if claims.token_version != user.token_version:
        logger.warning("Token version mismatch detected for user %d", claims.user_id)
        raise InvalidTokenError(SESSION_INVALID_MESSAGE)

    logger.debug("User %d authenticated successfully", user.id)
    return user


# =============================================================================
# ACCOUNTS
# =============================================================================


async def register_user(
    session: AsyncSession, data: NewUserData, role: UserRole = UserRole.USER
) -> UserDB:
    """
    Create an account with a hashed password.

    Raises:
        EmailAlreadyExistsError: If the e-mail is already registered
        StorageError: On any other persistence failure
    """
    password_hash = await hash_password(data.password)
    try:
        user = await create_user(
            session,
            name=data.name,
            last_name=data.last_name,
            email=data.email,
            password_hash=password_hash,
            role=role.value,
        )
    except ConstraintViolationError as e:
        logger.warning("Registration rejected, email already exists: %s", data.email)
        raise EmailAlreadyExistsError() from e
    except SQLAlchemyError as e:
        logger.exception("Error registering user")
        raise StorageError("Failed to register user") from e

    logger.info("User %s registered successfully.", user.name)
    return user


async def authenticate_user(session: AsyncSession, email: str, password: str) -> LoginResult:
    """
    Check credentials and issue a token.

    Unknown e-mail and wrong password produce the same result.
    """
    user = await get_user_by_email(session, email)
    if user is None or not await verify_password(password, user.password):
        logger.info("Login attempt failed for email: %s", email)
        return LoginResult(success=False, message="Invalid credentials")

    logger.info("User %s logged in successfully", user.email)
    return LoginResult(
        success=True,
        message="Login successful",
        token=issue_token(user),
        user=user,
    )


async def is_user_admin(session: AsyncSession, user_id: int) -> bool:
    user = await get_user(session, user_id)
    return user is not None and user.role == UserRole.ADMIN.value


async def invalidate_all_sessions(session: AsyncSession, user_id: int) -> int:
    """
    Log a user out everywhere.

    Returns:
        The user's new token version
    """
    user = await get_user(session, user_id)
    if user is None:
        raise NotFoundError("User not found")

    new_version = await bump_token_version(session, user)
    logger.info("All sessions invalidated for user %d (token version %d)", user_id, new_version)
    return new_version


async def create_or_promote_admin(session: AsyncSession, data: NewUserData) -> UserDB:
    """
    Create an admin account, or promote the existing account with that e-mail.

    A promoted account keeps its password; the one in `data` is only used
    for a new account.
    """
    existing = await get_user_by_email(session, data.email)
    if existing is not None:
        if existing.role != UserRole.ADMIN.value:
            await set_user_role(session, existing, UserRole.ADMIN.value)
            logger.info("User %s promoted to admin", existing.email)
        return existing

    user = await register_user(session, data, role=UserRole.ADMIN)
    logger.info("Admin user %s created", user.email)
    return user
