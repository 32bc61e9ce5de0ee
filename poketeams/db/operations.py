"""
Database CRUD operations.

Provides async functions for creating and reading users, purchases and
teams. Unique violations and stale optimistic writes are reported as
`ConstraintViolationError` / `ConcurrentWriteError`.
"""

from collections.abc import Sequence
from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload
from sqlalchemy.orm.exc import StaleDataError

from poketeams.db.errors import (
    ConcurrentWriteError,
    ConstraintViolationError,
    unique_constraint_name,
)
from poketeams.models.catalog import CatalogItem
from poketeams.models.db import PokemonPurchaseDB, TeamDB, UserDB, utcnow


async def _flush_or_raise_constraint(session: AsyncSession) -> None:
    try:
        await session.flush()
    except IntegrityError as e:
        await session.rollback()
        constraint = unique_constraint_name(e)
        if constraint is None:
            raise
        raise ConstraintViolationError(constraint) from e


# --- User Operations ---


async def get_user(session: AsyncSession, user_id: int) -> UserDB | None:
    """Get a user by id. Returns None if not found."""
    return await session.get(UserDB, user_id)


async def get_user_by_email(session: AsyncSession, email: str) -> UserDB | None:
    result = await session.execute(select(UserDB).where(UserDB.email == email))
    return result.scalar_one_or_none()


async def create_user(
    session: AsyncSession,
    *,
    name: str,
    last_name: str,
    email: str,
    password_hash: str,
    role: str = "user",
) -> UserDB:
    """
    Create a new user.

    Raises ConstraintViolationError("uq_users_email") if the e-mail is taken.
    """
    user = UserDB(
        name=name,
        last_name=last_name,
        email=email,
        password=password_hash,
        role=role,
        token_version=0,
    )
    session.add(user)
    await _flush_or_raise_constraint(session)
    return user


async def list_users(
    session: AsyncSession, offset: int, limit: int
) -> tuple[list[UserDB], int]:
    """Get a page of users, newest first, plus the total count."""
    total = await session.scalar(select(func.count()).select_from(UserDB))
    result = await session.execute(
        select(UserDB)
        .order_by(UserDB.created_at.desc(), UserDB.id.desc())
        .offset(offset)
        .limit(limit)
    )
    return list(result.scalars().all()), int(total or 0)


async def bump_token_version(session: AsyncSession, user: UserDB) -> int:
    """Increment a user's token version. Returns the new version."""
    user.token_version = user.token_version + 1
    await session.flush()
    return user.token_version


async def set_user_role(session: AsyncSession, user: UserDB, role: str) -> UserDB:
    user.role = role
    await session.flush()
    return user


# --- Purchase Operations ---


async def create_purchase(
    session: AsyncSession,
    *,
    user_id: int,
    item: CatalogItem,
    price: Decimal,
) -> PokemonPurchaseDB:
    """Persist a purchase of a catalog item."""
    purchase = PokemonPurchaseDB(
        pokemon_id=item.id,
        pokemon_name=item.name,
        pokemon_image=item.image,
        pokemon_types=list(item.types),
        user_id=user_id,
        price=price,
    )
    session.add(purchase)
    await session.flush()
    return purchase


async def get_purchase_by_owner_and_name(
    session: AsyncSession, user_id: int, pokemon_name: str
) -> PokemonPurchaseDB | None:
    result = await session.execute(
        select(PokemonPurchaseDB)
        .where(
            PokemonPurchaseDB.user_id == user_id,
            PokemonPurchaseDB.pokemon_name == pokemon_name,
        )
        .limit(1)
    )
    return result.scalar_one_or_none()


async def list_purchases_for_user(
    session: AsyncSession, user_id: int, offset: int, limit: int
) -> tuple[list[PokemonPurchaseDB], int]:
    """Get a page of a user's purchases, most recent first, plus the total count."""
    total = await session.scalar(
        select(func.count())
        .select_from(PokemonPurchaseDB)
        .where(PokemonPurchaseDB.user_id == user_id)
    )
    result = await session.execute(
        select(PokemonPurchaseDB)
        .where(PokemonPurchaseDB.user_id == user_id)
        .order_by(PokemonPurchaseDB.purchased_at.desc(), PokemonPurchaseDB.id.desc())
        .offset(offset)
        .limit(limit)
    )
    return list(result.scalars().all()), int(total or 0)


async def get_purchases_by_ids(
    session: AsyncSession, purchase_ids: Sequence[int]
) -> list[PokemonPurchaseDB]:
    """Get every purchase whose id is in `purchase_ids`. Missing ids are skipped."""
    if not purchase_ids:
        return []
    result = await session.execute(
        select(PokemonPurchaseDB)
        .where(PokemonPurchaseDB.id.in_(list(purchase_ids)))
        .order_by(PokemonPurchaseDB.id)
    )
    return list(result.scalars().all())


# --- Team Operations ---


async def create_team(
    session: AsyncSession, *, user_id: int, name: str, team_type: str
) -> TeamDB:
    """
    Create an empty team.

    Raises ConstraintViolationError("uq_team_owner_type") if the user
    already has a team of this type.
    """
    team = TeamDB(name=name, team_type=team_type, user_id=user_id, members=[])
    session.add(team)
    await _flush_or_raise_constraint(session)
    return team


async def get_team_with_members(session: AsyncSession, team_id: int) -> TeamDB | None:
    """Get a team with its members eagerly loaded. Returns None if not found."""
    result = await session.execute(
        select(TeamDB).where(TeamDB.id == team_id).options(selectinload(TeamDB.members))
    )
    return result.scalar_one_or_none()


async def add_team_members(
    session: AsyncSession, team: TeamDB, purchases: Sequence[PokemonPurchaseDB]
) -> TeamDB:
    """
    Append purchases to a team in one write.

    Touches `updated_at` so the team row is UPDATEd under its version check.
    Raises ConcurrentWriteError if another writer changed the team since it
    was loaded.
    """
    # Rollback expires `team`; keep the id for the error message
    team_id = team.id
    team.members.extend(purchases)
    team.updated_at = utcnow()
    try:
        await session.flush()
    except StaleDataError as e:
        await session.rollback()
        raise ConcurrentWriteError(f"Team {team_id} was modified concurrently") from e
    except IntegrityError as e:
        # Membership primary key: another writer added the same purchase
        await session.rollback()
        raise ConcurrentWriteError(f"Team {team_id} was modified concurrently") from e
    return team
