"""
Team composition engine.

Creates teams and validates member additions against capacity, ownership,
type compatibility and duplicate membership. Every check runs against one
read of the team and its members; either all requested purchases are added
or nothing is written.
"""

import logging
from collections.abc import Iterable, Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from poketeams.config import MAX_MEMBERS_PER_REQUEST, MAX_TEAM_SIZE, MIN_MEMBERS_PER_REQUEST
from poketeams.db.errors import ConcurrentWriteError, ConstraintViolationError
from poketeams.db.operations import add_team_members, get_purchases_by_ids, get_team_with_members
from poketeams.db.operations import create_team as db_create_team
from poketeams.models.db import PokemonPurchaseDB, TeamDB
from poketeams.models.failure import (
    AlreadyExistsError,
    CapacityExceededError,
    ConcurrentModificationError,
    ForbiddenError,
    InvalidRequestError,
    NotFoundError,
    StorageError,
    TypeMismatchError,
)
from poketeams.models.team import UNIVERSAL_COMPATIBLE_TYPE, PokemonType

logger = logging.getLogger(__name__)


# =============================================================================
# TYPE COMPATIBILITY
# =============================================================================


def is_compatible(team_type: str, types: Iterable[str]) -> bool:
    """
    Check whether a Pokémon with `types` may join a team of `team_type`.

    A normal team accepts anything; otherwise the Pokémon must carry the
    team's type or the normal type.
    """
    if team_type == UNIVERSAL_COMPATIBLE_TYPE.value:
        return True
    return any(t == team_type or t == UNIVERSAL_COMPATIBLE_TYPE.value for t in types)


def allowed_types(team_type: PokemonType) -> tuple[PokemonType, ...]:
    """Types a member of a `team_type` team may carry (any one suffices)."""
    if team_type is UNIVERSAL_COMPATIBLE_TYPE:
        return tuple(PokemonType)
    return (team_type, UNIVERSAL_COMPATIBLE_TYPE)


def find_incompatible(
    team_type: str, purchases: Sequence[PokemonPurchaseDB]
) -> list[PokemonPurchaseDB]:
    return [p for p in purchases if not is_compatible(team_type, p.pokemon_types)]


# =============================================================================
# OPERATIONS
# =============================================================================


async def create_team(
    session: AsyncSession, user_id: int, name: str, team_type: PokemonType
) -> TeamDB:
    """
    Create an empty team.

    Raises:
        AlreadyExistsError: If the user already has a team of this type
        StorageError: On any other persistence failure
    """
    logger.info("Initiating team creation for user %d with type %s", user_id, team_type.value)
    try:
        team = await db_create_team(session, user_id=user_id, name=name, team_type=team_type.value)
    except ConstraintViolationError as e:
        logger.warning(
            "User %d already has a team of type %s. Creation aborted.", user_id, team_type.value
        )
        raise AlreadyExistsError(f"A team of type '{team_type.value}' already exists.") from e
    except SQLAlchemyError as e:
        logger.exception("Teams - Error creating team for user %d", user_id)
        raise StorageError("Failed to create team") from e

    logger.info("Team '%s' created successfully for user %d.", team.name, user_id)
    return team


def _unique_ids(purchase_ids: Sequence[int]) -> list[int]:
    # Keep first-seen order
    return list(dict.fromkeys(purchase_ids))


async def add_members(
    session: AsyncSession,
    user_id: int,
    team_id: int,
    purchase_ids: Sequence[int],
) -> tuple[TeamDB, list[PokemonPurchaseDB]]:
    """
    Add purchased Pokémon to one of the user's teams.

    Checks run in a fixed order and the first failure wins:
    request size, team lookup, capacity, purchase lookup, ownership,
    type compatibility, existing membership. Repeated ids in one request
    count once.

    Returns:
        The updated team and the purchases that were added, in request order

    Raises:
        InvalidRequestError: If the request holds fewer than 1 or more than 6 ids
        NotFoundError: If the team is missing or not the user's, or a purchase is missing
        CapacityExceededError: If the team would exceed its maximum size
        ForbiddenError: If a purchase belongs to another user
        TypeMismatchError: If a purchase does not fit the team type
        AlreadyExistsError: If a purchase is already on the team
        ConcurrentModificationError: If the team changed while this request ran
        StorageError: On any other persistence failure
    """
    if not MIN_MEMBERS_PER_REQUEST <= len(purchase_ids) <= MAX_MEMBERS_PER_REQUEST:
        raise InvalidRequestError(
            f"pokemonIds must contain between {MIN_MEMBERS_PER_REQUEST} "
            f"and {MAX_MEMBERS_PER_REQUEST} items"
        )

    requested_ids = _unique_ids(purchase_ids)
    logger.info(
        "Teams - Adding %d pokemons to team %d by user %d", len(requested_ids), team_id, user_id
    )

    try:
        team = await get_team_with_members(session, team_id)
        if team is None or team.user_id != user_id:
            logger.warning("Teams - Team %d not found or not owned by user %d", team_id, user_id)
            raise NotFoundError("Team not found or you do not have permission to modify it")

        current_size = len(team.members)
        if current_size + len(requested_ids) > MAX_TEAM_SIZE:
            logger.warning(
                "Teams - Team %d capacity exceeded. Current: %d, Adding: %d, Max: %d",
                team_id,
                current_size,
                len(requested_ids),
                MAX_TEAM_SIZE,
            )
            raise CapacityExceededError(len(requested_ids), current_size, MAX_TEAM_SIZE)

        found = {p.id: p for p in await get_purchases_by_ids(session, requested_ids)}
        missing = [pid for pid in requested_ids if pid not in found]
        if missing:
            logger.warning("Pokemon purchases not found: %s", missing)
            raise NotFoundError("Some specified Pokemon purchases were not found")
        purchases = [found[pid] for pid in requested_ids]

        not_owned = [p.id for p in purchases if p.user_id != user_id]
        if not_owned:
            logger.warning(
                "User %d attempted to use purchases they don't own: %s", user_id, not_owned
            )
            raise ForbiddenError("You do not own some of the specified Pokémon")

        incompatible = [p.id for p in find_incompatible(team.team_type, purchases)]
        if incompatible:
            logger.warning(
                "Teams - Compatibility validation failed for team %d. Incompatible pokemons: %s",
                team_id,
                incompatible,
            )
            allowed = [t.value for t in allowed_types(PokemonType(team.team_type))]
            raise TypeMismatchError(incompatible, allowed)

        member_ids = {m.id for m in team.members}
        duplicates = [p.id for p in purchases if p.id in member_ids]
        if duplicates:
            logger.warning(
                "Teams - Attempt to add already-present pokemons to team %d: %s",
                team_id,
                duplicates,
            )
            raise AlreadyExistsError("Some Pokémon are already in this team")

        team = await add_team_members(session, team, purchases)
    except ConcurrentWriteError as e:
        logger.warning("Teams - Team %d was modified concurrently, nothing added", team_id)
        raise ConcurrentModificationError(
            "The team was modified by another request, please retry"
        ) from e
    except SQLAlchemyError as e:
        logger.exception("Teams - Error adding pokemons to team %d", team_id)
        raise StorageError("Failed to add pokemons to team") from e

    logger.info("Teams - Added %d pokemons to team %d successfully", len(purchases), team_id)
    return team, purchases
