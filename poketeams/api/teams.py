"""
Team API endpoints.

Team creation and adding purchased Pokémon to a team.
"""

import logging
from datetime import datetime

from fastapi import APIRouter, status
from pydantic import Field

from poketeams.api.deps import CurrentUser, SessionDep
from poketeams.api.schemas import CamelModel
from poketeams.config import (
    MAX_MEMBERS_PER_REQUEST,
    MIN_MEMBERS_PER_REQUEST,
    TEAM_NAME_MAX_LENGTH,
    TEAM_NAME_MIN_LENGTH,
)
from poketeams.models.db import PokemonPurchaseDB
from poketeams.models.team import PokemonType
from poketeams.services.team_composition import add_members, create_team

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/teams", tags=["teams"])


class CreateTeamRequest(CamelModel):
    name: str = Field(..., min_length=TEAM_NAME_MIN_LENGTH, max_length=TEAM_NAME_MAX_LENGTH)
    team_type: PokemonType


class TeamResponse(CamelModel):
    id: int
    name: str
    team_type: str
    created_at: datetime
    updated_at: datetime


class CreateTeamResponse(CamelModel):
    message: str
    data: TeamResponse


class AddPokemonsRequest(CamelModel):
    """Purchase ids to add. Repeated ids count once."""

    pokemon_ids: list[int] = Field(
        ...,
        min_length=MIN_MEMBERS_PER_REQUEST,
        max_length=MAX_MEMBERS_PER_REQUEST,
        examples=[[1, 2, 3]],
    )


class PokemonSummary(CamelModel):
    id: int
    pokemon_name: str
    pokemon_types: list[str]
    pokemon_image: str | None = None


class AddPokemonsData(CamelModel):
    team_id: int
    team_name: str
    team_type: str
    added_pokemons: list[PokemonSummary]
    total_pokemons_in_team: int


class AddPokemonsResponse(CamelModel):
    message: str
    data: AddPokemonsData


def _summaries(purchases: list[PokemonPurchaseDB]) -> list[PokemonSummary]:
    return [PokemonSummary.model_validate(p) for p in purchases]


@router.post("", response_model=CreateTeamResponse, status_code=status.HTTP_201_CREATED)
async def create_team_endpoint(
    request: CreateTeamRequest, session: SessionDep, user: CurrentUser
) -> CreateTeamResponse:
    """Create an empty team. A user can own one team per type."""
    team = await create_team(session, user.id, request.name, request.team_type)
    return CreateTeamResponse(
        message="Team created successfully",
        data=TeamResponse.model_validate(team),
    )


@router.post("/{team_id}/pokemons", response_model=AddPokemonsResponse)
async def add_pokemons_to_team(
    team_id: int, request: AddPokemonsRequest, session: SessionDep, user: CurrentUser
) -> AddPokemonsResponse:
    """
    Add purchased Pokémon to one of the caller's teams.

    All-or-nothing: if any Pokémon fails a check, none are added.
    """
    team, added = await add_members(session, user.id, team_id, request.pokemon_ids)
    return AddPokemonsResponse(
        message=f"{len(added)} Pokémon added to team '{team.name}' successfully",
        data=AddPokemonsData(
            team_id=team.id,
            team_name=team.name,
            team_type=team.team_type,
            added_pokemons=_summaries(added),
            total_pokemons_in_team=len(team.members),
        ),
    )
