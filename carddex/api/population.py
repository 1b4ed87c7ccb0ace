"""
Population API endpoints.

Trigger catalog population for a game, clear its cache, recompute print
status, and report what is cached. Population runs inside the request, so a
full-game run can take minutes; use max_sets to keep calls short and call
again to continue.
"""

from datetime import datetime
from typing import Annotated, cast

import httpx
from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.ext.asyncio import AsyncSession

from carddex.config import DEFAULT_OUT_OF_PRINT_MONTHS, DEFAULT_VINTAGE_MONTHS
from carddex.db.database import get_session
from carddex.models.catalog import GameSlug
from carddex.models.results import PopulationOverview, PopulationStatus
from carddex.providers.http import get_http_client
from carddex.services import population

router = APIRouter(prefix="/population", tags=["population"])

SessionDep = Annotated[AsyncSession, Depends(get_session)]
ClientDep = Annotated[httpx.AsyncClient, Depends(get_http_client)]


class PopulateSetsResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    success: bool
    count: int
    skipped: int
    errors: list[str] = Field(default_factory=list)


class PopulateCardsResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    success: bool
    count: int
    errors: list[str] = Field(default_factory=list)


class PopulateGameResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    success: bool
    sets_processed: int
    sets_skipped: int
    cards_processed: int
    errors: list[str] = Field(default_factory=list)


class ClearCacheResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    sets_deleted: int
    cards_deleted: int


class GameStatusResponse(BaseModel):
    """Cache contents for one game."""

    model_config = ConfigDict(from_attributes=True)

    set_count: int
    card_count: int
    last_updated: datetime | None = None


class StatusOverviewResponse(BaseModel):
    """Cache contents across all games."""

    total_sets: int
    total_cards: int
    by_game: dict[str, GameStatusResponse]


class PrintStatusUpdateResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    game_slug: str
    total_sets: int
    updated_to_vintage: int
    updated_to_out_of_print: int
    updated_to_current: int
    unchanged: int
    out_of_print_cutoff: str
    vintage_cutoff: str


@router.get("/status", response_model=StatusOverviewResponse)
async def get_status_overview(session: SessionDep) -> StatusOverviewResponse:
    """Set and card counts for every game, with totals."""
    overview = cast(PopulationOverview, await population.get_population_status(session))

    return StatusOverviewResponse(
        total_sets=overview.total_sets,
        total_cards=overview.total_cards,
        by_game={
            slug: GameStatusResponse.model_validate(status)
            for slug, status in overview.by_game.items()
        },
    )


@router.get("/status/{game}", response_model=GameStatusResponse)
async def get_game_status(game: GameSlug, session: SessionDep) -> GameStatusResponse:
    """Set and card counts for one game, and when its cards last changed."""
    status = cast(PopulationStatus, await population.get_population_status(session, game))
    return GameStatusResponse.model_validate(status)


@router.post("/{game}/sets", response_model=PopulateSetsResponse)
async def populate_sets(
    game: GameSlug,
    session: SessionDep,
    client: ClientDep,
    max_age_months: Annotated[int | None, Query(ge=0)] = None,
    min_set_number: Annotated[int | None, Query(ge=0)] = None,
) -> PopulateSetsResponse:
    """
    Fetch and cache a game's sets.

    Provider failures are reported in ``errors`` with a 200 status.
    """
    result = await population.populate_sets(
        session, client, game, max_age_months=max_age_months, min_set_number=min_set_number
    )
    return PopulateSetsResponse.model_validate(result)


@router.post("/{game}/sets/{set_id}/cards", response_model=PopulateCardsResponse)
async def populate_set_cards(
    game: GameSlug,
    set_id: str,
    session: SessionDep,
    client: ClientDep,
    set_name: str | None = None,
) -> PopulateCardsResponse:
    """Fetch and cache the cards of one set."""
    result = await population.populate_set_cards(session, client, game, set_id, set_name=set_name)
    return PopulateCardsResponse.model_validate(result)


@router.post("/{game}", response_model=PopulateGameResponse)
async def populate_game(
    game: GameSlug,
    session: SessionDep,
    client: ClientDep,
    max_sets: Annotated[int | None, Query(ge=1)] = None,
    max_age_months: Annotated[int | None, Query(ge=0)] = None,
) -> PopulateGameResponse:
    """Populate sets, then cards for each cached set, newest first."""
    result = await population.populate_game_data(
        session, client, game, max_sets=max_sets, max_age_months=max_age_months
    )
    return PopulateGameResponse.model_validate(result)


@router.delete("/{game}", response_model=ClearCacheResponse)
async def clear_game_cache(
    game: GameSlug,
    session: SessionDep,
    clear_sets: bool = True,
    clear_cards: bool = True,
) -> ClearCacheResponse:
    """Delete a game's cached sets and/or cards."""
    result = await population.clear_game_cache(
        session, game, clear_sets=clear_sets, clear_cards=clear_cards
    )
    return ClearCacheResponse.model_validate(result)


@router.post("/{game}/print-status", response_model=PrintStatusUpdateResponse)
async def update_print_status(
    game: GameSlug,
    session: SessionDep,
    out_of_print_months: Annotated[int, Query(ge=1)] = DEFAULT_OUT_OF_PRINT_MONTHS,
    vintage_months: Annotated[int, Query(ge=1)] = DEFAULT_VINTAGE_MONTHS,
) -> PrintStatusUpdateResponse:
    """
    Recompute print status from release dates.

    Sets whose status was set by hand are left alone.
    """
    result = await population.update_print_status(
        session, game, out_of_print_months=out_of_print_months, vintage_months=vintage_months
    )
    return PrintStatusUpdateResponse.model_validate(result)
