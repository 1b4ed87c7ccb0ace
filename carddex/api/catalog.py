"""
Catalog API endpoints.

Read access to the cached sets and cards, plus manual print-status edits.
Nothing here calls a provider.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.ext.asyncio import AsyncSession

from carddex.db import (
    cached_card_to_model,
    cached_set_to_model,
    get_cached_cards_in_set,
    get_cached_set,
    get_in_print_sets,
    get_sets_by_game,
    mark_sets_print_status,
    search_cards_by_game,
    update_set_print_status,
)
from carddex.db.database import get_session
from carddex.filtering.dates import cutoff_date
from carddex.models.catalog import CachedCard, CachedSet, GameSlug, PrintStatus
from carddex.models.db import CachedSetDB

router = APIRouter(prefix="/catalog", tags=["catalog"])


class SetResponse(BaseModel):
    """Response model for a cached set."""

    set_id: str
    name: str
    series: str
    release_date: str
    release_date_estimated: bool = False
    total_cards: int = 0
    logo_url: str | None = None
    symbol_url: str | None = None
    print_status: PrintStatus | None = None
    is_in_print: bool | None = None


class SetListResponse(BaseModel):
    game: GameSlug
    sets: list[SetResponse]
    count: int


class CardResponse(BaseModel):
    """Response model for a cached card."""

    card_id: str
    set_id: str
    name: str
    number: str
    supertype: str
    subtypes: list[str] = Field(default_factory=list)
    types: list[str] = Field(default_factory=list)
    rarity: str | None = None
    image_small: str = ""
    image_large: str = ""
    tcgplayer_url: str | None = None
    price_market: float | None = None


class CardListResponse(BaseModel):
    game: GameSlug
    cards: list[CardResponse]
    count: int


class PrintStatusRequest(BaseModel):
    """Request model for a manual print-status change."""

    print_status: PrintStatus
    is_in_print: bool | None = Field(
        default=None,
        description="Overrides the flag derived from print_status",
    )


class BulkPrintStatusRequest(BaseModel):
    """Request model for marking several sets at once."""

    set_ids: list[str] = Field(min_length=1)
    print_status: PrintStatus
    is_in_print: bool | None = None


class BulkPrintStatusResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    updated_count: int
    not_found_count: int
    requested_count: int


def _set_response(model: CachedSet) -> SetResponse:
    return SetResponse(
        set_id=model.set_id,
        name=model.name,
        series=model.series,
        release_date=model.release_date,
        release_date_estimated=model.release_date_estimated,
        total_cards=model.total_cards,
        logo_url=model.logo_url,
        symbol_url=model.symbol_url,
        print_status=model.print_status,
        is_in_print=model.is_in_print,
    )


def _card_response(model: CachedCard) -> CardResponse:
    return CardResponse(
        card_id=model.card_id,
        set_id=model.set_id,
        name=model.name,
        number=model.number,
        supertype=model.supertype,
        subtypes=model.subtypes,
        types=model.types,
        rarity=model.rarity,
        image_small=model.image_small,
        image_large=model.image_large,
        tcgplayer_url=model.tcgplayer_url,
        price_market=model.price_market,
    )


def _set_list(game: GameSlug, rows: list[CachedSetDB]) -> SetListResponse:
    sets = [_set_response(cached_set_to_model(row)) for row in rows]
    return SetListResponse(game=game, sets=sets, count=len(sets))


@router.get("/{game}/sets", response_model=SetListResponse)
async def list_sets(
    game: GameSlug,
    session: Annotated[AsyncSession, Depends(get_session)],
    max_age_months: Annotated[int | None, Query(ge=0)] = None,
    include_out_of_print: bool = True,
) -> SetListResponse:
    """
    Cached sets for a game, newest first.

    Sets whose release date does not parse are listed last and are never
    filtered out by age.
    """
    rows = await get_sets_by_game(
        session,
        game,
        cutoff=cutoff_date(max_age_months),
        include_out_of_print=include_out_of_print,
    )
    return _set_list(game, rows)


@router.get("/{game}/sets/in-print", response_model=SetListResponse)
async def list_in_print_sets(
    game: GameSlug,
    session: Annotated[AsyncSession, Depends(get_session)],
    max_age_months: Annotated[int, Query(ge=1)] = 24,
) -> SetListResponse:
    """Sets still sold at retail, by print status or recent release."""
    rows = await get_in_print_sets(session, game, max_age_months=max_age_months)
    return _set_list(game, rows)


@router.get("/{game}/sets/{set_id}/cards", response_model=CardListResponse)
async def list_set_cards(
    game: GameSlug,
    set_id: str,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> CardListResponse:
    """
    Cached cards of one set, by collector number.

    Returns 404 when neither the set nor any of its cards is cached.
    """
    rows = await get_cached_cards_in_set(session, game, set_id)

    if not rows and await get_cached_set(session, game, set_id) is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Set '{set_id}' not found for {game.value}",
        )

    cards = [_card_response(cached_card_to_model(row)) for row in rows]
    return CardListResponse(game=game, cards=cards, count=len(cards))


@router.get("/{game}/cards/search", response_model=CardListResponse)
async def search_cards(
    game: GameSlug,
    session: Annotated[AsyncSession, Depends(get_session)],
    q: Annotated[str, Query(min_length=1, max_length=100)],
    limit: Annotated[int, Query(ge=1, le=200)] = 50,
) -> CardListResponse:
    """Case-insensitive card name search within a game."""
    rows = await search_cards_by_game(session, game, q, limit=limit)
    cards = [_card_response(cached_card_to_model(row)) for row in rows]
    return CardListResponse(game=game, cards=cards, count=len(cards))


@router.put("/{game}/sets/{set_id}/print-status", response_model=SetResponse)
async def set_print_status(
    game: GameSlug,
    set_id: str,
    request: PrintStatusRequest,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> SetResponse:
    """
    Set a set's print status by hand.

    Manually set statuses survive automatic print-status updates.
    """
    row = await update_set_print_status(
        session, game, set_id, request.print_status, request.is_in_print
    )

    if row is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Set '{set_id}' not found for {game.value}",
        )

    return _set_response(cached_set_to_model(row))


@router.post("/{game}/sets/print-status", response_model=BulkPrintStatusResponse)
async def mark_print_status(
    game: GameSlug,
    request: BulkPrintStatusRequest,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> BulkPrintStatusResponse:
    """
    Mark several sets with the same print status.

    Unknown set ids are counted, not rejected.
    """
    result = await mark_sets_print_status(
        session, game, request.set_ids, request.print_status, request.is_in_print
    )
    return BulkPrintStatusResponse.model_validate(result)
