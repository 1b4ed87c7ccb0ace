"""
Catalog population orchestration.

Entry points used by the API routes and the jobs. Each operation picks the
provider adapter for a game, runs it, and returns a result object. Provider
and store failures never escape as exceptions: they are logged and reported
in the result's ``errors`` list.

Writes are committed as they happen (per set, per card batch), so a run that
dies halfway leaves a usable partial cache and re-running picks up where it
stopped through the idempotent upserts.
"""

import asyncio
import logging
from datetime import date

import httpx
from sqlalchemy.ext.asyncio import AsyncSession

from carddex.config import DEFAULT_OUT_OF_PRINT_MONTHS, DEFAULT_VINTAGE_MONTHS
from carddex.db.operations import (
    auto_update_print_status,
    count_cards,
    count_sets,
    delete_cards_by_game,
    delete_sets_by_game,
    get_cached_sets,
    last_card_update,
)
from carddex.filtering.age import SetFilterOptions, passes_age_filter
from carddex.models.catalog import ALL_GAMES, GameSlug
from carddex.models.results import (
    ClearCacheResult,
    PopulateCardsResult,
    PopulateGameResult,
    PopulateSetsResult,
    PopulationOverview,
    PopulationStatus,
    PrintStatusUpdateResult,
)
from carddex.providers import get_provider
from carddex.providers.common import Sleep, describe_error
from carddex.providers.rate_limits import between_sets_delay

logger = logging.getLogger(__name__)


async def populate_sets(
    session: AsyncSession,
    client: httpx.AsyncClient,
    game: GameSlug | str,
    max_age_months: int | None = None,
    min_set_number: int | None = None,
    sleep: Sleep = asyncio.sleep,
) -> PopulateSetsResult:
    """
    Fetch a game's set catalog and cache it.

    Args:
        max_age_months: Skip sets released more than this many months ago
        min_set_number: Skip sets numbered below this (One Piece, Digimon,
            Dragon Ball only)
    """
    game = GameSlug(game)
    options = SetFilterOptions(max_age_months=max_age_months, min_set_number=min_set_number)
    logger.info("Populating %s sets (max_age_months=%s)", game.value, max_age_months)

    provider = get_provider(game, session, client, sleep)
    return await provider.populate_sets(options)


async def populate_set_cards(
    session: AsyncSession,
    client: httpx.AsyncClient,
    game: GameSlug | str,
    set_id: str,
    set_name: str | None = None,
    sleep: Sleep = asyncio.sleep,
) -> PopulateCardsResult:
    """
    Fetch and cache the cards of one set.

    ``set_name`` is only used by Yu-Gi-Oh!, whose card search is by name. When
    omitted the name is read from the cached set.
    """
    game = GameSlug(game)
    logger.info("Populating %s cards for set %s", game.value, set_id)

    provider = get_provider(game, session, client, sleep)
    return await provider.populate_cards(set_id, set_name)


async def populate_game_data(
    session: AsyncSession,
    client: httpx.AsyncClient,
    game: GameSlug | str,
    max_sets: int | None = None,
    max_age_months: int | None = None,
    sleep: Sleep = asyncio.sleep,
) -> PopulateGameResult:
    """
    Populate a game's sets, then the cards of each cached set.

    Sets are walked newest first and capped at ``max_sets``. The walk covers
    every cached set of the game, including ones cached by earlier runs, but
    is narrowed to the same age window as the set population so that
    ``max_age_months`` also bounds which sets get cards. A set that fails is
    recorded and the run moves on to the next one.

    If set population fails without caching anything, cards are not attempted.
    """
    game = GameSlug(game)
    options = SetFilterOptions(max_age_months=max_age_months)
    provider = get_provider(game, session, client, sleep)

    sets_result = await provider.populate_sets(options)
    result = PopulateGameResult(
        success=False,
        sets_processed=sets_result.count,
        sets_skipped=sets_result.skipped,
        errors=list(sets_result.errors),
    )

    if not sets_result.success and sets_result.count == 0:
        logger.error("Aborting %s population: no sets cached", game.value)
        return result

    cutoff = options.cutoff()
    # Plain values: a rollback inside the loop expires the ORM rows
    targets = [
        (s.set_id, s.name)
        for s in await get_cached_sets(session, game)
        if passes_age_filter(s.release_date, cutoff)
    ]
    if max_sets:
        targets = targets[:max_sets]

    logger.info("Populating cards for %d %s sets", len(targets), game.value)

    for set_id, set_name in targets:
        try:
            cards_result = await provider.populate_cards(set_id, set_name)
            result.cards_processed += cards_result.count
            result.errors.extend(cards_result.errors)
        except Exception as e:
            await session.rollback()
            logger.warning("Unexpected failure on %s set %s: %s", game.value, set_id, e)
            result.errors.append(describe_error(game, set_id, e))

        await sleep(between_sets_delay(game))

    result.success = not result.errors
    logger.info(
        "Finished %s: %d sets, %d cards, %d errors",
        game.value,
        result.sets_processed,
        result.cards_processed,
        len(result.errors),
    )
    return result


async def clear_game_cache(
    session: AsyncSession,
    game: GameSlug | str,
    clear_sets: bool = True,
    clear_cards: bool = True,
) -> ClearCacheResult:
    """Delete a game's cached sets and/or cards."""
    game = GameSlug(game)
    result = ClearCacheResult()

    if clear_cards:
        result.cards_deleted = await delete_cards_by_game(session, game)
    if clear_sets:
        result.sets_deleted = await delete_sets_by_game(session, game)
    await session.commit()

    logger.info(
        "Cleared %s cache: %d sets, %d cards",
        game.value,
        result.sets_deleted,
        result.cards_deleted,
    )
    return result


async def _game_status(session: AsyncSession, game: GameSlug) -> PopulationStatus:
    return PopulationStatus(
        set_count=await count_sets(session, game),
        card_count=await count_cards(session, game),
        last_updated=await last_card_update(session, game),
    )


async def get_population_status(
    session: AsyncSession, game: GameSlug | str | None = None
) -> PopulationStatus | PopulationOverview:
    """
    Report what is cached.

    With a game, returns that game's counts. Without one, returns an overview
    with totals and a per-game breakdown.
    """
    if game is not None:
        return await _game_status(session, GameSlug(game))

    overview = PopulationOverview(total_sets=0, total_cards=0)
    for slug in ALL_GAMES:
        status = await _game_status(session, slug)
        overview.by_game[slug.value] = status
        overview.total_sets += status.set_count
        overview.total_cards += status.card_count
    return overview


async def update_print_status(
    session: AsyncSession,
    game: GameSlug | str,
    out_of_print_months: int = DEFAULT_OUT_OF_PRINT_MONTHS,
    vintage_months: int = DEFAULT_VINTAGE_MONTHS,
    today: date | None = None,
) -> PrintStatusUpdateResult:
    """Recompute print status from release dates and commit."""
    result = await auto_update_print_status(
        session, game, out_of_print_months, vintage_months, today
    )
    await session.commit()

    logger.info(
        "Print status for %s: %d vintage, %d out of print, %d current, %d unchanged",
        result.game_slug,
        result.updated_to_vintage,
        result.updated_to_out_of_print,
        result.updated_to_current,
        result.unchanged,
    )
    return result
