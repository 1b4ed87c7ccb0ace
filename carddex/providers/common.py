"""
Helpers shared by the provider adapters.

Adapters do not inherit from a common base. They call these functions for the
parts of population that are identical across providers: storing a list of
sets one by one with per-set error isolation, storing one batch of cards, and
walking numbered pages.
"""

import logging
from collections.abc import Awaitable, Callable, Sequence
from datetime import date
from typing import Any, Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from carddex.db.operations import batch_upsert_cards, upsert_cached_set
from carddex.filtering.age import SetFilterOptions, passes_age_filter
from carddex.models.catalog import CachedCard, CachedSet, GameSlug
from carddex.models.results import PopulateCardsResult, PopulateSetsResult
from carddex.providers.rate_limits import rate_limit_seconds

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]

# Returns (records on this page, total number of pages)
PageFetcher = Callable[[int], Awaitable[tuple[list[dict[str, Any]], int]]]


class ProviderAdapter(Protocol):
    """What the orchestrator needs from each provider."""

    game: GameSlug

    async def populate_sets(self, options: SetFilterOptions) -> PopulateSetsResult: ...

    async def populate_cards(
        self, set_id: str, set_name: str | None = None
    ) -> PopulateCardsResult: ...


def describe_error(game: GameSlug, set_id: str | None, error: BaseException) -> str:
    """Error string with enough context to act on."""
    message = str(error) or type(error).__name__
    if set_id is None:
        return f"{game.value}: {message}"
    return f"{game.value} set {set_id}: {message}"


def catalog_failure(game: GameSlug, error: BaseException) -> PopulateSetsResult:
    """Result for a set population whose catalog fetch failed outright."""
    logger.error("Failed to fetch %s set catalog: %s", game.value, error)
    return PopulateSetsResult(success=False, errors=[describe_error(game, None, error)])


async def store_sets(
    session: AsyncSession,
    game: GameSlug,
    records: Sequence[Any],
    cutoff: date | None,
    sleep: Sleep,
    skipped: int = 0,
    map_record: Callable[[Any], CachedSet] | None = None,
) -> PopulateSetsResult:
    """
    Upsert sets one at a time.

    With ``map_record``, each raw provider record is mapped to a set inside the
    loop; a record that cannot be mapped is recorded by its position and the
    loop continues. Sets older than ``cutoff`` are counted as skipped. Each
    upsert is committed on its own, so a failure rolls back only that set.
    Sleeps the provider delay after every upsert.
    """
    result = PopulateSetsResult(success=True, skipped=skipped)

    for index, record in enumerate(records):
        try:
            cached_set = map_record(record) if map_record else record
        except Exception as e:
            logger.warning("Skipping malformed %s set #%d: %s", game.value, index, e)
            result.errors.append(describe_error(game, f"#{index}", e))
            continue

        if not passes_age_filter(cached_set.release_date, cutoff):
            result.skipped += 1
            continue

        try:
            await upsert_cached_set(session, cached_set)
            await session.commit()
            result.count += 1
        except Exception as e:
            await session.rollback()
            logger.warning("Failed to cache %s set %s: %s", game.value, cached_set.set_id, e)
            result.errors.append(describe_error(game, cached_set.set_id, e))

        await sleep(rate_limit_seconds(game))

    result.success = not result.errors
    logger.info(
        "Cached %d %s sets (%d skipped, %d failed)",
        result.count,
        game.value,
        result.skipped,
        len(result.errors),
    )
    return result


async def store_cards(
    session: AsyncSession,
    game: GameSlug,
    set_id: str,
    load_cards: Callable[[], Awaitable[list[CachedCard]]],
) -> PopulateCardsResult:
    """
    Fetch one set's cards and write them as a single batch.

    Any failure, fetching or writing, fails the whole set and is reported as
    its only error.
    """
    try:
        cards = await load_cards()
        tally = await batch_upsert_cards(session, cards)
        await session.commit()
    except Exception as e:
        await session.rollback()
        logger.warning("Failed to cache %s cards for set %s: %s", game.value, set_id, e)
        return PopulateCardsResult(success=False, errors=[describe_error(game, set_id, e)])

    logger.info(
        "Cached %s set %s: %d inserted, %d updated, %d unchanged",
        game.value,
        set_id,
        tally.inserted,
        tally.updated,
        tally.skipped,
    )
    return PopulateCardsResult(success=True, count=tally.written)


async def fetch_all_pages(
    fetch_page: PageFetcher, sleep: Sleep, delay: float
) -> list[dict[str, Any]]:
    """
    Walk numbered pages starting at 1 until the last page.

    Stops early on an empty page so a wrong page total cannot loop forever.
    """
    records: list[dict[str, Any]] = []
    page = 1

    while True:
        items, total_pages = await fetch_page(page)
        records.extend(items)

        if page >= total_pages or not items:
            break

        page += 1
        await sleep(delay)

    return records
