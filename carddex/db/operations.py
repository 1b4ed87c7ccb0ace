"""
Database operations for the catalog cache.

Provides the upsert engine used by population (sets and cards keyed by their
natural identifiers), the read queries used by the orchestrator and the
catalog API, cache clearing, and print-status maintenance.

Upserts are read-then-write with no locking. Population runs for one game are
expected to be serialized by the caller. The unique constraints on
(game_slug, set_id) and card_id keep repeated runs from duplicating rows.
"""

from collections.abc import Sequence
from datetime import date, datetime

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from carddex.filtering.age import passes_age_filter
from carddex.filtering.dates import cutoff_date, parse_release_date
from carddex.filtering.print_status import (
    derive_print_status,
    print_status_cutoffs,
    resolve_is_in_print,
)
from carddex.models.catalog import CachedCard, CachedSet, GameSlug, PrintStatus
from carddex.models.db import CachedCardDB, CachedSetDB
from carddex.models.results import (
    BatchUpsertResult,
    MarkPrintStatusResult,
    PrintStatusUpdateResult,
    UpsertAction,
)

# Keeps IN (...) lists well under driver parameter limits
_LOOKUP_CHUNK_SIZE = 500


def _slug(game: GameSlug | str) -> str:
    return GameSlug(game).value


def _release_sort_key(row: CachedSetDB) -> tuple[int, int, str]:
    """Newest first; rows with unparseable dates go last."""
    released = parse_release_date(row.release_date)
    if released is None:
        return (1, 0, row.set_id)
    return (0, -released.toordinal(), row.set_id)


def _sort_newest_first(rows: Sequence[CachedSetDB]) -> list[CachedSetDB]:
    return sorted(rows, key=_release_sort_key)


# --- Set Operations ---


async def get_cached_set(
    session: AsyncSession, game: GameSlug | str, set_id: str
) -> CachedSetDB | None:
    """Get a cached set by its natural key."""
    result = await session.execute(
        select(CachedSetDB).where(
            CachedSetDB.game_slug == _slug(game),
            CachedSetDB.set_id == set_id,
        )
    )
    return result.scalar_one_or_none()


async def upsert_cached_set(session: AsyncSession, cached_set: CachedSet) -> UpsertAction:
    """
    Insert or update a cached set.

    Looks the set up by (game_slug, set_id). An existing row has every
    catalog field overwritten in place; print status is left untouched
    because it is maintained separately.

    Returns:
        "inserted" or "updated". Used for counting only.
    """
    existing = await get_cached_set(session, cached_set.game_slug, cached_set.set_id)

    if existing:
        existing.name = cached_set.name
        existing.series = cached_set.series
        existing.release_date = cached_set.release_date
        existing.release_date_estimated = cached_set.release_date_estimated
        existing.total_cards = cached_set.total_cards
        existing.logo_url = cached_set.logo_url
        existing.symbol_url = cached_set.symbol_url
        await session.flush()
        return "updated"

    session.add(
        CachedSetDB(
            set_id=cached_set.set_id,
            game_slug=_slug(cached_set.game_slug),
            name=cached_set.name,
            series=cached_set.series,
            release_date=cached_set.release_date,
            release_date_estimated=cached_set.release_date_estimated,
            total_cards=cached_set.total_cards,
            logo_url=cached_set.logo_url,
            symbol_url=cached_set.symbol_url,
        )
    )
    await session.flush()
    return "inserted"


async def get_cached_sets(
    session: AsyncSession, game: GameSlug | str, limit: int | None = None
) -> list[CachedSetDB]:
    """Get all cached sets for a game, newest release first."""
    result = await session.execute(select(CachedSetDB).where(CachedSetDB.game_slug == _slug(game)))
    sets = _sort_newest_first(result.scalars().all())
    return sets[:limit] if limit else sets


async def get_sets_by_game(
    session: AsyncSession,
    game: GameSlug | str,
    cutoff: date | None = None,
    include_out_of_print: bool = True,
) -> list[CachedSetDB]:
    """
    Get cached sets for display.

    Args:
        cutoff: Only sets released on or after this date (unparseable dates kept)
        include_out_of_print: When False, drops sets explicitly marked out of
            print or vintage. Sets with no print status are kept.
    """
    sets = await get_cached_sets(session, game)

    if cutoff is not None:
        sets = [s for s in sets if passes_age_filter(s.release_date, cutoff)]

    if not include_out_of_print:
        sets = [
            s
            for s in sets
            if s.is_in_print is not False
            and s.print_status not in (PrintStatus.OUT_OF_PRINT.value, PrintStatus.VINTAGE.value)
        ]

    return sets


async def get_in_print_sets(
    session: AsyncSession,
    game: GameSlug | str,
    max_age_months: int = 24,
    today: date | None = None,
) -> list[CachedSetDB]:
    """
    Get sets that can still be bought at retail.

    A set qualifies if it is flagged in print, if its status is current or
    limited, or, when it has no print information at all, if it was released
    within ``max_age_months``.
    """
    cutoff = cutoff_date(max_age_months, today)
    in_print: list[CachedSetDB] = []

    for s in await get_cached_sets(session, game):
        if s.is_in_print is True:
            in_print.append(s)
        elif s.print_status in (PrintStatus.CURRENT.value, PrintStatus.LIMITED.value):
            in_print.append(s)
        elif s.print_status is None and s.is_in_print is None:
            released = parse_release_date(s.release_date)
            if released is not None and (cutoff is None or released >= cutoff):
                in_print.append(s)

    return in_print


async def count_sets(session: AsyncSession, game: GameSlug | str) -> int:
    result = await session.execute(
        select(func.count()).select_from(CachedSetDB).where(CachedSetDB.game_slug == _slug(game))
    )
    return int(result.scalar_one())


async def delete_sets_by_game(session: AsyncSession, game: GameSlug | str) -> int:
    """
    Delete all cached sets for a game.

    Returns the number of deleted records.
    """
    result = await session.execute(delete(CachedSetDB).where(CachedSetDB.game_slug == _slug(game)))
    return int(result.rowcount)  # type: ignore[attr-defined]


def cached_set_to_model(row: CachedSetDB) -> CachedSet:
    """Convert a database set to a domain model."""
    return CachedSet(
        set_id=row.set_id,
        game_slug=GameSlug(row.game_slug),
        name=row.name,
        series=row.series,
        release_date=row.release_date,
        total_cards=row.total_cards,
        logo_url=row.logo_url,
        symbol_url=row.symbol_url,
        release_date_estimated=row.release_date_estimated,
        print_status=PrintStatus(row.print_status) if row.print_status else None,
        is_in_print=row.is_in_print,
    )


# --- Card Operations ---


async def get_cached_card(session: AsyncSession, card_id: str) -> CachedCardDB | None:
    result = await session.execute(select(CachedCardDB).where(CachedCardDB.card_id == card_id))
    return result.scalar_one_or_none()


def _apply_card_fields(row: CachedCardDB, card: CachedCard) -> None:
    row.name = card.name
    row.number = card.number
    row.supertype = card.supertype
    row.subtypes = list(card.subtypes)
    row.types = list(card.types)
    row.rarity = card.rarity
    row.image_small = card.image_small
    row.image_large = card.image_large
    row.tcgplayer_url = card.tcgplayer_url
    row.price_market = card.price_market


def _new_card_row(card: CachedCard) -> CachedCardDB:
    row = CachedCardDB(
        card_id=card.card_id,
        game_slug=_slug(card.game_slug),
        set_id=card.set_id,
    )
    _apply_card_fields(row, card)
    return row


def _card_unchanged(row: CachedCardDB, card: CachedCard) -> bool:
    """Change detection used by batch upserts: name, price and primary image."""
    return (
        row.name == card.name
        and row.price_market == card.price_market
        and row.image_small == card.image_small
    )


async def upsert_cached_card(session: AsyncSession, card: CachedCard) -> UpsertAction:
    """
    Insert or update a single cached card by card_id.

    Always rewrites an existing row. Use batch_upsert_cards for change detection.
    """
    existing = await get_cached_card(session, card.card_id)

    if existing:
        _apply_card_fields(existing, card)
        await session.flush()
        return "updated"

    session.add(_new_card_row(card))
    await session.flush()
    return "inserted"


async def _load_cards_by_id(session: AsyncSession, card_ids: list[str]) -> dict[str, CachedCardDB]:
    rows: dict[str, CachedCardDB] = {}
    for start in range(0, len(card_ids), _LOOKUP_CHUNK_SIZE):
        chunk = card_ids[start : start + _LOOKUP_CHUNK_SIZE]
        result = await session.execute(select(CachedCardDB).where(CachedCardDB.card_id.in_(chunk)))
        for row in result.scalars().all():
            rows[row.card_id] = row
    return rows


async def batch_upsert_cards(
    session: AsyncSession, cards: Sequence[CachedCard]
) -> BatchUpsertResult:
    """
    Insert or update many cards at once.

    Existing rows are only rewritten when name, price_market or image_small
    differ, so re-running population over unchanged data writes nothing.
    A card id repeated within the batch lands on a single row.

    Returns:
        Inserted, updated and skipped tallies.
    """
    tally = BatchUpsertResult()
    if not cards:
        return tally

    existing = await _load_cards_by_id(session, list(dict.fromkeys(c.card_id for c in cards)))

    for card in cards:
        row = existing.get(card.card_id)
        if row is None:
            row = _new_card_row(card)
            session.add(row)
            existing[card.card_id] = row
            tally.inserted += 1
        elif _card_unchanged(row, card):
            tally.skipped += 1
        else:
            _apply_card_fields(row, card)
            tally.updated += 1

    await session.flush()
    return tally


async def get_cached_cards_in_set(
    session: AsyncSession, game: GameSlug | str, set_id: str
) -> list[CachedCardDB]:
    result = await session.execute(
        select(CachedCardDB)
        .where(CachedCardDB.game_slug == _slug(game), CachedCardDB.set_id == set_id)
        .order_by(CachedCardDB.number, CachedCardDB.card_id)
    )
    return list(result.scalars().all())


async def search_cards_by_game(
    session: AsyncSession, game: GameSlug | str, term: str, limit: int = 50
) -> list[CachedCardDB]:
    """Case-insensitive partial match on card name within a game."""
    result = await session.execute(
        select(CachedCardDB)
        .where(
            CachedCardDB.game_slug == _slug(game),
            func.lower(CachedCardDB.name).contains(term.lower()),
        )
        .order_by(CachedCardDB.name, CachedCardDB.card_id)
        .limit(limit)
    )
    return list(result.scalars().all())


async def count_cards(session: AsyncSession, game: GameSlug | str) -> int:
    result = await session.execute(
        select(func.count()).select_from(CachedCardDB).where(CachedCardDB.game_slug == _slug(game))
    )
    return int(result.scalar_one())


async def last_card_update(session: AsyncSession, game: GameSlug | str) -> datetime | None:
    """Most recent write to any card of the game, or None if there are no cards."""
    result = await session.execute(
        select(func.max(func.coalesce(CachedCardDB.updated_at, CachedCardDB.created_at))).where(
            CachedCardDB.game_slug == _slug(game)
        )
    )
    return result.scalar_one_or_none()


async def delete_cards_by_game(session: AsyncSession, game: GameSlug | str) -> int:
    """
    Delete all cached cards for a game.

    Returns the number of deleted records.
    """
    result = await session.execute(
        delete(CachedCardDB).where(CachedCardDB.game_slug == _slug(game))
    )
    return int(result.rowcount)  # type: ignore[attr-defined]


def cached_card_to_model(row: CachedCardDB) -> CachedCard:
    """Convert a database card to a domain model."""
    return CachedCard(
        card_id=row.card_id,
        game_slug=GameSlug(row.game_slug),
        set_id=row.set_id,
        name=row.name,
        number=row.number,
        supertype=row.supertype,
        subtypes=list(row.subtypes or []),
        types=list(row.types or []),
        rarity=row.rarity,
        image_small=row.image_small,
        image_large=row.image_large,
        tcgplayer_url=row.tcgplayer_url,
        price_market=row.price_market,
    )


# --- Print Status Operations ---


async def update_set_print_status(
    session: AsyncSession,
    game: GameSlug | str,
    set_id: str,
    status: PrintStatus,
    is_in_print: bool | None = None,
) -> CachedSetDB | None:
    """
    Set a set's print status by hand.

    The set is flagged as manually maintained so automatic print-status
    passes leave it alone. Returns None if the set is not cached.
    """
    row = await get_cached_set(session, game, set_id)
    if row is None:
        return None

    row.print_status = status.value
    row.is_in_print = resolve_is_in_print(status, is_in_print)
    row.print_status_manual = True
    await session.flush()
    return row


async def mark_sets_print_status(
    session: AsyncSession,
    game: GameSlug | str,
    set_ids: Sequence[str],
    status: PrintStatus,
    is_in_print: bool | None = None,
) -> MarkPrintStatusResult:
    """Apply a manual print status to several sets, counting misses."""
    result = MarkPrintStatusResult(requested_count=len(set_ids))

    for set_id in set_ids:
        row = await update_set_print_status(session, game, set_id, status, is_in_print)
        if row is None:
            result.not_found_count += 1
        else:
            result.updated_count += 1

    return result


async def auto_update_print_status(
    session: AsyncSession,
    game: GameSlug | str,
    out_of_print_months: int,
    vintage_months: int,
    today: date | None = None,
) -> PrintStatusUpdateResult:
    """
    Recompute print status for every set of a game from its release date.

    Sets whose status was set by hand are skipped, as are sets whose release
    date does not parse.
    """
    out_of_print_cutoff, vintage_cutoff = print_status_cutoffs(
        out_of_print_months, vintage_months, today
    )
    sets = await get_cached_sets(session, game)
    result = PrintStatusUpdateResult(
        game_slug=_slug(game),
        total_sets=len(sets),
        out_of_print_cutoff=out_of_print_cutoff.isoformat(),
        vintage_cutoff=vintage_cutoff.isoformat(),
    )

    for row in sets:
        if row.print_status_manual:
            result.unchanged += 1
            continue

        status = derive_print_status(row.release_date, out_of_print_cutoff, vintage_cutoff)
        if status is None or status.value == row.print_status:
            result.unchanged += 1
            continue

        row.print_status = status.value
        row.is_in_print = status.is_in_print
        if status is PrintStatus.VINTAGE:
            result.updated_to_vintage += 1
        elif status is PrintStatus.OUT_OF_PRINT:
            result.updated_to_out_of_print += 1
        else:
            result.updated_to_current += 1

    await session.flush()
    return result
