"""
Sets derived from a full card listing.

One Piece, Digimon and Dragon Ball providers have no sets endpoint. A set only
exists as the group of cards whose code starts with the same prefix
("OP05-001" belongs to "OP05"). This module holds the strategy for that case:

- every page of the card listing is fetched,
- cards are grouped by the set code extracted from their card code,
- total_cards is the number of card records seen for the code, so it is only
  as accurate as the listing,
- release dates are estimated from the game's launch date plus a fixed number
  of months per set number, and flagged as estimated.
"""

import re
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import date
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from carddex.filtering.age import SetFilterOptions, passes_min_set_number, set_number
from carddex.filtering.dates import add_months
from carddex.models.catalog import CachedSet, GameSlug
from carddex.models.results import PopulateSetsResult
from carddex.providers.common import (
    PageFetcher,
    Sleep,
    catalog_failure,
    fetch_all_pages,
    store_sets,
)
from carddex.providers.rate_limits import rate_limit_seconds


@dataclass(frozen=True)
class DerivedSetStrategy:
    """
    How one provider's sets are derived from its cards.

    Attributes:
        game: Game the provider serves
        series: Series name stored on every derived set
        launch_date: Release date of the game's first set
        months_per_set: Estimated gap between numbered sets
        code_pattern: Regex whose first group is the set code in a card code
        card_code: Reads the card code from a raw card record
        set_name: Reads the set's display name from a raw card record, if any
        fallback_name: Format string for sets without a name, given ``code``
    """

    game: GameSlug
    series: str
    launch_date: date
    months_per_set: int
    code_pattern: re.Pattern[str]
    card_code: Callable[[dict[str, Any]], str]
    set_name: Callable[[dict[str, Any]], str | None]
    fallback_name: str = "{code}"

    def set_code(self, card_code: str | None) -> str | None:
        """Extract the set code from a card code, upper-cased."""
        if not card_code:
            return None
        match = self.code_pattern.match(card_code)
        return match.group(1).upper() if match else None

    def estimate_release_date(self, set_code: str) -> str:
        """
        Approximate release date for a numbered set.

        Set n is assumed to release (n - 1) * months_per_set months after
        launch. Codes without a number get the launch date. This is an
        estimate for age filtering, not a fact to display.
        """
        number = set_number(set_code)
        if number is None or number < 1:
            return self.launch_date.isoformat()
        return add_months(self.launch_date, (number - 1) * self.months_per_set).isoformat()

    def group_sets(self, records: Iterable[dict[str, Any]]) -> list[CachedSet]:
        """Build one CachedSet per distinct set code, in first-seen order."""
        names: dict[str, str | None] = {}
        counts: dict[str, int] = {}

        for record in records:
            code = self.set_code(self.card_code(record))
            if code is None:
                continue
            counts[code] = counts.get(code, 0) + 1
            if not names.get(code):
                names[code] = self.set_name(record)

        return [
            CachedSet(
                set_id=code,
                game_slug=self.game,
                name=names.get(code) or self.fallback_name.format(code=code),
                series=self.series,
                release_date=self.estimate_release_date(code),
                total_cards=count,
                release_date_estimated=True,
            )
            for code, count in counts.items()
        ]

    def cards_in_set(self, records: Iterable[dict[str, Any]], set_id: str) -> list[dict[str, Any]]:
        """Keep the raw card records whose code belongs to ``set_id``."""
        wanted = set_id.upper()
        return [r for r in records if self.set_code(self.card_code(r)) == wanted]

    async def populate_sets(
        self,
        session: AsyncSession,
        fetch_page: PageFetcher,
        options: SetFilterOptions,
        sleep: Sleep,
    ) -> PopulateSetsResult:
        """
        Fetch the whole card listing, derive sets, filter and cache them.

        A failure while fetching the listing aborts with that single error.
        """
        try:
            records = await fetch_all_pages(fetch_page, sleep, rate_limit_seconds(self.game))
        except Exception as e:
            return catalog_failure(self.game, e)

        kept: list[CachedSet] = []
        skipped = 0
        for cached_set in self.group_sets(records):
            if passes_min_set_number(cached_set.set_id, options.min_set_number):
                kept.append(cached_set)
            else:
                skipped += 1

        return await store_sets(session, self.game, kept, options.cutoff(), sleep, skipped=skipped)
