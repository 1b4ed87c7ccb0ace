"""
One Piece Card Game catalog from optcg-api.

The API only lists cards. Sets are derived from card code prefixes
("OP05-001" -> "OP05"), see derived_sets.
"""

import re
from datetime import date
from typing import Any

import httpx
from sqlalchemy.ext.asyncio import AsyncSession

from carddex.filtering.age import SetFilterOptions
from carddex.filtering.normalize import clean_text, normalize_rarity, normalize_types
from carddex.models.catalog import CachedCard, GameSlug
from carddex.models.results import PopulateCardsResult, PopulateSetsResult
from carddex.providers.common import Sleep, fetch_all_pages, store_cards
from carddex.providers.derived_sets import DerivedSetStrategy
from carddex.providers.http import fetch_json
from carddex.providers.rate_limits import rate_limit_seconds

OPTCG_API = "https://optcg-api.ryanmichaelhirst.us/api/v1"
PAGE_SIZE = 100


def _set_name(raw: dict[str, Any]) -> str | None:
    card_set = raw.get("set")
    if isinstance(card_set, dict):
        return clean_text(card_set.get("name"))
    return clean_text(card_set)


STRATEGY = DerivedSetStrategy(
    game=GameSlug.ONEPIECE,
    series="One Piece TCG",
    launch_date=date(2022, 7, 22),
    months_per_set=3,
    code_pattern=re.compile(r"^([A-Z]+\d+)", re.IGNORECASE),
    card_code=lambda raw: str(raw.get("code") or ""),
    set_name=_set_name,
)


def _split(value: Any) -> list[str]:
    """'Straw Hat Crew/Supernovas' -> ['Straw Hat Crew', 'Supernovas']."""
    if not value:
        return []
    if isinstance(value, list):
        return normalize_types(value)
    return normalize_types(str(value).split("/"))


def map_card(raw: dict[str, Any], set_id: str) -> CachedCard:
    code = raw["code"]
    image = raw.get("image") or ""
    return CachedCard(
        card_id=f"optcg-{code}",
        game_slug=GameSlug.ONEPIECE,
        set_id=set_id,
        name=raw.get("name") or code,
        number=code,
        supertype=raw.get("type") or "Character",
        subtypes=_split(raw.get("class")),
        types=_split(raw.get("color")),
        rarity=normalize_rarity(raw.get("rarity")),
        image_small=image,
        image_large=image,
    )


class OnePieceProvider:
    """Populates One Piece sets (derived) and cards."""

    game = GameSlug.ONEPIECE

    def __init__(self, session: AsyncSession, client: httpx.AsyncClient, sleep: Sleep) -> None:
        self._session = session
        self._client = client
        self._sleep = sleep

    async def _fetch_page(self, page: int) -> tuple[list[dict[str, Any]], int]:
        data = await fetch_json(
            self._client,
            f"{OPTCG_API}/cards",
            params={"page": page, "per_page": PAGE_SIZE},
        )
        return data.get("data", []), data.get("total_pages") or 1

    async def populate_sets(self, options: SetFilterOptions) -> PopulateSetsResult:
        return await STRATEGY.populate_sets(self._session, self._fetch_page, options, self._sleep)

    async def populate_cards(self, set_id: str, set_name: str | None = None) -> PopulateCardsResult:
        async def load_cards() -> list[CachedCard]:
            records = await fetch_all_pages(
                self._fetch_page, self._sleep, rate_limit_seconds(self.game)
            )
            wanted = set_id.upper()
            return [map_card(raw, wanted) for raw in STRATEGY.cards_in_set(records, wanted)]

        return await store_cards(self._session, self.game, set_id, load_cards)
