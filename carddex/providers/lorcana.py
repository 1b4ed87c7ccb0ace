"""
Disney Lorcana catalog from lorcast.com.

Sets carry no card count, so total_cards stays 0 until cards are cached.

API: https://lorcast.com/docs/api
"""

from typing import Any

import httpx
from sqlalchemy.ext.asyncio import AsyncSession

from carddex.filtering.age import SetFilterOptions
from carddex.filtering.dates import normalize_release_date
from carddex.filtering.normalize import clean_text, normalize_rarity, normalize_types, parse_price
from carddex.models.catalog import CachedCard, CachedSet, GameSlug
from carddex.models.results import PopulateCardsResult, PopulateSetsResult
from carddex.providers.common import Sleep, catalog_failure, store_cards, store_sets
from carddex.providers.http import fetch_json

LORCAST_API = "https://api.lorcast.com/v0"
DEFAULT_RELEASE_DATE = "2023-08-18"


def map_set(raw: dict[str, Any]) -> CachedSet:
    set_id = str(raw.get("code") or raw["id"])
    return CachedSet(
        set_id=set_id,
        game_slug=GameSlug.LORCANA,
        name=raw.get("name") or set_id,
        series="Disney Lorcana",
        release_date=normalize_release_date(raw.get("released_at"), DEFAULT_RELEASE_DATE),
        total_cards=0,
    )


def card_name(raw: dict[str, Any]) -> str:
    """'Elsa - Snow Queen' style name: base name plus the version subtitle."""
    name = raw.get("name", "")
    subtitle = clean_text(raw.get("version") or raw.get("subtitle"))
    return f"{name} - {subtitle}" if subtitle else name


def map_card(raw: dict[str, Any], set_id: str) -> CachedCard:
    set_code = str((raw.get("set") or {}).get("code") or set_id)
    images = (raw.get("image_uris") or {}).get("digital") or {}
    card_types = normalize_types(raw.get("type"))

    return CachedCard(
        card_id=f"{set_code}-{raw['collector_number']}",
        game_slug=GameSlug.LORCANA,
        set_id=set_id,
        name=card_name(raw),
        number=str(raw["collector_number"]),
        supertype="/".join(card_types) or "Character",
        subtypes=normalize_types(raw.get("classifications")),
        types=normalize_types([raw.get("ink")]),
        rarity=normalize_rarity(raw.get("rarity")),
        image_small=images.get("small") or "",
        image_large=images.get("large") or "",
        price_market=parse_price((raw.get("prices") or {}).get("usd")),
    )


class LorcanaProvider:
    """Populates Lorcana sets and cards."""

    game = GameSlug.LORCANA

    def __init__(self, session: AsyncSession, client: httpx.AsyncClient, sleep: Sleep) -> None:
        self._session = session
        self._client = client
        self._sleep = sleep

    async def populate_sets(self, options: SetFilterOptions) -> PopulateSetsResult:
        try:
            data = await fetch_json(self._client, f"{LORCAST_API}/sets")
        except Exception as e:
            return catalog_failure(self.game, e)

        return await store_sets(
            self._session,
            self.game,
            data.get("results", []),
            options.cutoff(),
            self._sleep,
            map_record=map_set,
        )

    async def populate_cards(self, set_id: str, set_name: str | None = None) -> PopulateCardsResult:
        async def load_cards() -> list[CachedCard]:
            data = await fetch_json(
                self._client,
                f"{LORCAST_API}/cards/search",
                params={"q": f"set:{set_id}"},
            )
            return [map_card(raw, set_id) for raw in data.get("results", [])]

        return await store_cards(self._session, self.game, set_id, load_cards)
