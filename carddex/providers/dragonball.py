"""
Dragon Ball Super Card Game Fusion World catalog from apitcg.com.

Requires an API key (DRAGONBALL_API_KEY). Sets are derived from card code
prefixes ("FB01-001" -> "FB01").
"""

import re
from datetime import date
from typing import Any

import httpx
from sqlalchemy.ext.asyncio import AsyncSession

from carddex.config import settings
from carddex.filtering.age import SetFilterOptions
from carddex.filtering.normalize import clean_text, normalize_rarity, normalize_types
from carddex.models.catalog import CachedCard, GameSlug
from carddex.models.results import PopulateCardsResult, PopulateSetsResult
from carddex.providers.common import Sleep, fetch_all_pages, store_cards
from carddex.providers.derived_sets import DerivedSetStrategy
from carddex.providers.http import fetch_json
from carddex.providers.rate_limits import rate_limit_seconds

APITCG_API = "https://apitcg.com/api/dragon-ball-fusion"


def _set_name(raw: dict[str, Any]) -> str | None:
    return clean_text((raw.get("set") or {}).get("name"))


STRATEGY = DerivedSetStrategy(
    game=GameSlug.DRAGONBALL,
    series="Dragon Ball Fusion World",
    launch_date=date(2024, 2, 16),
    months_per_set=3,
    code_pattern=re.compile(r"^([A-Z]+\d+)", re.IGNORECASE),
    card_code=lambda raw: str(raw.get("code") or ""),
    set_name=_set_name,
)


def _api_headers() -> dict[str, str]:
    if settings.dragonball_api_key:
        return {"x-api-key": settings.dragonball_api_key}
    return {}


def _features(value: Any) -> list[str]:
    if isinstance(value, str):
        return normalize_types(value.split("/"))
    return normalize_types(value)


def map_card(raw: dict[str, Any], set_id: str) -> CachedCard:
    code = raw["code"]
    images = raw.get("images") or {}
    return CachedCard(
        card_id=f"dragonball-{code}",
        game_slug=GameSlug.DRAGONBALL,
        set_id=set_id,
        name=raw.get("name") or code,
        number=code,
        supertype=raw.get("cardType") or "Battle",
        subtypes=_features(raw.get("features")),
        types=normalize_types([raw.get("color")]),
        rarity=normalize_rarity(raw.get("rarity")),
        image_small=images.get("small") or "",
        image_large=images.get("large") or "",
    )


class DragonBallProvider:
    """Populates Dragon Ball Fusion World sets (derived) and cards."""

    game = GameSlug.DRAGONBALL

    def __init__(self, session: AsyncSession, client: httpx.AsyncClient, sleep: Sleep) -> None:
        self._session = session
        self._client = client
        self._sleep = sleep

    async def _fetch_page(self, page: int) -> tuple[list[dict[str, Any]], int]:
        data = await fetch_json(
            self._client,
            f"{APITCG_API}/cards",
            headers=_api_headers(),
            params={"page": page},
        )
        return data.get("data", []), data.get("totalPages") or 1

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
