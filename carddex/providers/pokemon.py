"""
Pokémon TCG catalog from pokemontcg.io.

Sets come from /v2/sets with native release dates ("1999/01/09"). Cards are
queried per set and paged by totalCount.

API: https://docs.pokemontcg.io
"""

import math
from typing import Any

import httpx
from sqlalchemy.ext.asyncio import AsyncSession

from carddex.config import settings
from carddex.filtering.age import SetFilterOptions
from carddex.filtering.dates import normalize_release_date
from carddex.filtering.normalize import (
    clean_text,
    first_present,
    normalize_rarity,
    normalize_types,
    parse_price,
)
from carddex.models.catalog import CachedCard, CachedSet, GameSlug
from carddex.models.results import PopulateCardsResult, PopulateSetsResult
from carddex.providers.common import (
    Sleep,
    catalog_failure,
    fetch_all_pages,
    store_cards,
    store_sets,
)
from carddex.providers.http import fetch_json
from carddex.providers.rate_limits import rate_limit_seconds

POKEMON_API = "https://api.pokemontcg.io/v2"
PAGE_SIZE = 250
DEFAULT_RELEASE_DATE = "1999-01-09"


def _api_headers() -> dict[str, str]:
    if settings.pokemon_tcg_api_key:
        return {"X-Api-Key": settings.pokemon_tcg_api_key}
    return {}


def map_set(raw: dict[str, Any]) -> CachedSet:
    images = raw.get("images") or {}
    return CachedSet(
        set_id=raw["id"],
        game_slug=GameSlug.POKEMON,
        name=raw.get("name") or raw["id"],
        series=raw.get("series") or "Unknown",
        release_date=normalize_release_date(raw.get("releaseDate"), DEFAULT_RELEASE_DATE),
        total_cards=raw.get("total") or 0,
        logo_url=images.get("logo"),
        symbol_url=images.get("symbol"),
    )


def extract_price(raw: dict[str, Any]) -> float | None:
    """Normal market price, falling back to holofoil."""
    prices = (raw.get("tcgplayer") or {}).get("prices") or {}
    normal = (prices.get("normal") or {}).get("market")
    holofoil = (prices.get("holofoil") or {}).get("market")
    return parse_price(first_present(normal, holofoil))


def map_card(raw: dict[str, Any], set_id: str) -> CachedCard:
    images = raw.get("images") or {}
    return CachedCard(
        card_id=raw["id"],
        game_slug=GameSlug.POKEMON,
        set_id=(raw.get("set") or {}).get("id") or set_id,
        name=raw.get("name", ""),
        number=str(raw.get("number", "")),
        supertype=raw.get("supertype") or "Pokémon",
        subtypes=normalize_types(raw.get("subtypes")),
        types=normalize_types(raw.get("types")),
        rarity=normalize_rarity(raw.get("rarity")),
        image_small=images.get("small") or "",
        image_large=images.get("large") or "",
        tcgplayer_url=clean_text((raw.get("tcgplayer") or {}).get("url")),
        price_market=extract_price(raw),
    )


class PokemonProvider:
    """Populates Pokémon sets and cards."""

    game = GameSlug.POKEMON

    def __init__(self, session: AsyncSession, client: httpx.AsyncClient, sleep: Sleep) -> None:
        self._session = session
        self._client = client
        self._sleep = sleep

    async def populate_sets(self, options: SetFilterOptions) -> PopulateSetsResult:
        try:
            data = await fetch_json(self._client, f"{POKEMON_API}/sets", headers=_api_headers())
        except Exception as e:
            return catalog_failure(self.game, e)

        return await store_sets(
            self._session,
            self.game,
            data.get("data", []),
            options.cutoff(),
            self._sleep,
            map_record=map_set,
        )

    async def populate_cards(self, set_id: str, set_name: str | None = None) -> PopulateCardsResult:
        async def fetch_page(page: int) -> tuple[list[dict[str, Any]], int]:
            data = await fetch_json(
                self._client,
                f"{POKEMON_API}/cards",
                headers=_api_headers(),
                params={"q": f"set.id:{set_id}", "pageSize": PAGE_SIZE, "page": page},
            )
            total = data.get("totalCount") or 0
            return data.get("data", []), max(1, math.ceil(total / PAGE_SIZE))

        async def load_cards() -> list[CachedCard]:
            records = await fetch_all_pages(fetch_page, self._sleep, rate_limit_seconds(self.game))
            return [map_card(raw, set_id) for raw in records]

        return await store_cards(self._session, self.game, set_id, load_cards)
