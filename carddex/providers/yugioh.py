"""
Yu-Gi-Oh! catalog from ygoprodeck.com.

The card search filters by set *name*, while the cache is keyed by set *code*.
Card population therefore needs the name: either passed in by the caller or
read from the cached set row. Sets must be cached before their cards.

API: https://ygoprodeck.com/api-guide/
"""

from typing import Any

import httpx
from sqlalchemy.ext.asyncio import AsyncSession

from carddex.db.operations import get_cached_set
from carddex.filtering.age import SetFilterOptions
from carddex.filtering.dates import normalize_release_date
from carddex.filtering.normalize import normalize_rarity, normalize_types, parse_price
from carddex.models.catalog import CachedCard, CachedSet, GameSlug
from carddex.models.results import PopulateCardsResult, PopulateSetsResult
from carddex.providers.common import Sleep, catalog_failure, store_cards, store_sets
from carddex.providers.errors import SetResolutionError, UpstreamError
from carddex.providers.http import fetch_json

YGOPRODECK_API = "https://db.ygoprodeck.com/api/v7"
DEFAULT_RELEASE_DATE = "1999-01-01"


def map_set(raw: dict[str, Any]) -> CachedSet:
    return CachedSet(
        set_id=raw["set_code"],
        game_slug=GameSlug.YUGIOH,
        name=raw.get("set_name") or raw["set_code"],
        series="Yu-Gi-Oh!",
        release_date=normalize_release_date(raw.get("tcg_date"), DEFAULT_RELEASE_DATE),
        total_cards=raw.get("num_of_cards") or 0,
        logo_url=raw.get("set_image"),
    )


def _printing_in_set(raw: dict[str, Any], set_id: str, set_name: str) -> dict[str, Any] | None:
    """
    The card_sets entry for this set.

    Printing codes look like "LOB-EN001"; match on the code prefix first,
    then on the set name.
    """
    printings = raw.get("card_sets") or []
    prefix = f"{set_id.upper()}-"
    for printing in printings:
        if str(printing.get("set_code", "")).upper().startswith(prefix):
            return printing
    for printing in printings:
        if printing.get("set_name") == set_name:
            return printing
    return None


def map_card(raw: dict[str, Any], set_id: str, set_name: str) -> CachedCard:
    printing = _printing_in_set(raw, set_id, set_name) or {}
    images = (raw.get("card_images") or [{}])[0]
    prices = (raw.get("card_prices") or [{}])[0]

    return CachedCard(
        card_id=f"{raw['id']}-{set_id}",
        game_slug=GameSlug.YUGIOH,
        set_id=set_id,
        name=raw.get("name", ""),
        number=printing.get("set_code") or str(raw["id"]),
        supertype=raw.get("frameType") or "Monster",
        subtypes=[raw.get("race") or "Unknown"],
        types=normalize_types([raw.get("attribute")]),
        rarity=normalize_rarity(printing.get("set_rarity")),
        image_small=images.get("image_url_small") or "",
        image_large=images.get("image_url") or "",
        price_market=parse_price(prices.get("tcgplayer_price")),
    )


class YugiohProvider:
    """Populates Yu-Gi-Oh! sets and cards."""

    game = GameSlug.YUGIOH

    def __init__(self, session: AsyncSession, client: httpx.AsyncClient, sleep: Sleep) -> None:
        self._session = session
        self._client = client
        self._sleep = sleep

    async def populate_sets(self, options: SetFilterOptions) -> PopulateSetsResult:
        try:
            data = await fetch_json(self._client, f"{YGOPRODECK_API}/cardsets.php")
        except Exception as e:
            return catalog_failure(self.game, e)

        return await store_sets(
            self._session, self.game, data, options.cutoff(), self._sleep, map_record=map_set
        )

    async def resolve_set_name(self, set_id: str, set_name: str | None = None) -> str:
        """
        Name the card search needs for a set code.

        Raises:
            SetResolutionError: No name was given and the set is not cached
        """
        if set_name:
            return set_name

        cached = await get_cached_set(self._session, self.game, set_id)
        if cached is None or not cached.name:
            raise SetResolutionError(set_id)
        return cached.name

    async def populate_cards(self, set_id: str, set_name: str | None = None) -> PopulateCardsResult:
        async def load_cards() -> list[CachedCard]:
            name = await self.resolve_set_name(set_id, set_name)
            try:
                data = await fetch_json(
                    self._client,
                    f"{YGOPRODECK_API}/cardinfo.php",
                    params={"cardset": name},
                )
            except UpstreamError as e:
                # ygoprodeck answers 400 when nothing matches the set name
                if e.status_code == 400:
                    raise SetResolutionError(set_id, name) from e
                raise
            return [map_card(raw, set_id, name) for raw in data.get("data", [])]

        return await store_cards(self._session, self.game, set_id, load_cards)
