"""
Digimon Card Game catalog from digimoncard.io.

There is no sets endpoint. The full card listing comes back as one plain list
and sets are derived from card number prefixes ("BT1-001" -> "BT1"). The card
search matches on substrings, so its results are filtered to the set locally.

Allowed rate is 15 requests per 10 seconds.
"""

import re
from datetime import date
from typing import Any

import httpx
from sqlalchemy.ext.asyncio import AsyncSession

from carddex.filtering.age import SetFilterOptions
from carddex.filtering.normalize import normalize_rarity, normalize_types
from carddex.models.catalog import CachedCard, GameSlug
from carddex.models.results import PopulateCardsResult, PopulateSetsResult
from carddex.providers.common import Sleep, store_cards
from carddex.providers.derived_sets import DerivedSetStrategy
from carddex.providers.http import fetch_json

DIGIMON_API = "https://digimoncard.io/index.php/api-public"
DIGIMON_IMAGES = "https://images.digimoncard.io/images/cards"
SERIES_FILTER = "Digimon Card Game"

STRATEGY = DerivedSetStrategy(
    game=GameSlug.DIGIMON,
    series="Digimon Card Game",
    launch_date=date(2020, 4, 24),
    months_per_set=3,
    code_pattern=re.compile(r"^([A-Z]+\d*)-", re.IGNORECASE),
    card_code=lambda raw: str(raw.get("id") or raw.get("cardnumber") or ""),
    set_name=lambda raw: None,
    fallback_name="Digimon {code}",
)


def _as_list(data: Any) -> list[dict[str, Any]]:
    # An empty search answers with an {"error": ...} object instead of []
    return data if isinstance(data, list) else []


def map_card(raw: dict[str, Any], set_id: str) -> CachedCard:
    code = raw["id"]
    image = f"{DIGIMON_IMAGES}/{code}.png"
    return CachedCard(
        card_id=f"digimon-{code}",
        game_slug=GameSlug.DIGIMON,
        set_id=set_id,
        name=raw.get("name") or code,
        number=code,
        supertype=raw.get("type") or "Digimon",
        subtypes=normalize_types([raw.get("stage"), raw.get("digi_type"), raw.get("digi_type2")]),
        types=normalize_types([raw.get("color"), raw.get("color2")]),
        rarity=normalize_rarity(raw.get("rarity")),
        image_small=image,
        image_large=image,
    )


class DigimonProvider:
    """Populates Digimon sets (derived) and cards."""

    game = GameSlug.DIGIMON

    def __init__(self, session: AsyncSession, client: httpx.AsyncClient, sleep: Sleep) -> None:
        self._session = session
        self._client = client
        self._sleep = sleep

    async def _fetch_listing(self, page: int) -> tuple[list[dict[str, Any]], int]:
        data = await fetch_json(
            self._client,
            f"{DIGIMON_API}/getAllCards",
            params={"series": SERIES_FILTER, "sort": "card_number", "sortdirection": "asc"},
        )
        return _as_list(data), 1

    async def populate_sets(self, options: SetFilterOptions) -> PopulateSetsResult:
        return await STRATEGY.populate_sets(
            self._session, self._fetch_listing, options, self._sleep
        )

    async def populate_cards(self, set_id: str, set_name: str | None = None) -> PopulateCardsResult:
        async def load_cards() -> list[CachedCard]:
            wanted = set_id.upper()
            data = await fetch_json(
                self._client,
                f"{DIGIMON_API}/search",
                params={"card": wanted, "sort": "code", "sortdirection": "asc"},
            )
            return [map_card(raw, wanted) for raw in STRATEGY.cards_in_set(_as_list(data), wanted)]

        return await store_cards(self._session, self.game, set_id, load_cards)
