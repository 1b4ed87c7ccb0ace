"""
Magic: The Gathering catalog from Scryfall.

Card search results are cursor-paged: each page carries ``has_more`` and the
absolute ``next_page`` URL to follow.

API: https://scryfall.com/docs/api
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
from carddex.providers.errors import UpstreamError
from carddex.providers.http import fetch_json
from carddex.providers.rate_limits import rate_limit_seconds

SCRYFALL_API = "https://api.scryfall.com"
DEFAULT_RELEASE_DATE = "1993-08-05"

# Set types a collector opens packs of; excludes tokens, promos, memorabilia
COLLECTIBLE_SET_TYPES = frozenset({"core", "expansion", "masters", "draft_innovation", "commander"})

_TYPE_LINE_SEPARATOR = " — "


def map_set(raw: dict[str, Any]) -> CachedSet:
    return CachedSet(
        set_id=raw["code"],
        game_slug=GameSlug.MTG,
        name=raw.get("name") or raw["code"],
        series=raw.get("block") or "Standalone",
        release_date=normalize_release_date(raw.get("released_at"), DEFAULT_RELEASE_DATE),
        total_cards=raw.get("card_count") or 0,
        logo_url=raw.get("icon_svg_uri"),
        symbol_url=raw.get("icon_svg_uri"),
    )


def split_type_line(type_line: str | None) -> tuple[str, list[str]]:
    """
    "Creature — Elf Druid" -> ("Creature", ["Elf", "Druid"]).

    Double-faced cards only use the front face's type line.
    """
    if not type_line:
        return "Unknown", []
    front = type_line.split(" // ")[0]
    supertype, _, rest = front.partition(_TYPE_LINE_SEPARATOR)
    return supertype.strip() or "Unknown", rest.split()


def _image(raw: dict[str, Any], size: str) -> str:
    """Card image, or the front face image for double-faced cards."""
    uris = raw.get("image_uris")
    if not uris:
        faces = raw.get("card_faces") or [{}]
        uris = faces[0].get("image_uris") or {}
    return uris.get(size) or ""


def map_card(raw: dict[str, Any]) -> CachedCard:
    supertype, subtypes = split_type_line(raw.get("type_line"))
    return CachedCard(
        card_id=f"{raw['set']}-{raw['collector_number']}",
        game_slug=GameSlug.MTG,
        set_id=raw["set"],
        name=raw.get("name", ""),
        number=raw["collector_number"],
        supertype=supertype,
        subtypes=subtypes,
        types=normalize_types(raw.get("colors")),
        rarity=normalize_rarity(raw.get("rarity")),
        image_small=_image(raw, "small"),
        image_large=_image(raw, "large"),
        tcgplayer_url=clean_text((raw.get("purchase_uris") or {}).get("tcgplayer")),
        price_market=parse_price((raw.get("prices") or {}).get("usd")),
    )


class MtgProvider:
    """Populates Magic sets and cards."""

    game = GameSlug.MTG

    def __init__(self, session: AsyncSession, client: httpx.AsyncClient, sleep: Sleep) -> None:
        self._session = session
        self._client = client
        self._sleep = sleep

    async def populate_sets(self, options: SetFilterOptions) -> PopulateSetsResult:
        try:
            data = await fetch_json(self._client, f"{SCRYFALL_API}/sets")
        except Exception as e:
            return catalog_failure(self.game, e)

        raw_sets = data.get("data", [])
        skipped = 0
        if options.collectible_only:
            collectible = [s for s in raw_sets if s.get("set_type") in COLLECTIBLE_SET_TYPES]
            skipped = len(raw_sets) - len(collectible)
            raw_sets = collectible

        return await store_sets(
            self._session,
            self.game,
            raw_sets,
            options.cutoff(),
            self._sleep,
            skipped=skipped,
            map_record=map_set,
        )

    async def _search_set(self, set_id: str) -> list[dict[str, Any]]:
        records: list[dict[str, Any]] = []
        url: str | None = f"{SCRYFALL_API}/cards/search"
        params: dict[str, str] | None = {"q": f"set:{set_id}", "unique": "prints"}

        while url:
            try:
                data = await fetch_json(self._client, url, params=params)
            except UpstreamError as e:
                # Scryfall answers 404 when a search matches no cards
                if e.status_code == 404 and not records:
                    return []
                raise

            records.extend(data.get("data", []))

            url = data.get("next_page") if data.get("has_more") else None
            params = None  # next_page already carries the query
            if url:
                await self._sleep(rate_limit_seconds(self.game))

        return records

    async def populate_cards(self, set_id: str, set_name: str | None = None) -> PopulateCardsResult:
        async def load_cards() -> list[CachedCard]:
            return [map_card(raw) for raw in await self._search_set(set_id)]

        return await store_cards(self._session, self.game, set_id, load_cards)
