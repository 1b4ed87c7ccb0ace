from dataclasses import dataclass, field
from enum import Enum


class GameSlug(str, Enum):
    """Games with a catalog provider."""

    POKEMON = "pokemon"
    YUGIOH = "yugioh"
    MTG = "mtg"
    ONEPIECE = "onepiece"
    LORCANA = "lorcana"
    DIGIMON = "digimon"
    DRAGONBALL = "dragonball"


ALL_GAMES: tuple[GameSlug, ...] = tuple(GameSlug)


class PrintStatus(str, Enum):
    """Retail availability of a set."""

    CURRENT = "current"
    LIMITED = "limited"
    OUT_OF_PRINT = "out_of_print"
    VINTAGE = "vintage"

    @property
    def is_in_print(self) -> bool:
        """Current and limited sets can still be bought at retail."""
        return self in (PrintStatus.CURRENT, PrintStatus.LIMITED)


@dataclass
class CachedSet:
    """
    One product release for one game.

    Attributes:
        set_id: Provider-native set code (e.g., "sv1", "OP01"), unique per game
        game_slug: Game this set belongs to
        name: Display name
        series: Grouping the provider places the set in (block, series, product line)
        release_date: ISO date (YYYY-MM-DD)
        total_cards: Number of cards, 0 when the provider does not say
        logo_url: Optional logo image
        symbol_url: Optional set symbol image
        release_date_estimated: True when release_date was computed from the
            set number rather than supplied by the provider
    """

    set_id: str
    game_slug: GameSlug
    name: str
    series: str
    release_date: str
    total_cards: int = 0
    logo_url: str | None = None
    symbol_url: str | None = None
    release_date_estimated: bool = False
    print_status: PrintStatus | None = None
    is_in_print: bool | None = None


@dataclass
class CachedCard:
    """
    One printed card within a set.

    card_id is unique across the whole cache. Each provider builds it its own
    way (native id, "{id}-{set}", "{set}-{number}", "optcg-{code}", ...) so that
    reprints in different sets never collide.
    """

    card_id: str
    game_slug: GameSlug
    set_id: str
    name: str
    number: str
    supertype: str
    subtypes: list[str] = field(default_factory=list)
    types: list[str] = field(default_factory=list)
    rarity: str | None = None
    image_small: str = ""
    image_large: str = ""
    tcgplayer_url: str | None = None
    price_market: float | None = None
