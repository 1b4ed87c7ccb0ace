"""
Per-provider request pacing.

Static minimum delays between requests, taken from each API's published or
observed limits. There is no adaptive backoff: a 429 is reported, not retried.
"""

from types import MappingProxyType

from carddex.models.catalog import GameSlug

RATE_LIMITS_MS: MappingProxyType[GameSlug, int] = MappingProxyType(
    {
        GameSlug.POKEMON: 100,  # pokemontcg.io
        GameSlug.YUGIOH: 50,  # ygoprodeck.com - 20 req/sec
        GameSlug.MTG: 100,  # scryfall.com - 10 req/sec
        GameSlug.ONEPIECE: 100,  # optcg-api
        GameSlug.LORCANA: 100,  # lorcast.com - 10 req/sec
        GameSlug.DIGIMON: 700,  # digimoncard.io - 15 req/10sec
        GameSlug.DRAGONBALL: 100,  # apitcg.com
    }
)

# Moving between sets in a full-game run waits this many times the base delay
BETWEEN_SETS_MULTIPLIER = 2


def rate_limit_ms(game: GameSlug | str) -> int:
    """Minimum milliseconds to wait before the next request to a provider."""
    return RATE_LIMITS_MS[GameSlug(game)]


def rate_limit_seconds(game: GameSlug | str) -> float:
    """Same as rate_limit_ms, in seconds for asyncio.sleep."""
    return rate_limit_ms(game) / 1000.0


def between_sets_delay(game: GameSlug | str) -> float:
    return rate_limit_seconds(game) * BETWEEN_SETS_MULTIPLIER
