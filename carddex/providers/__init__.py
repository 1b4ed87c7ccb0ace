"""Catalog provider adapters, one per game."""

import asyncio

import httpx
from sqlalchemy.ext.asyncio import AsyncSession

from carddex.models.catalog import GameSlug
from carddex.providers.common import ProviderAdapter, Sleep
from carddex.providers.digimon import DigimonProvider
from carddex.providers.dragonball import DragonBallProvider
from carddex.providers.lorcana import LorcanaProvider
from carddex.providers.mtg import MtgProvider
from carddex.providers.onepiece import OnePieceProvider
from carddex.providers.pokemon import PokemonProvider
from carddex.providers.yugioh import YugiohProvider

PROVIDERS: dict[GameSlug, type[ProviderAdapter]] = {
    GameSlug.POKEMON: PokemonProvider,
    GameSlug.YUGIOH: YugiohProvider,
    GameSlug.MTG: MtgProvider,
    GameSlug.ONEPIECE: OnePieceProvider,
    GameSlug.LORCANA: LorcanaProvider,
    GameSlug.DIGIMON: DigimonProvider,
    GameSlug.DRAGONBALL: DragonBallProvider,
}


def get_provider(
    game: GameSlug | str,
    session: AsyncSession,
    client: httpx.AsyncClient,
    sleep: Sleep = asyncio.sleep,
) -> ProviderAdapter:
    """
    Build the adapter for a game.

    Raises:
        ValueError: Unknown game slug
    """
    return PROVIDERS[GameSlug(game)](session, client, sleep)


__all__ = [
    "PROVIDERS",
    "DigimonProvider",
    "DragonBallProvider",
    "LorcanaProvider",
    "MtgProvider",
    "OnePieceProvider",
    "PokemonProvider",
    "ProviderAdapter",
    "YugiohProvider",
    "get_provider",
]
