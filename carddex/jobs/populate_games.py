"""
Job to populate the catalog cache from the provider APIs.

Populates sets and then cards for one game or for all of them. Safe to re-run:
a run that stops partway is resumed by running it again.

    python -m carddex.jobs.populate_games onepiece --max-sets 2
"""

import argparse
import asyncio
import logging
from typing import cast

from carddex.db.database import async_session_factory, init_db
from carddex.models.catalog import ALL_GAMES, GameSlug
from carddex.models.results import PopulateGameResult, PopulationOverview
from carddex.providers.common import Sleep
from carddex.providers.http import build_client
from carddex.services.population import get_population_status, populate_game_data

logger = logging.getLogger(__name__)


async def run_population(
    games: list[GameSlug] | None = None,
    max_sets: int | None = None,
    max_age_months: int | None = None,
    sleep: Sleep = asyncio.sleep,
) -> dict[str, PopulateGameResult]:
    """
    Populate each game in turn.

    Args:
        games: Games to populate. If None, populates every game.
        max_sets: Cap on sets whose cards are fetched, per game
        max_age_months: Skip sets older than this

    Returns:
        Dict mapping game slug to its run result
    """
    if games is None:
        games = list(ALL_GAMES)

    results: dict[str, PopulateGameResult] = {}

    async with build_client() as client:
        for game in games:
            logger.info("Populating %s...", game.value)
            async with async_session_factory() as session:
                results[game.value] = await populate_game_data(
                    session,
                    client,
                    game,
                    max_sets=max_sets,
                    max_age_months=max_age_months,
                    sleep=sleep,
                )

    failed = [slug for slug, result in results.items() if not result.success]
    logger.info(
        "Population complete. %d cards across %d games, %d with errors",
        sum(r.cards_processed for r in results.values()),
        len(results),
        len(failed),
    )
    return results


async def log_status() -> PopulationOverview:
    """Log what is cached per game after a run."""
    async with async_session_factory() as session:
        overview = cast(PopulationOverview, await get_population_status(session))

    for slug, status in overview.by_game.items():
        logger.info("%s: %d sets, %d cards", slug, status.set_count, status.card_count)
    logger.info("Total: %d sets, %d cards", overview.total_sets, overview.total_cards)
    return overview


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Populate the card catalog cache")
    parser.add_argument(
        "game",
        nargs="?",
        choices=[g.value for g in ALL_GAMES],
        help="Game to populate (default: all games)",
    )
    parser.add_argument("--max-sets", type=int, default=None, help="Limit sets per game")
    parser.add_argument(
        "--max-age-months", type=int, default=None, help="Skip sets older than this"
    )
    return parser.parse_args(argv)


async def _main(args: argparse.Namespace) -> None:
    await init_db()
    games = [GameSlug(args.game)] if args.game else None
    await run_population(games, max_sets=args.max_sets, max_age_months=args.max_age_months)
    await log_status()


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for catalog population."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    asyncio.run(_main(parse_args(argv)))


if __name__ == "__main__":
    main()
