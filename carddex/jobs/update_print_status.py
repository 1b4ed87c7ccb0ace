"""
Scheduled job to refresh set print status from release dates.

Sets older than the out-of-print window become out_of_print, older than the
vintage window become vintage. Manually set statuses are kept.
"""

import asyncio
import logging

from carddex.config import DEFAULT_OUT_OF_PRINT_MONTHS, DEFAULT_VINTAGE_MONTHS
from carddex.db.database import async_session_factory, init_db
from carddex.models.catalog import ALL_GAMES, GameSlug
from carddex.models.results import PrintStatusUpdateResult
from carddex.services.population import update_print_status

logger = logging.getLogger(__name__)


async def run_print_status_update(
    games: list[GameSlug] | None = None,
    out_of_print_months: int = DEFAULT_OUT_OF_PRINT_MONTHS,
    vintage_months: int = DEFAULT_VINTAGE_MONTHS,
) -> dict[str, PrintStatusUpdateResult]:
    """
    Recompute print status for all or specified games.

    Returns:
        Dict mapping game slug to its update tallies
    """
    if games is None:
        games = list(ALL_GAMES)

    results: dict[str, PrintStatusUpdateResult] = {}

    for game in games:
        async with async_session_factory() as session:
            results[game.value] = await update_print_status(
                session, game, out_of_print_months, vintage_months
            )

    changed = sum(
        r.updated_to_vintage + r.updated_to_out_of_print + r.updated_to_current
        for r in results.values()
    )
    logger.info("Print status update complete. %d sets changed", changed)
    return results


async def _main() -> None:
    await init_db()
    await run_print_status_update()


def main() -> None:
    """CLI entry point for the print status update."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    asyncio.run(_main())


if __name__ == "__main__":
    main()
