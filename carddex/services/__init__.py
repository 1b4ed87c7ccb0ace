"""
CardDex services.

Population orchestration over the provider adapters and the cache.
"""

from carddex.services.population import (
    clear_game_cache,
    get_population_status,
    populate_game_data,
    populate_set_cards,
    populate_sets,
    update_print_status,
)

__all__ = [
    "clear_game_cache",
    "get_population_status",
    "populate_game_data",
    "populate_set_cards",
    "populate_sets",
    "update_print_status",
]
