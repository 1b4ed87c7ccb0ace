from carddex.db.database import get_session, init_db
from carddex.db.operations import (
    auto_update_print_status,
    batch_upsert_cards,
    cached_card_to_model,
    cached_set_to_model,
    count_cards,
    count_sets,
    delete_cards_by_game,
    delete_sets_by_game,
    get_cached_card,
    get_cached_cards_in_set,
    get_cached_set,
    get_cached_sets,
    get_in_print_sets,
    get_sets_by_game,
    last_card_update,
    mark_sets_print_status,
    search_cards_by_game,
    update_set_print_status,
    upsert_cached_card,
    upsert_cached_set,
)

__all__ = [
    "auto_update_print_status",
    "batch_upsert_cards",
    "cached_card_to_model",
    "cached_set_to_model",
    "count_cards",
    "count_sets",
    "delete_cards_by_game",
    "delete_sets_by_game",
    "get_cached_card",
    "get_cached_cards_in_set",
    "get_cached_set",
    "get_cached_sets",
    "get_in_print_sets",
    "get_sets_by_game",
    "get_session",
    "init_db",
    "last_card_update",
    "mark_sets_print_status",
    "search_cards_by_game",
    "update_set_print_status",
    "upsert_cached_card",
    "upsert_cached_set",
]
