from carddex.models.catalog import ALL_GAMES, CachedCard, CachedSet, GameSlug, PrintStatus
from carddex.models.results import (
    BatchUpsertResult,
    ClearCacheResult,
    MarkPrintStatusResult,
    PopulateCardsResult,
    PopulateGameResult,
    PopulateSetsResult,
    PopulationOverview,
    PopulationStatus,
    PrintStatusUpdateResult,
    UpsertAction,
)

__all__ = [
    "ALL_GAMES",
    "BatchUpsertResult",
    "CachedCard",
    "CachedSet",
    "ClearCacheResult",
    "GameSlug",
    "MarkPrintStatusResult",
    "PopulateCardsResult",
    "PopulateGameResult",
    "PopulateSetsResult",
    "PopulationOverview",
    "PopulationStatus",
    "PrintStatus",
    "PrintStatusUpdateResult",
    "UpsertAction",
]
