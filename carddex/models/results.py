"""
Result objects returned by population operations.

Population never raises for provider or store failures. The ``success`` flag
and the ``errors`` list are the whole failure signal, so callers should look at
the counts as well before deciding to re-run.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Literal

UpsertAction = Literal["inserted", "updated"]


@dataclass
class PopulateSetsResult:
    """Outcome of populating the set catalog for one game."""

    success: bool
    count: int = 0
    skipped: int = 0
    errors: list[str] = field(default_factory=list)


@dataclass
class PopulateCardsResult:
    """Outcome of populating the cards of one set."""

    success: bool
    count: int = 0
    errors: list[str] = field(default_factory=list)


@dataclass
class PopulateGameResult:
    """Outcome of a full sets-then-cards run for one game."""

    success: bool
    sets_processed: int = 0
    sets_skipped: int = 0
    cards_processed: int = 0
    errors: list[str] = field(default_factory=list)


@dataclass
class BatchUpsertResult:
    """Tallies from a batch card upsert."""

    inserted: int = 0
    updated: int = 0
    skipped: int = 0

    @property
    def written(self) -> int:
        """Rows that were inserted or rewritten."""
        return self.inserted + self.updated


@dataclass
class ClearCacheResult:
    sets_deleted: int = 0
    cards_deleted: int = 0


@dataclass
class PopulationStatus:
    """Cache contents for one game."""

    set_count: int
    card_count: int
    last_updated: datetime | None = None


@dataclass
class PopulationOverview:
    """Cache contents across every game."""

    total_sets: int
    total_cards: int
    by_game: dict[str, PopulationStatus] = field(default_factory=dict)


@dataclass
class PrintStatusUpdateResult:
    """Tallies from an automatic print-status pass over one game."""

    game_slug: str
    total_sets: int = 0
    updated_to_vintage: int = 0
    updated_to_out_of_print: int = 0
    updated_to_current: int = 0
    unchanged: int = 0
    out_of_print_cutoff: str = ""
    vintage_cutoff: str = ""


@dataclass
class MarkPrintStatusResult:
    """Outcome of an admin print-status override over several sets."""

    updated_count: int = 0
    not_found_count: int = 0
    requested_count: int = 0
