"""
Set filters applied before sets are written to the cache.

Two independent filters:
- Age cutoff: keep sets released on or after a cutoff date. Sets whose date
  cannot be parsed are always kept (don't filter on bad data).
- Minimum set number: keep sets whose numeric code suffix is at least a
  threshold. Only meaningful for providers whose set codes are numbered
  (One Piece, Digimon, Dragon Ball) and whose dates are estimates anyway.
"""

import re
from dataclasses import dataclass
from datetime import date

from carddex.filtering.dates import cutoff_date, parse_release_date

_SET_NUMBER_PATTERN = re.compile(r"(\d+)$")


@dataclass(frozen=True)
class SetFilterOptions:
    """
    Caller-supplied filters for set population.

    Attributes:
        max_age_months: Skip sets older than this many months (None/0 disables)
        min_set_number: Skip sets numbered below this (derived-set providers only)
        collectible_only: Magic only, skip token/promo/memorabilia set types
    """

    max_age_months: int | None = None
    min_set_number: int | None = None
    collectible_only: bool = True

    def cutoff(self, today: date | None = None) -> date | None:
        return cutoff_date(self.max_age_months, today)


def passes_age_filter(release_date: str | None, cutoff: date | None) -> bool:
    """
    Check a release date against a cutoff.

    Returns True when there is no cutoff, when the date is on or after the
    cutoff, or when the date does not parse.
    """
    if cutoff is None:
        return True

    parsed = parse_release_date(release_date)
    if parsed is None:
        return True

    return parsed >= cutoff


def set_number(set_code: str) -> int | None:
    """
    Numeric suffix of a set code.

    "OP05" -> 5, "BT12" -> 12, "P" -> None.
    """
    match = _SET_NUMBER_PATTERN.search(set_code)
    return int(match.group(1)) if match else None


def passes_min_set_number(set_code: str, min_set_number: int | None) -> bool:
    """Sets without a numeric suffix always pass."""
    if min_set_number is None:
        return True

    number = set_number(set_code)
    if number is None:
        return True

    return number >= min_set_number
