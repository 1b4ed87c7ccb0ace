"""
Normalization and filtering applied between provider payloads and the cache.

Release dates are normalized to ISO form, sets are filtered by age or set
number before they are cached, and print status is derived from set age.
"""

from carddex.filtering.age import (
    SetFilterOptions,
    passes_age_filter,
    passes_min_set_number,
    set_number,
)
from carddex.filtering.dates import (
    add_months,
    cutoff_date,
    normalize_release_date,
    parse_release_date,
    subtract_months,
)
from carddex.filtering.normalize import (
    clean_text,
    first_present,
    normalize_rarity,
    normalize_types,
    parse_price,
)
from carddex.filtering.print_status import (
    derive_print_status,
    print_status_cutoffs,
    resolve_is_in_print,
)

__all__ = [
    "SetFilterOptions",
    "add_months",
    "clean_text",
    "cutoff_date",
    "derive_print_status",
    "first_present",
    "normalize_rarity",
    "normalize_release_date",
    "normalize_types",
    "parse_price",
    "parse_release_date",
    "passes_age_filter",
    "passes_min_set_number",
    "print_status_cutoffs",
    "resolve_is_in_print",
    "set_number",
    "subtract_months",
]
