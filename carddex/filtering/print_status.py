"""
Print status derivation from set age.

Pure functions only. Applying the result to cached sets lives in
carddex.db.operations.auto_update_print_status.
"""

from datetime import date

from carddex.filtering.dates import parse_release_date, subtract_months
from carddex.models.catalog import PrintStatus


def print_status_cutoffs(
    out_of_print_months: int, vintage_months: int, today: date | None = None
) -> tuple[date, date]:
    """
    Compute the (out_of_print, vintage) cutoff dates.

    Sets released before the vintage cutoff are vintage, sets released before
    the out-of-print cutoff are out of print.
    """
    today = today or date.today()
    return (
        subtract_months(today, out_of_print_months),
        subtract_months(today, vintage_months),
    )


def derive_print_status(
    release_date: str | None, out_of_print_cutoff: date, vintage_cutoff: date
) -> PrintStatus | None:
    """
    Classify a set by release date.

    Returns None when the release date does not parse, so the set is left alone.
    """
    released = parse_release_date(release_date)
    if released is None:
        return None

    if released < vintage_cutoff:
        return PrintStatus.VINTAGE
    if released < out_of_print_cutoff:
        return PrintStatus.OUT_OF_PRINT
    return PrintStatus.CURRENT


def resolve_is_in_print(status: PrintStatus, is_in_print: bool | None = None) -> bool:
    """Explicit flag wins, otherwise derived from the status."""
    if is_in_print is not None:
        return is_in_print
    return status.is_in_print
