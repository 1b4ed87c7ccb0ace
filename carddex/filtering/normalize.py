"""
Field normalizers shared by the provider adapters.

Provider payloads are loosely shaped: fields go missing, come back as empty
strings, or carry prices as strings. These helpers turn that into the
canonical card fields, defaulting instead of raising.
"""

from collections.abc import Iterable
from typing import Any


def clean_text(value: Any) -> str | None:
    """Strip a text value. Empty and non-string values become None."""
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def normalize_types(values: Iterable[Any] | None) -> list[str]:
    """
    Clean an ordered list of types/colors/inks.

    Blank entries are dropped and duplicates removed, first occurrence wins.
    """
    if not values:
        return []

    result: list[str] = []
    for value in values:
        text = clean_text(value)
        if text and text not in result:
            result.append(text)
    return result


def normalize_rarity(value: Any) -> str | None:
    """
    Clean a rarity label.

    Collapses internal whitespace ("Rare  Holo" -> "Rare Holo").
    """
    text = clean_text(value)
    if text is None:
        return None
    return " ".join(text.split())


def parse_price(value: Any) -> float | None:
    """
    Parse a market price.

    Accepts numbers and numeric strings ("1.25"). Missing, blank,
    non-numeric and negative values become None.
    """
    if value is None or isinstance(value, bool):
        return None

    try:
        price = float(value)
    except (TypeError, ValueError):
        return None

    if price != price or price < 0:  # NaN
        return None
    return price


def first_present(*values: Any) -> Any:
    """Return the first value that is not None."""
    for value in values:
        if value is not None:
            return value
    return None
