"""Pantry views: expiry status, filtering and summary figures."""

from __future__ import annotations

import math
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import date

from .catalog import find_ingredient
from .models import CanonicalIngredient, PantryItem

EXPIRY_FILTERS: tuple[str, ...] = ("all", "expiring-soon", "expired", "no-expiry")
DEFAULT_EXPIRING_SOON_DAYS = 3


@dataclass
class ExpiryStatus:
    status: str  # no-expiry | expired | expiring-today | expiring-soon | expiring-week | good
    text: str
    days_left: int | None = None


@dataclass
class PantrySummary:
    total: int
    expiring_soon: int
    expired: int
    fresh_percentage: int


def days_until(expiry: date, today: date | None = None) -> int:
    return (expiry - (today or date.today())).days


def expiry_status(expiry: date | None, today: date | None = None) -> ExpiryStatus:
    """Classify an expiry date relative to today."""
    if expiry is None:
        return ExpiryStatus("no-expiry", "No expiry")

    days = days_until(expiry, today)
    if days < 0:
        return ExpiryStatus("expired", "Expired", days)
    if days <= 1:
        return ExpiryStatus("expiring-today", "Expires today", days)
    if days <= 3:
        return ExpiryStatus("expiring-soon", f"Expires in {days} days", days)
    if days <= 7:
        return ExpiryStatus("expiring-week", f"Expires in {days} days", days)
    return ExpiryStatus("good", f"Expires in {days} days", days)


def is_expiring_soon(
    item: PantryItem,
    today: date | None = None,
    window: int = DEFAULT_EXPIRING_SOON_DAYS,
) -> bool:
    """True if the item expires within ``window`` days (already expired included)."""
    return item.expiry_at is not None and days_until(item.expiry_at, today) <= window


def is_expired(item: PantryItem, today: date | None = None) -> bool:
    return item.expiry_at is not None and days_until(item.expiry_at, today) < 0


def _matches_query(
    item: PantryItem, ingredient: CanonicalIngredient | None, query: str
) -> bool:
    if not query:
        return True
    if ingredient is not None and query in ingredient.name.lower():
        return True
    if item.notes and query in item.notes.lower():
        return True
    return any(query in tag.lower() for tag in item.tags)


def filter_pantry(
    items: Iterable[PantryItem],
    catalog: Sequence[CanonicalIngredient] = (),
    *,
    query: str = "",
    category: str | None = None,
    storage: str | None = None,
    expiry: str = "all",
    today: date | None = None,
    window: int = DEFAULT_EXPIRING_SOON_DAYS,
) -> list[PantryItem]:
    """Filter pantry items the way the pantry screen does.

    The expiring-soon and expired filters only constrain items that carry
    an expiry date; undated items pass through them.
    """
    if expiry not in EXPIRY_FILTERS:
        raise ValueError(
            f"Unknown expiry filter: {expiry!r} (choose from {', '.join(EXPIRY_FILTERS)})"
        )

    needle = query.lower()
    result: list[PantryItem] = []
    for item in items:
        ingredient = find_ingredient(item.ingredient_id, catalog)
        if not _matches_query(item, ingredient, needle):
            continue
        if category and (ingredient is None or ingredient.category != category):
            continue
        if storage and item.storage != storage:
            continue

        match expiry:
            case "expiring-soon" if item.expiry_at is not None:
                keep = is_expiring_soon(item, today, window)
            case "expired" if item.expiry_at is not None:
                keep = is_expired(item, today)
            case "no-expiry":
                keep = item.expiry_at is None
            case _:
                keep = True
        if keep:
            result.append(item)
    return result


def pantry_summary(
    items: Sequence[PantryItem],
    today: date | None = None,
    window: int = DEFAULT_EXPIRING_SOON_DAYS,
) -> PantrySummary:
    """Counts for the pantry overview cards."""
    total = len(items)
    soon = sum(1 for i in items if is_expiring_soon(i, today, window))
    expired = sum(1 for i in items if is_expired(i, today))
    # Expired items also count as expiring soon, so clamp at zero
    fresh = (
        max(math.floor((total - soon - expired) / total * 100 + 0.5), 0) if total else 0
    )
    return PantrySummary(
        total=total,
        expiring_soon=soon,
        expired=expired,
        fresh_percentage=fresh,
    )
