"""Item valuation: straight-line depreciation and warranty classification.

Depreciation is monthly straight-line:

    months = floor(days_since_purchase / days_per_month), clamped to [0, life]
    base   = max(cost - salvage, 0)
    book   = max(cost - base / life * months, salvage)

``cost`` is the purchase price, falling back to the listed price, then 0.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable
from datetime import UTC, date, datetime
from enum import Enum

from models.inventory import InventoryItem
from utils.config import get_config

logger = logging.getLogger(__name__)


class WarrantyStatus(Enum):
    """Warranty state of an item on a given day."""

    NONE = "none"
    ACTIVE = "active"
    EXPIRING_SOON = "expiring_soon"
    EXPIRED = "expired"


def today() -> date:
    return datetime.now(UTC).date()


def months_elapsed(
    purchase_date: date, as_of: date, days_per_month: float | None = None
) -> int:
    """Whole months between two dates (negative when ``as_of`` is earlier)."""
    if days_per_month is None:
        days_per_month = get_config().analytics.days_per_month
    return math.floor((as_of - purchase_date).days / days_per_month)


def current_book_value(
    item: InventoryItem,
    as_of: date | None = None,
    days_per_month: float | None = None,
) -> float | None:
    """Depreciated value of an item on ``as_of`` (defaults to today).

    Returns None when the item has no purchase date or no positive useful
    life, i.e. when it is not on a depreciation schedule.
    """
    life = item.useful_life_months
    if item.purchase_date is None or not life or life <= 0:
        return None

    as_of = as_of or today()
    cost = item.value
    salvage = item.salvage_value or 0.0

    months = min(max(months_elapsed(item.purchase_date, as_of, days_per_month), 0), life)
    base = max(cost - salvage, 0.0)
    return max(cost - base / life * months, salvage)


def warranty_status(
    item: InventoryItem,
    as_of: date | None = None,
    soon_days: int | None = None,
) -> WarrantyStatus:
    """Classify an item's warranty.

    Args:
        item: Item to classify
        as_of: Reference day (defaults to today)
        soon_days: Days before expiry that count as "expiring soon"
            (defaults to config)

    Returns:
        NONE without an expiry date, EXPIRED once the date has passed,
        EXPIRING_SOON within ``soon_days`` of it, otherwise ACTIVE
    """
    if item.warranty_expires_on is None:
        return WarrantyStatus.NONE
    if soon_days is None:
        soon_days = get_config().analytics.warranty_soon_days

    days_left = (item.warranty_expires_on - (as_of or today())).days
    if days_left < 0:
        return WarrantyStatus.EXPIRED
    if days_left <= soon_days:
        return WarrantyStatus.EXPIRING_SOON
    return WarrantyStatus.ACTIVE


def with_book_values(
    items: Iterable[InventoryItem], as_of: date | None = None
) -> list[InventoryItem]:
    """Copies of ``items`` with ``depreciated_value`` filled in."""
    as_of = as_of or today()
    days_per_month = get_config().analytics.days_per_month
    return [
        item.model_copy(
            update={
                "depreciated_value": current_book_value(item, as_of, days_per_month)
            }
        )
        for item in items
    ]
