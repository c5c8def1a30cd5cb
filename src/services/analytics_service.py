"""Valuation and warranty analytics over selected location branches."""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Iterable
from datetime import date
from typing import TYPE_CHECKING

from engine import LocationIndex, items_in_branches
from models.app import AnalyticsSummary, LocationBreakdown, WarrantyStats
from utils.config import get_config
from utils.metrics import MetricCategories, get_metrics

from .valuation import WarrantyStatus, current_book_value, today, warranty_status

if TYPE_CHECKING:
    from models.app import InventorySnapshot
    from utils.config import AnalyticsConfig
    from utils.metrics import MetricsCollector

logger = logging.getLogger(__name__)


class AnalyticsService:
    """Summaries of the items inside a branch selection.

    Selecting a location includes everything below it; selecting nothing
    yields an empty summary.
    """

    def __init__(
        self,
        analytics_config: AnalyticsConfig | None = None,
        metrics: MetricsCollector | None = None,
    ) -> None:
        self._config = analytics_config or get_config().analytics
        self._metrics = metrics or get_metrics()

    def summarize(
        self,
        snapshot: InventorySnapshot,
        selected_ids: Iterable[str],
        as_of: date | None = None,
    ) -> AnalyticsSummary:
        """Build the analytics summary for a branch selection.

        Args:
            snapshot: Loaded inventory snapshot
            selected_ids: Selected location ids (each implies its subtree)
            as_of: Reference day for depreciation and warranties (default today)

        Returns:
            AnalyticsSummary with totals, per-location breakdown and warranty stats
        """
        as_of = as_of or today()
        selected = list(dict.fromkeys(selected_ids))
        if not selected:
            return AnalyticsSummary(as_of=as_of)

        with self._metrics.time_operation(f"{MetricCategories.ENGINE}.analytics"):
            index = LocationIndex(snapshot.locations)
            scoped = items_in_branches(index, snapshot.items, selected)

            purchase_total = 0.0
            book_total = 0.0
            tracked = 0
            per_location_count: dict[str, int] = defaultdict(int)
            per_location_value: dict[str, float] = defaultdict(float)
            warranty = WarrantyStats()

            for item in scoped:
                purchase_total += item.value
                book = current_book_value(item, as_of, self._config.days_per_month)
                if book is not None:
                    tracked += 1
                    book_total += book

                location_id = item.location_id or ""
                per_location_count[location_id] += 1
                per_location_value[location_id] += item.value

                status = warranty_status(item, as_of, self._config.warranty_soon_days)
                if status is not WarrantyStatus.NONE:
                    warranty.with_warranty += 1
                if status is WarrantyStatus.EXPIRING_SOON:
                    warranty.expiring_soon += 1
                elif status is WarrantyStatus.EXPIRED:
                    warranty.expired += 1

            breakdown = [
                LocationBreakdown(
                    location_id=location_id,
                    location_name=(
                        location.name
                        if (location := index.by_id(location_id)) is not None
                        else ""
                    ),
                    item_count=per_location_count[location_id],
                    value=per_location_value[location_id],
                )
                for location_id in per_location_count
            ]
            breakdown.sort(key=lambda row: row.value, reverse=True)

        logger.debug(
            "Analytics over %d selected location(s): %d items, %.2f purchase, %.2f book",
            len(selected),
            len(scoped),
            purchase_total,
            book_total,
        )
        return AnalyticsSummary(
            as_of=as_of,
            selected_location_ids=selected,
            item_count=len(scoped),
            purchase_total=purchase_total,
            book_total=book_total,
            tracked_count=tracked,
            per_location=breakdown,
            warranty=warranty,
        )
