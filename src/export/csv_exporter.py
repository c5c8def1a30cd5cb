"""CSV export of inventory items and location rollups.

Classes:
    CSVExporter: Builds item and rollup CSVs from a loaded snapshot.

Every export either returns the CSV text (no path given) or writes it to a
file atomically (temp file + rename) and returns the path.
"""

from __future__ import annotations

import csv
import io
import logging
import os
import tempfile
from collections.abc import Iterable, Iterator
from datetime import date
from pathlib import Path
from typing import Any

from engine import LocationIndex, compute_rollups, flatten, location_path
from models.app import InventorySnapshot
from models.inventory import InventoryItem
from services.valuation import (
    current_book_value,
    today,
    warranty_status,
    with_book_values,
)
from utils.exceptions import ExportError
from utils.metrics import MetricCategories, get_metrics

logger = logging.getLogger(__name__)


ITEM_HEADERS = [
    "id",
    "name",
    "location",
    "category",
    "quantity",
    "purchase_price",
    "price",
    "purchase_date",
    "book_value",
    "warranty_expires_on",
    "warranty_status",
    "vendor",
    "serial_number",
    "notes",
]

ROLLUP_HEADERS = [
    "location_id",
    "name",
    "path",
    "depth",
    "direct_item_count",
    "item_count",
    "direct_value",
    "total_value",
    "total_book_value",
    "in_cycle",
    "unreachable",
]

# Leading characters that spreadsheet apps evaluate as formulas
CSV_INJECTION_PREFIXES = ("=", "+", "-", "@", "\t", "\r")


class CSVExporter:
    """Writes snapshot data as CSV.

    Args:
        delimiter: Field delimiter (single character)
        float_precision: Decimal places for money columns
        encoding: File encoding for written files
    """

    def __init__(
        self,
        delimiter: str = ",",
        float_precision: int = 2,
        encoding: str = "utf-8",
    ) -> None:
        if len(delimiter) != 1:
            raise ValueError(f"Delimiter must be a single character, got {delimiter!r}")
        self.delimiter = delimiter
        self.float_precision = float_precision
        self.encoding = encoding

    def export_items(
        self,
        snapshot: InventorySnapshot,
        items: Iterable[InventoryItem] | None = None,
        path: str | Path | None = None,
        as_of: date | None = None,
    ) -> str | Path:
        """Export items with their location breadcrumb and valuation.

        Args:
            snapshot: Snapshot the items belong to (locations, categories)
            items: Items to export; defaults to every item of the snapshot
            path: Output file; when omitted the CSV text is returned
            as_of: Reference day for book values and warranty status

        Returns:
            CSV text, or the written file path
        """
        as_of = as_of or today()
        index = LocationIndex(snapshot.locations)
        selected = snapshot.items if items is None else list(items)

        def rows() -> Iterator[dict[str, Any]]:
            for item in selected:
                yield {
                    "id": self._sanitize_value(item.id),
                    "name": self._sanitize_value(item.name),
                    "location": self._sanitize_value(location_path(index, item.location_id)),
                    "category": self._sanitize_value(snapshot.category_name(item)),
                    "quantity": item.quantity,
                    "purchase_price": self._format_float(item.purchase_price),
                    "price": self._format_float(item.price),
                    "purchase_date": item.purchase_date.isoformat() if item.purchase_date else "",
                    "book_value": self._format_float(current_book_value(item, as_of)),
                    "warranty_expires_on": (
                        item.warranty_expires_on.isoformat() if item.warranty_expires_on else ""
                    ),
                    "warranty_status": warranty_status(item, as_of).value,
                    "vendor": self._sanitize_value(item.vendor),
                    "serial_number": self._sanitize_value(item.serial_number),
                    "notes": self._sanitize_value(item.notes),
                }

        with get_metrics().time_operation(f"{MetricCategories.EXPORT}.items"):
            return self._emit(rows(), ITEM_HEADERS, path)

    def export_location_rollups(
        self,
        snapshot: InventorySnapshot,
        path: str | Path | None = None,
        as_of: date | None = None,
    ) -> str | Path:
        """Export one row per location in tree order, unreachable ones last."""
        index = LocationIndex(snapshot.locations)
        rollups = compute_rollups(index, with_book_values(snapshot.items, as_of))

        def rows() -> Iterator[dict[str, Any]]:
            for node in flatten(index):
                rollup = rollups[node.location_id]
                yield {
                    "location_id": self._sanitize_value(node.location_id),
                    "name": self._sanitize_value(node.location.name),
                    "path": self._sanitize_value(location_path(index, node.location_id)),
                    "depth": node.depth,
                    "direct_item_count": rollup.direct_item_count,
                    "item_count": rollup.item_count,
                    "direct_value": self._format_float(rollup.direct_value),
                    "total_value": self._format_float(rollup.total_value),
                    "total_book_value": self._format_float(rollup.total_book_value),
                    "in_cycle": "yes" if rollup.in_cycle else "no",
                    "unreachable": "yes" if node.unreachable else "no",
                }

        with get_metrics().time_operation(f"{MetricCategories.EXPORT}.rollups"):
            return self._emit(rows(), ROLLUP_HEADERS, path)

    def _emit(
        self,
        rows: Iterator[dict[str, Any]],
        headers: list[str],
        path: str | Path | None,
    ) -> str | Path:
        if path is None:
            buffer = io.StringIO()
            self._write_rows(buffer, rows, headers)
            return buffer.getvalue()
        return self._write_csv_atomic(rows, Path(path), headers)

    def _write_rows(
        self, stream: Any, rows: Iterator[dict[str, Any]], headers: list[str]
    ) -> int:
        writer = csv.DictWriter(
            stream,
            fieldnames=headers,
            delimiter=self.delimiter,
            extrasaction="ignore",
        )
        writer.writeheader()
        count = 0
        for row in rows:
            writer.writerow(row)
            count += 1
        return count

    def _write_csv_atomic(
        self,
        rows: Iterator[dict[str, Any]],
        output_path: Path,
        headers: list[str],
    ) -> Path:
        """Write CSV via a temp file in the target directory, then rename.

        Raises:
            ExportError: If the file cannot be written
        """
        try:
            output_path.parent.mkdir(parents=True, exist_ok=True)
            fd, temp_path = tempfile.mkstemp(
                suffix=".csv.tmp", dir=output_path.parent, text=True
            )
            try:
                with os.fdopen(fd, "w", encoding=self.encoding, newline="") as f:
                    row_count = self._write_rows(f, rows, headers)
                os.replace(temp_path, output_path)
            except Exception:
                try:
                    os.unlink(temp_path)
                except OSError:
                    pass
                raise
        except OSError as e:
            logger.error("Failed to write CSV to %s: %s", output_path, e)
            raise ExportError(f"Failed to write CSV to {output_path}: {e}") from e

        logger.info("Exported %d row(s) to %s", row_count, output_path)
        return output_path

    def _format_float(self, value: float | None) -> str:
        if value is None:
            return ""
        return f"{value:.{self.float_precision}f}"

    def _sanitize_value(self, value: Any) -> str:
        """Text cell safe for spreadsheets.

        Values starting with a formula character get a leading single quote.
        """
        if value is None:
            return ""
        text = str(value)
        if text and text[0] in CSV_INJECTION_PREFIXES:
            return "'" + text
        return text
