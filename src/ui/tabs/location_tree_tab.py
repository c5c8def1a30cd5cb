"""Location tree view with rolled-up item counts and values."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import TYPE_CHECKING

from PyQt6.QtCore import Qt, QTimer
from PyQt6.QtWidgets import (
    QAbstractItemView,
    QFileDialog,
    QHBoxLayout,
    QLabel,
    QLineEdit,
    QPushButton,
    QTreeWidget,
    QTreeWidgetItem,
    QVBoxLayout,
    QWidget,
)

from engine import reachable_ids
from export import CSVExporter
from ui.signal_bus import get_signal_bus
from ui.styles import AppStyles
from utils.exceptions import ExportError
from utils.metrics import MetricCategories, get_metrics

if TYPE_CHECKING:
    from models.app import FlatNode, InventorySnapshot, LocationRollup
    from services.location_service import LocationService

logger = logging.getLogger(__name__)

LOCATION_ID_ROLE = Qt.ItemDataRole.UserRole
UNREACHABLE_GROUP_LABEL = "Unreachable locations"


class LocationTreeTab(QWidget):
    """Hierarchical view of the property's locations.

    Each row shows the location's item count, value and book value summed
    over its whole subtree. Locations on a parent cycle or cut off from every
    root are flagged and listed in a separate "Unreachable" group.
    """

    COLUMNS = ["Location", "Items", "Value", "Book Value"]

    def __init__(
        self,
        location_service: LocationService,
        exporter: CSVExporter | None = None,
        property_id: str | None = None,
        parent: QWidget | None = None,
    ):
        super().__init__(parent)
        self._signal_bus = get_signal_bus()
        self._location_service = location_service
        self._exporter = exporter or CSVExporter()
        self._property_id = property_id
        self._background_tasks: set[asyncio.Task] = set()

        self._snapshot: InventorySnapshot | None = None
        self._rollups: dict[str, LocationRollup] = {}
        self._expanded: set[str] = set()
        self._query: str = ""
        self._is_refreshing: bool = False  # Guard against concurrent refreshes
        self._rebuilding: bool = False  # Suppresses expand/collapse tracking

        self._setup_ui()
        self._connect_signals()

    def _setup_ui(self) -> None:
        """Setup UI layout and widgets."""
        main_layout = QVBoxLayout(self)

        toolbar_layout = QHBoxLayout()
        self._search_edit = QLineEdit()
        self._search_edit.setPlaceholderText("Search locations...")
        self._search_edit.setClearButtonEnabled(True)
        self._search_edit.setStyleSheet(AppStyles.LINE_EDIT)
        toolbar_layout.addWidget(self._search_edit, 1)

        self._refresh_btn = QPushButton("Refresh")
        toolbar_layout.addWidget(self._refresh_btn)
        self._export_btn = QPushButton("Export CSV")
        self._export_btn.setEnabled(False)
        toolbar_layout.addWidget(self._export_btn)
        main_layout.addLayout(toolbar_layout)

        self._warning_label = QLabel()
        self._warning_label.setStyleSheet(AppStyles.LABEL_WARNING)
        self._warning_label.setWordWrap(True)
        self._warning_label.hide()
        main_layout.addWidget(self._warning_label)

        self._tree = QTreeWidget()
        self._tree.setHeaderLabels(self.COLUMNS)
        self._tree.setColumnCount(len(self.COLUMNS))
        self._tree.setAlternatingRowColors(True)
        self._tree.setSelectionMode(QAbstractItemView.SelectionMode.ExtendedSelection)
        main_layout.addWidget(self._tree)

        self._summary_label = QLabel("No data loaded")
        self._summary_label.setStyleSheet(AppStyles.LABEL_INFO)
        main_layout.addWidget(self._summary_label)

    def _connect_signals(self) -> None:
        """Connect signals to slots."""
        self._signal_bus.snapshot_loaded.connect(self.set_snapshot)
        self._search_edit.textChanged.connect(self._on_search_changed)
        self._refresh_btn.clicked.connect(self._on_refresh_clicked)
        self._export_btn.clicked.connect(self._on_export_clicked)
        self._tree.itemExpanded.connect(self._on_item_expanded)
        self._tree.itemCollapsed.connect(self._on_item_collapsed)
        self._tree.itemSelectionChanged.connect(self._on_selection_changed)

    # ------------------------------------------------------------------
    # Data
    # ------------------------------------------------------------------

    def set_snapshot(self, snapshot: InventorySnapshot) -> None:
        """Show a freshly loaded snapshot.

        The first snapshot opens every level; later ones keep the user's
        expansion state.
        """
        first_load = self._snapshot is None
        self._snapshot = snapshot
        self._rollups = self._location_service.compute_rollups(snapshot)
        if first_load:
            index = self._location_service.build_index(snapshot)
            self._expanded = {loc.id for loc in index if index.has_children(loc.id)}
        self._export_btn.setEnabled(True)
        self._rebuild()

    @property
    def expanded_ids(self) -> set[str]:
        return set(self._expanded)

    def _rebuild(self) -> None:
        """Re-render the tree from the flattened node list."""
        if self._snapshot is None:
            return

        with get_metrics().time_operation(f"{MetricCategories.UI}.location_tree_rebuild"):
            nodes = self._location_service.flatten(
                self._snapshot, expanded=self._expanded, query=self._query or None
            )

            self._rebuilding = True
            try:
                self._tree.clear()
                self._populate(nodes)
            finally:
                self._rebuilding = False

        self._update_warning()
        self._update_summary(nodes)

    def _populate(self, nodes: list[FlatNode]) -> None:
        # Open parent item per depth of the current branch
        branch: list[QTreeWidgetItem] = []
        unreachable_group: QTreeWidgetItem | None = None
        to_expand: list[QTreeWidgetItem] = []

        for node in nodes:
            if node.unreachable:
                if unreachable_group is None:
                    unreachable_group = QTreeWidgetItem(self._tree, [UNREACHABLE_GROUP_LABEL])
                    unreachable_group.setToolTip(
                        0, "Locations whose parent is missing or part of a cycle"
                    )
                    to_expand.append(unreachable_group)
                item = QTreeWidgetItem(unreachable_group, self._row_values(node))
            else:
                del branch[node.depth :]
                parent = branch[-1] if branch else None
                item = QTreeWidgetItem(
                    parent if parent is not None else self._tree, self._row_values(node)
                )
                branch.append(item)

            item.setData(0, LOCATION_ID_ROLE, node.location_id)
            self._decorate(item, node)
            if node.has_children and not node.is_expanded and not node.unreachable:
                item.setChildIndicatorPolicy(
                    QTreeWidgetItem.ChildIndicatorPolicy.ShowIndicator
                )
            if node.is_expanded:
                to_expand.append(item)

        for item in to_expand:
            item.setExpanded(True)

        for column in range(len(self.COLUMNS)):
            self._tree.resizeColumnToContents(column)

    def _row_values(self, node: FlatNode) -> list[str]:
        rollup = self._rollups.get(node.location_id)
        if rollup is None:
            return [node.location.name, "0", "0.00", "0.00"]
        return [
            node.location.name,
            str(rollup.item_count),
            f"{rollup.total_value:,.2f}",
            f"{rollup.total_book_value:,.2f}",
        ]

    def _decorate(self, item: QTreeWidgetItem, node: FlatNode) -> None:
        rollup = self._rollups.get(node.location_id)
        if rollup is not None and rollup.in_cycle:
            item.setText(0, f"{node.location.name} (cycle)")
            item.setToolTip(
                0, "Part of a parent cycle: totals leave out the cyclic link"
            )
        elif rollup is not None:
            item.setToolTip(
                0,
                f"{rollup.direct_item_count} item(s) stored here, "
                f"{rollup.item_count} including sub-locations",
            )
        if node.matched:
            font = item.font(0)
            font.setBold(True)
            item.setFont(0, font)

    def _update_warning(self) -> None:
        if self._snapshot is None:
            self._warning_label.hide()
            return
        index = self._location_service.build_index(self._snapshot)
        cycle_count = sum(1 for rollup in self._rollups.values() if rollup.in_cycle)
        unreachable_count = len(index) - len(reachable_ids(index))

        problems = []
        if cycle_count:
            problems.append(f"{cycle_count} location(s) on a parent cycle")
        if unreachable_count:
            problems.append(f"{unreachable_count} location(s) not reachable from a root")
        if problems:
            self._warning_label.setText("Data issues: " + "; ".join(problems))
            self._warning_label.show()
        else:
            self._warning_label.clear()
            self._warning_label.hide()

    def _update_summary(self, nodes: list[FlatNode]) -> None:
        if self._snapshot is None:
            return
        shown = len(nodes)
        item_total = len(self._snapshot.items)
        if self._query:
            self._summary_label.setText(
                f"{shown} location(s) match '{self._query}' | {item_total} item(s) total"
            )
        else:
            self._summary_label.setText(
                f"{len(self._snapshot.locations)} location(s) | {item_total} item(s)"
            )

    @property
    def warning_text(self) -> str:
        return self._warning_label.text()

    def visible_location_ids(self) -> list[str]:
        """Location ids of every rendered row, in display order."""
        ids: list[str] = []

        def walk(item: QTreeWidgetItem) -> None:
            location_id = item.data(0, LOCATION_ID_ROLE)
            if location_id is not None:
                ids.append(location_id)
            for i in range(item.childCount()):
                walk(item.child(i))

        for i in range(self._tree.topLevelItemCount()):
            walk(self._tree.topLevelItem(i))
        return ids

    def selected_location_ids(self) -> list[str]:
        return [
            location_id
            for item in self._tree.selectedItems()
            if (location_id := item.data(0, LOCATION_ID_ROLE)) is not None
        ]

    # ------------------------------------------------------------------
    # Slots
    # ------------------------------------------------------------------

    def _on_search_changed(self, text: str) -> None:
        self._query = text.strip()
        self._rebuild()

    def _on_item_expanded(self, item: QTreeWidgetItem) -> None:
        if self._rebuilding:
            return
        location_id = item.data(0, LOCATION_ID_ROLE)
        if location_id is None:
            return
        self._expanded.add(location_id)
        # Children of a collapsed node are not rendered yet
        if item.childCount() == 0:
            QTimer.singleShot(0, self._rebuild)

    def _on_item_collapsed(self, item: QTreeWidgetItem) -> None:
        if self._rebuilding:
            return
        location_id = item.data(0, LOCATION_ID_ROLE)
        if location_id is not None:
            self._expanded.discard(location_id)

    def _on_selection_changed(self) -> None:
        self._signal_bus.location_selection_changed.emit(self.selected_location_ids())

    def _on_refresh_clicked(self) -> None:
        """Handle refresh button click."""
        task = asyncio.create_task(self.refresh())
        self._background_tasks.add(task)
        task.add_done_callback(self._background_tasks.discard)

    async def refresh(self) -> None:
        """Reload the snapshot from the backend."""
        # Guard against concurrent refreshes
        if self._is_refreshing:
            logger.debug("Location tree refresh already in progress, skipping")
            return

        self._is_refreshing = True
        try:
            self._refresh_btn.setEnabled(False)
            self._refresh_btn.setText("Loading...")
            snapshot = await self._location_service.load_snapshot(self._property_id)
            self._signal_bus.snapshot_loaded.emit(snapshot)
            self._signal_bus.status_message.emit(
                f"Loaded {len(snapshot.locations)} locations"
            )
        except Exception as e:
            logger.error("Error refreshing location tree: %s", e, exc_info=True)
            self._signal_bus.error_occurred.emit(str(e))
        finally:
            self._is_refreshing = False
            self._refresh_btn.setEnabled(True)
            self._refresh_btn.setText("Refresh")

    def _on_export_clicked(self) -> None:
        path, _ = QFileDialog.getSaveFileName(
            self, "Export location rollups", "locations.csv", "CSV files (*.csv)"
        )
        if not path:
            return
        try:
            written = self.export_csv(path)
        except Exception as e:
            logger.error("Location export failed: %s", e, exc_info=True)
            self._signal_bus.error_occurred.emit(str(e))
            return
        self._signal_bus.status_message.emit(f"Exported locations to {written}")

    def export_csv(self, path: str | Path) -> Path:
        """Write the rollup table of the current snapshot to ``path``."""
        if self._snapshot is None:
            raise ExportError("No snapshot loaded")
        result = self._exporter.export_location_rollups(self._snapshot, path=path)
        return Path(result)
