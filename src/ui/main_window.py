"""Main application window."""

import asyncio
import logging
import sys

from PyQt6.QtCore import QTimer
from PyQt6.QtGui import QCloseEvent
from PyQt6.QtWidgets import (
    QApplication,
    QLabel,
    QMainWindow,
    QMessageBox,
    QStatusBar,
    QTabWidget,
)
from qasync import QEventLoop, asyncSlot

from models.app import InventorySnapshot
from ui.signal_bus import get_signal_bus
from ui.styles import apply_theme
from ui.tabs import LocationTreeTab
from utils import ServiceKeys, configure_container, get_config, setup_logging
from utils.exceptions import InventoryAppError

logger = logging.getLogger(__name__)


class MainWindow(QMainWindow):
    """Main application window."""

    def __init__(self):
        super().__init__()

        # Initialize DI container and resolve core services
        self._container = configure_container()
        self._config = self._container.resolve(ServiceKeys.CONFIG)
        self._signal_bus = get_signal_bus()
        self._backend_client = self._container.resolve(ServiceKeys.BACKEND_CLIENT)
        self._location_service = self._container.resolve(ServiceKeys.LOCATION_SERVICE)
        self._analytics_service = self._container.resolve(ServiceKeys.ANALYTICS_SERVICE)

        self._background_tasks: set[asyncio.Task] = set()
        self._snapshot: InventorySnapshot | None = None

        self.setWindowTitle(f"{self._config.app.name} v{self._config.app.version}")
        self.setMinimumSize(900, 600)

        self._setup_ui()
        self._connect_signals()

    def _setup_ui(self) -> None:
        self.tab_widget = QTabWidget()
        self._location_tab = LocationTreeTab(
            self._location_service,
            exporter=self._container.resolve(ServiceKeys.CSV_EXPORTER),
        )
        self.tab_widget.addTab(self._location_tab, "Locations")
        self.tab_widget.setEnabled(False)
        self.setCentralWidget(self.tab_widget)

        status_bar = QStatusBar()
        self._selection_label = QLabel()
        status_bar.addPermanentWidget(self._selection_label)
        self.setStatusBar(status_bar)

    def _connect_signals(self) -> None:
        self._signal_bus.snapshot_loaded.connect(self._on_snapshot_loaded)
        self._signal_bus.location_selection_changed.connect(self._on_selection_changed)
        self._signal_bus.status_message.connect(self._on_status_message)
        self._signal_bus.error_occurred.connect(self._on_error)

    @asyncSlot()
    async def initialize_async(self):
        """Sign in with configured credentials, then load the tree."""
        backend = self._config.backend
        try:
            if backend.email and backend.password:
                user = await self._backend_client.sign_in_with_password(
                    backend.email, backend.password
                )
                self._signal_bus.signed_in.emit(str(user.get("id", "")))
            await self._location_tab.refresh()
        except InventoryAppError as e:
            logger.error("Startup failed: %s", e)
            self._signal_bus.error_occurred.emit(str(e))
        finally:
            self.tab_widget.setEnabled(True)

    def _on_snapshot_loaded(self, snapshot: InventorySnapshot) -> None:
        self._snapshot = snapshot
        self._selection_label.clear()

    def _on_selection_changed(self, location_ids: list[str]) -> None:
        """Show branch analytics for the selected locations."""
        if self._snapshot is None or not location_ids:
            self._selection_label.clear()
            return
        summary = self._analytics_service.summarize(self._snapshot, location_ids)
        text = (
            f"{summary.item_count} item(s) | "
            f"purchase {summary.purchase_total:,.2f} | "
            f"book {summary.book_total:,.2f}"
        )
        if summary.warranty.expiring_soon:
            text += f" | {summary.warranty.expiring_soon} warranty(ies) expiring soon"
        self._selection_label.setText(text)

    def _on_status_message(self, message: str) -> None:
        self.statusBar().showMessage(message, 5000)

    def _on_error(self, message: str) -> None:
        self.statusBar().showMessage(f"Error: {message}", 10000)
        QMessageBox.warning(self, "Error", message)

    def closeEvent(self, event: QCloseEvent) -> None:  # noqa: N802
        """Handle window close event (Qt method override)."""
        for task in self._background_tasks:
            if not task.done():
                task.cancel()

        loop = asyncio.get_event_loop()
        if loop.is_running():
            task = asyncio.ensure_future(self._container.shutdown())
            self._background_tasks.add(task)
            task.add_done_callback(self._background_tasks.discard)
        else:
            loop.run_until_complete(self._container.shutdown())

        event.accept()


def main_window() -> int:
    """Main entry point for the application.

    Returns:
        Exit code
    """
    setup_logging()

    logging.getLogger("asyncio").setLevel(logging.WARNING)
    logging.getLogger("qasync").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)

    config = get_config()
    app = QApplication(sys.argv)
    app.setApplicationName(config.app.name)
    app.setApplicationVersion(config.app.version)
    apply_theme(app)

    # Setup async event loop
    loop = QEventLoop(app)
    asyncio.set_event_loop(loop)

    window = MainWindow()
    window.show()

    # Schedule async initialization after window is shown
    QTimer.singleShot(0, window.initialize_async)

    with loop:
        return loop.run_forever()
