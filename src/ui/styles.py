"""Colors and stylesheets for the inventory window.

Usage:
    from ui.styles import AppStyles

    self._search_edit.setStyleSheet(AppStyles.LINE_EDIT)
    apply_theme(app)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar

from PyQt6.QtWidgets import QApplication


@dataclass(frozen=True)
class ColorPalette:
    """Colors shared by the tree tab and the main window."""

    ACCENT: str = "#3b82f6"
    SURFACE: str = "#202225"
    SURFACE_RAISED: str = "#2c2f33"
    TEXT: str = "#e6e6e6"
    TEXT_DIM: str = "#9aa0a6"
    OUTLINE: str = "#4a4d52"
    ISSUE: str = "#e0a030"


COLORS = ColorPalette()


class AppStyles:
    """Stylesheets for the widgets the location tree tab styles directly."""

    # Summary line under the tree
    LABEL_INFO: ClassVar[str] = f"QLabel {{ color: {COLORS.TEXT_DIM}; }}"

    # Data-quality banner (cycles, unreachable locations)
    LABEL_WARNING: ClassVar[str] = (
        f"QLabel {{ color: {COLORS.ISSUE}; font-weight: bold; padding: 2px 0; }}"
    )

    LINE_EDIT: ClassVar[str] = f"""
        QLineEdit {{
            background: {COLORS.SURFACE_RAISED};
            color: {COLORS.TEXT};
            border: 1px solid {COLORS.OUTLINE};
            padding: 3px 6px;
        }}
        QLineEdit:focus {{ border-color: {COLORS.ACCENT}; }}
    """

    GLOBAL_STYLESHEET: ClassVar[str] = (
        f"QWidget {{ background: {COLORS.SURFACE}; color: {COLORS.TEXT}; }}"
    )


def apply_theme(app: QApplication) -> None:
    """Apply the window-wide stylesheet."""
    app.setStyleSheet(AppStyles.GLOBAL_STYLESHEET)
