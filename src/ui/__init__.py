"""UI package."""

from .main_window import main_window
from .signal_bus import SignalBus, get_signal_bus, reset_signal_bus
from .styles import AppStyles, ColorPalette, apply_theme

__all__ = [
    "AppStyles",
    "ColorPalette",
    "SignalBus",
    "apply_theme",
    "get_signal_bus",
    "main_window",
    "reset_signal_bus",
]
