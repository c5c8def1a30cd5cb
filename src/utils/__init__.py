"""Utility functions and classes for Property Inventory."""

from .config import Config, get_config, reload_config, reset_config
from .di_container import (
    DIContainer,
    DIContainerError,
    ServiceKeys,
    configure_container,
    get_container,
    reset_container,
)
from .exceptions import (
    BackendAuthError,
    BackendError,
    ConfigurationError,
    DataProviderError,
    ExportError,
    InventoryAppError,
    NotFoundError,
    ServiceError,
    ValidationError,
)
from .logging_setup import setup_logging
from .metrics import (
    MetricCategories,
    MetricsCollector,
    get_metrics,
    reset_metrics,
    timed,
)

__all__ = [
    "BackendAuthError",
    "BackendError",
    "Config",
    "ConfigurationError",
    "DIContainer",
    "DIContainerError",
    "DataProviderError",
    "ExportError",
    "InventoryAppError",
    "MetricCategories",
    "MetricsCollector",
    "NotFoundError",
    "ServiceError",
    "ServiceKeys",
    "ValidationError",
    "configure_container",
    "get_config",
    "get_container",
    "get_metrics",
    "reload_config",
    "reset_config",
    "reset_container",
    "reset_metrics",
    "setup_logging",
    "timed",
]
