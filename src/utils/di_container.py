"""Dependency Injection Container for Property Inventory.

Owns the long-lived objects of the application (config, metrics, the
backend client, services) so none of them has to be a module-level global.

Features:
- Service registration (instances and factories)
- Lazy instantiation via factories, cached by default
- Transient factories that build a fresh object per resolve
- Thread-safe access

Usage:
    from utils.di_container import ServiceKeys, configure_container

    container = configure_container()
    locations = container.resolve(ServiceKeys.LOCATION_SERVICE)

    # Swap the backend client in tests
    container.register(ServiceKeys.BACKEND_CLIENT, fake_client)
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from typing import Any, TypeVar

from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)

T = TypeVar("T")
Factory = Callable[["DIContainer"], Any]


class DIContainerError(ConfigurationError):
    """Exception raised when a service cannot be resolved."""

    pass


class DIContainer:
    """Simple dependency injection container.

    Manages service instances and factories for dependency resolution.
    Thread-safe for concurrent access.
    """

    def __init__(self) -> None:
        self._services: dict[str, Any] = {}
        self._factories: dict[str, tuple[Factory, bool]] = {}
        self._lock = threading.RLock()

    def register(self, key: str, instance: Any) -> None:
        """Register a ready-made service instance.

        Args:
            key: Service identifier
            instance: Service instance to register
        """
        with self._lock:
            if key in self._services:
                logger.debug("Overwriting existing service: %s", key)
            self._services[key] = instance
            logger.debug("Registered service: %s", key)

    def register_factory(self, key: str, factory: Factory, singleton: bool = True) -> None:
        """Register a factory for lazy instantiation.

        The factory receives the container so it can resolve its own
        dependencies.

        Args:
            key: Service identifier
            factory: Factory function (container) -> service instance
            singleton: Cache the first result (default) or build anew on
                every resolve
        """
        with self._lock:
            if key in self._factories:
                logger.debug("Overwriting existing factory: %s", key)
            self._factories[key] = (factory, singleton)
            # A new factory supersedes an instance it produced earlier
            self._services.pop(key, None)
            logger.debug("Registered factory: %s (singleton=%s)", key, singleton)

    def resolve(self, key: str) -> Any:
        """Resolve a service by key.

        Raises:
            DIContainerError: If nothing is registered under ``key``
        """
        with self._lock:
            if key in self._services:
                return self._services[key]

            if key in self._factories:
                factory, singleton = self._factories[key]
                logger.debug("Creating service from factory: %s", key)
                instance = factory(self)
                if singleton:
                    self._services[key] = instance
                return instance

            raise DIContainerError(
                f"Service '{key}' not registered. "
                f"Available: {sorted(self.get_registered_keys())}"
            )

    def resolve_optional(self, key: str) -> Any | None:
        """Resolve a service by key, returning None if not registered."""
        try:
            return self.resolve(key)
        except DIContainerError:
            return None

    def is_registered(self, key: str) -> bool:
        with self._lock:
            return key in self._services or key in self._factories

    def is_resolved(self, key: str) -> bool:
        """Whether an instance for ``key`` already exists."""
        with self._lock:
            return key in self._services

    def create(self, cls: type[T], **key_mappings: str) -> T:
        """Instantiate ``cls`` with constructor arguments resolved from the container.

        Example:
            service = container.create(
                LocationService, backend_client=ServiceKeys.BACKEND_CLIENT
            )
        """
        resolved_args = {
            param_name: self.resolve(container_key)
            for param_name, container_key in key_mappings.items()
        }
        return cls(**resolved_args)

    def clear(self) -> None:
        """Clear all registered services and factories.

        Primarily for testing.
        """
        with self._lock:
            self._services.clear()
            self._factories.clear()
            logger.debug("Container cleared")

    def get_registered_keys(self) -> list[str]:
        with self._lock:
            return list(set(self._services) | set(self._factories))

    async def shutdown(self) -> None:
        """Close the backend client if one was created."""
        client = None
        with self._lock:
            client = self._services.get(ServiceKeys.BACKEND_CLIENT)
        if client is not None:
            await client.close()
            logger.debug("Backend client closed")


# Standard service keys for the application
class ServiceKeys:
    """Standard service key constants for the DI container."""

    # Configuration/infrastructure
    CONFIG = "config"
    METRICS = "metrics"
    BACKEND_CLIENT = "backend_client"

    # UI infrastructure
    SIGNAL_BUS = "signal_bus"

    # Business services
    LOCATION_SERVICE = "location_service"
    INVENTORY_SERVICE = "inventory_service"
    ANALYTICS_SERVICE = "analytics_service"
    SETTINGS_SERVICE = "settings_service"

    # Export
    CSV_EXPORTER = "csv_exporter"


# Global singleton container
_container_instance: DIContainer | None = None
_container_lock = threading.Lock()


def get_container() -> DIContainer:
    """Get the global DI container instance."""
    global _container_instance  # noqa: PLW0603
    with _container_lock:
        if _container_instance is None:
            _container_instance = DIContainer()
        return _container_instance


def reset_container() -> None:
    """Reset the global container.

    Primarily for testing.
    """
    global _container_instance  # noqa: PLW0603
    with _container_lock:
        if _container_instance is not None:
            _container_instance.clear()
        _container_instance = None


def configure_container(container: DIContainer | None = None) -> DIContainer:
    """Configure the DI container with default service factories.

    Config and metrics are registered eagerly; everything else is built
    on first resolve.

    Args:
        container: Container to configure (uses global if None)

    Returns:
        Configured container
    """
    if container is None:
        container = get_container()

    from .config import get_config
    from .metrics import get_metrics

    container.register(ServiceKeys.CONFIG, get_config())
    container.register(ServiceKeys.METRICS, get_metrics())

    def signal_bus_factory(c: DIContainer) -> Any:
        from ui.signal_bus import get_signal_bus

        return get_signal_bus()

    container.register_factory(ServiceKeys.SIGNAL_BUS, signal_bus_factory)

    # One client per container: it holds the signed-in session
    def backend_client_factory(c: DIContainer) -> Any:
        from data.clients import BackendClient

        return BackendClient(config=c.resolve(ServiceKeys.CONFIG).backend)

    container.register_factory(ServiceKeys.BACKEND_CLIENT, backend_client_factory)

    def location_service_factory(c: DIContainer) -> Any:
        from services.location_service import LocationService

        return LocationService(
            backend_client=c.resolve(ServiceKeys.BACKEND_CLIENT),
            metrics=c.resolve(ServiceKeys.METRICS),
        )

    container.register_factory(ServiceKeys.LOCATION_SERVICE, location_service_factory)

    def inventory_service_factory(c: DIContainer) -> Any:
        from services.inventory_service import InventoryService

        return InventoryService(
            backend_client=c.resolve(ServiceKeys.BACKEND_CLIENT),
            backend_config=c.resolve(ServiceKeys.CONFIG).backend,
        )

    container.register_factory(ServiceKeys.INVENTORY_SERVICE, inventory_service_factory)

    def analytics_service_factory(c: DIContainer) -> Any:
        from services.analytics_service import AnalyticsService

        return AnalyticsService(
            analytics_config=c.resolve(ServiceKeys.CONFIG).analytics,
            metrics=c.resolve(ServiceKeys.METRICS),
        )

    container.register_factory(ServiceKeys.ANALYTICS_SERVICE, analytics_service_factory)

    def settings_service_factory(c: DIContainer) -> Any:
        from services.settings_service import SettingsService

        return SettingsService(backend_client=c.resolve(ServiceKeys.BACKEND_CLIENT))

    container.register_factory(ServiceKeys.SETTINGS_SERVICE, settings_service_factory)

    def csv_exporter_factory(c: DIContainer) -> Any:
        from export import CSVExporter

        return CSVExporter()

    container.register_factory(ServiceKeys.CSV_EXPORTER, csv_exporter_factory, singleton=False)

    logger.info("DI container configured with default factories")
    return container
