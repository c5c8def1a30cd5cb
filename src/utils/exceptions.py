"""Custom exception hierarchy for Property Inventory.

Provides structured exception classes for different error scenarios.
"""

from __future__ import annotations


class InventoryAppError(Exception):
    """Base exception for all Property Inventory errors."""

    pass


class ConfigurationError(InventoryAppError):
    """Exception raised for configuration-related errors."""

    pass


class DataProviderError(InventoryAppError):
    """Base exception for data provider errors."""

    pass


class BackendError(DataProviderError):
    """Exception raised when the hosted backend rejects or fails a request."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class BackendAuthError(BackendError):
    """Exception raised for authentication/authorization failures (401/403)."""

    pass


class ServiceError(InventoryAppError):
    """Base exception for service layer errors."""

    pass


class ValidationError(ServiceError):
    """Exception raised when a requested mutation would break an invariant."""

    pass


class NotFoundError(ServiceError):
    """Exception raised when a referenced record does not exist."""

    pass


class ExportError(InventoryAppError):
    """Exception raised when writing an export fails."""

    pass
