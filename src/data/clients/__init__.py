"""HTTP clients for external data sources."""

from .backend_client import BackendClient, eq, in_

__all__ = [
    "BackendClient",
    "eq",
    "in_",
]
