from .clients import BackendClient

__all__ = [
    "BackendClient",
]
