"""Service layer for Property Inventory.

Domain-oriented submodules:
    location_service : snapshot loading, tree engine passes & guarded tree edits
    inventory_service: item listing, branch scoping, edits & photos
    valuation        : depreciation & warranty classification
    analytics_service: branch-scoped valuation summaries
    settings_service : property settings & categories

"""

from .analytics_service import AnalyticsService
from .inventory_service import InventoryService
from .location_service import LocationService
from .settings_service import SettingsService
from .valuation import WarrantyStatus, current_book_value, warranty_status, with_book_values

__all__ = [
    "AnalyticsService",
    "InventoryService",
    "LocationService",
    "SettingsService",
    "WarrantyStatus",
    "current_book_value",
    "warranty_status",
    "with_book_values",
]
