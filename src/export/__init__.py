"""Export of inventory data to external formats."""

from .csv_exporter import CSVExporter

__all__ = [
    "CSVExporter",
]
