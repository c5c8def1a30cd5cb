"""Metrics collection and performance instrumentation for Property Inventory.

This module provides a thread-safe metrics collector for timing the engine
passes (index, rollup, flatten), backend requests and UI rendering.
"""

import inspect
import logging
import statistics
import threading
import time
from collections import defaultdict
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from functools import wraps
from typing import TypeVar

F = TypeVar("F", bound=Callable)


class MetricCategories:
    """Pre-defined metric category prefixes."""

    ENGINE = "engine"  # engine.* - tree index, rollup and flatten passes
    BACKEND = "backend"  # backend.* - REST/auth/storage requests
    EXPORT = "export"  # export.* - CSV generation
    UI = "ui"  # ui.* - UI rendering metrics


class MetricsCollector:
    """Collects and reports performance metrics for operations.

    Usage:
        metrics = get_metrics()

        with metrics.time_operation("engine.rollup"):
            compute_rollups(index, items)

        metrics.record("backend.rows_fetched", 42)
        stats = metrics.get_stats("engine.rollup")
        print(metrics.report())
    """

    def __init__(self) -> None:
        self._metrics: dict[str, list[float]] = defaultdict(list)
        self._lock = threading.Lock()

    @contextmanager
    def time_operation(self, operation: str) -> Iterator[None]:
        """Context manager recording the elapsed milliseconds of a block.

        Args:
            operation: Name of the operation being timed
        """
        start = time.perf_counter()
        try:
            yield
        finally:
            self.record(operation, (time.perf_counter() - start) * 1000)

    def record(self, metric: str, value: float) -> None:
        """Record a metric value.

        Args:
            metric: Name of the metric
            value: Value to record
        """
        with self._lock:
            self._metrics[metric].append(value)

    def get_stats(self, metric: str) -> dict:
        """Get statistics for a metric.

        Args:
            metric: Name of the metric

        Returns:
            Dictionary with count, min, max, avg, p50 (median), and p95 percentile
        """
        with self._lock:
            values = sorted(self._metrics.get(metric, []))

        if not values:
            return {"count": 0, "min": 0.0, "max": 0.0, "avg": 0.0, "p50": 0.0, "p95": 0.0}

        count = len(values)
        return {
            "count": count,
            "min": values[0],
            "max": values[-1],
            "avg": statistics.mean(values),
            "p50": values[min(int(count * 0.50), count - 1)],
            "p95": values[min(int(count * 0.95), count - 1)],
        }

    def get_all_metrics(self) -> dict[str, list[float]]:
        """Get a copy of all collected metrics."""
        with self._lock:
            return {k: list(v) for k, v in self._metrics.items()}

    def clear(self) -> None:
        """Clear all collected metrics."""
        with self._lock:
            self._metrics.clear()

    def report(self, logger: logging.Logger | None = None) -> str:
        """Generate a human-readable report of metrics.

        Args:
            logger: Optional logger to write the report to

        Returns:
            Human-readable string report of all metrics
        """
        lines = ["=" * 60, "PERFORMANCE METRICS REPORT", "=" * 60]

        all_metrics = self.get_all_metrics()

        if not all_metrics:
            lines.append("No metrics collected.")
        else:
            categories: dict[str, list[str]] = defaultdict(list)
            for metric_name in sorted(all_metrics):
                category = metric_name.split(".")[0] if "." in metric_name else "other"
                categories[category].append(metric_name)

            for category in sorted(categories):
                lines.append("")
                lines.append(f"[{category.upper()}]")
                lines.append("-" * 40)
                for metric_name in categories[category]:
                    stats = self.get_stats(metric_name)
                    display_name = metric_name.split(".", 1)[-1]
                    lines.append(f"  {display_name}:")
                    lines.append(
                        f"    count={stats['count']}, "
                        f"avg={stats['avg']:.2f}, "
                        f"p50={stats['p50']:.2f}, p95={stats['p95']:.2f}"
                    )

        lines.append("")
        lines.append("=" * 60)
        report = "\n".join(lines)

        if logger:
            for line in lines:
                logger.info(line)

        return report


_metrics_instance: MetricsCollector | None = None
_metrics_lock = threading.Lock()


def get_metrics(metrics: MetricsCollector | None = None) -> MetricsCollector:
    """Get the shared MetricsCollector instance.

    Args:
        metrics: Optional MetricsCollector to use instead of the shared one.
                 Useful for dependency injection.

    Returns:
        The global MetricsCollector instance
    """
    global _metrics_instance  # noqa: PLW0603
    with _metrics_lock:
        if metrics is not None:
            _metrics_instance = metrics
        elif _metrics_instance is None:
            _metrics_instance = MetricsCollector()
        return _metrics_instance


def timed(operation: str | None = None) -> Callable[[F], F]:
    """Decorator to automatically time function execution.

    Can be used with both sync and async functions.

    Args:
        operation: Optional operation name. If not provided, uses the
                   function's qualified name.

    Example:
        @timed("backend.select")
        async def select(...):
            ...
    """

    def decorator(func: F) -> F:
        op_name = operation or f"{func.__module__}.{func.__qualname__}"

        @wraps(func)
        async def async_wrapper(*args, **kwargs):
            with get_metrics().time_operation(op_name):
                return await func(*args, **kwargs)

        @wraps(func)
        def sync_wrapper(*args, **kwargs):
            with get_metrics().time_operation(op_name):
                return func(*args, **kwargs)

        if inspect.iscoroutinefunction(func):
            return async_wrapper  # type: ignore
        return sync_wrapper  # type: ignore

    return decorator


def reset_metrics() -> None:
    """Reset the shared metrics collector.

    Primarily for testing.
    """
    global _metrics_instance  # noqa: PLW0603
    with _metrics_lock:
        _metrics_instance = None
