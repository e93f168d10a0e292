"""Performance monitoring utilities for the Şantiye calculation engines."""
import time
import logging
import threading
import functools
from typing import Any, Callable, Dict, Optional

logger = logging.getLogger("santiye-api.perf")


def timed(func: Callable) -> Callable:
    """
    Decorator that measures execution time of a synchronous engine call,
    logs it at DEBUG and records it on the module-level ``tracker``.

    Usage::

        @timed
        def resolve_timeline(projects):
            ...
    """
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        start = time.perf_counter()
        failed = False
        try:
            return func(*args, **kwargs)
        except Exception:
            failed = True
            raise
        finally:
            duration_ms = round((time.perf_counter() - start) * 1000, 2)
            if failed:
                tracker.record_error(func.__qualname__)
            else:
                tracker.record_calculation(func.__qualname__, duration_ms)
            logger.debug(
                "function timed",
                extra={
                    "calculation": func.__qualname__,
                    "calc_module": func.__module__,
                    "duration_ms": duration_ms,
                },
            )
    return wrapper


class PerformanceTracker:
    """
    Thread-safe in-memory tracker for calculation metrics.

    Tracks:
    - Total calculations performed and their average duration
    - Slowest calculation seen so far
    - Error count broken down by calculation name
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._durations: Dict[str, list] = {}   # calculation name -> [duration_ms, ...]
        self._error_counts: Dict[str, int] = {}
        self._slowest: Optional[str] = None
        self._slowest_ms: float = 0.0

    def record_calculation(self, name: str, duration_ms: float) -> None:
        with self._lock:
            self._durations.setdefault(name, []).append(duration_ms)
            if duration_ms > self._slowest_ms:
                self._slowest_ms = duration_ms
                self._slowest = name

    def record_error(self, name: str) -> None:
        with self._lock:
            self._error_counts[name] = self._error_counts.get(name, 0) + 1

    def get_metrics(self) -> Dict[str, Any]:
        """
        Return a snapshot of all collected metrics.

        Returns
        -------
        dict with keys:
            calculations_processed    : int
            avg_duration_ms           : float  (0 if none processed)
            slowest_calculation       : str | None
            slowest_calculation_ms    : float
            error_count               : int
            error_count_by_name       : dict  {name: count}
            avg_durations_ms          : dict  {name: avg_ms}
        """
        with self._lock:
            all_durations = [d for ds in self._durations.values() for d in ds]
            avg = round(sum(all_durations) / len(all_durations), 2) if all_durations else 0.0
            per_name = {
                name: round(sum(ds) / len(ds), 2) for name, ds in self._durations.items() if ds
            }
            return {
                "calculations_processed": len(all_durations),
                "avg_duration_ms": avg,
                "slowest_calculation": self._slowest,
                "slowest_calculation_ms": round(self._slowest_ms, 2),
                "error_count": sum(self._error_counts.values()),
                "error_count_by_name": dict(self._error_counts),
                "avg_durations_ms": per_name,
            }

    def reset(self) -> None:
        """Reset all counters (useful in tests)."""
        with self._lock:
            self._durations.clear()
            self._error_counts.clear()
            self._slowest = None
            self._slowest_ms = 0.0


# Shared by every @timed engine call and read by /metrics
tracker = PerformanceTracker()
