"""
Processing statistics tracker.

Stores metrics from the most recent analysis for the /metrics endpoint.
Analyses run on a worker pool, so updates are serialised with a lock.

Time Complexity: O(1) per operation
Memory: O(1)
"""

import threading
from typing import Any, Dict


class MetricsTracker:
    """Tracks processing statistics across API calls."""

    def __init__(self):
        self._lock = threading.Lock()
        self._last_metrics: Dict[str, Any] = {
            "status": "no_processing_yet",
            "total_runs": 0,
            "failed_runs": 0,
        }
        self._total_runs: int = 0
        self._failed_runs: int = 0

    def record(self, summary: Dict[str, Any]) -> None:
        """Record metrics from a completed analysis."""
        with self._lock:
            self._total_runs += 1
            self._last_metrics = {
                "status": "ready",
                "total_runs": self._total_runs,
                "failed_runs": self._failed_runs,
                "last_run": dict(summary),
            }

    def record_failure(self) -> None:
        """Count an analysis that ended in an error."""
        with self._lock:
            self._failed_runs += 1
            self._last_metrics = {**self._last_metrics, "failed_runs": self._failed_runs}

    def get_metrics(self) -> Dict[str, Any]:
        """Return the latest metrics."""
        with self._lock:
            return dict(self._last_metrics)
