from fastapi import APIRouter
from fastapi.responses import PlainTextResponse
from typing import Dict, Any
from datetime import datetime
import time
import threading
from collections import defaultdict
from tripboard.auth.rate_limiter import rate_limiter

router = APIRouter()


class MetricsCollector:
    """Thread-safe counters and timings for trip operations."""

    def __init__(self):
        self._lock = threading.Lock()
        self._operation_timings = defaultdict(list)  # operation -> [duration_ms, ...]
        self._operation_calls = defaultdict(int)
        self._operation_errors = defaultdict(int)
        self._status_changes = defaultdict(int)      # target status -> count
        self._start_time = time.time()

        # Keep only recent timings (last 1000 entries per operation)
        self._max_entries = 1000

    def record_operation(self, operation: str, success: bool, duration_ms: float = 0):
        """Record one admin or public trip operation."""
        with self._lock:
            self._operation_calls[operation] += 1
            if not success:
                self._operation_errors[operation] += 1
            timings = self._operation_timings[operation]
            timings.append(duration_ms)
            if len(timings) > self._max_entries:
                timings.pop(0)

    def record_status_change(self, status: str):
        with self._lock:
            self._status_changes[status] += 1

    def reset(self):
        with self._lock:
            self._operation_timings.clear()
            self._operation_calls.clear()
            self._operation_errors.clear()
            self._status_changes.clear()
            self._start_time = time.time()

    def get_metrics(self) -> Dict[str, Any]:
        """Get current metrics snapshot."""
        with self._lock:
            uptime_seconds = time.time() - self._start_time

            operations = {}
            for operation, total_calls in self._operation_calls.items():
                timings = self._operation_timings[operation]
                errors = self._operation_errors[operation]
                operations[operation] = {
                    "total_calls": total_calls,
                    "errors": errors,
                    "error_rate": errors / total_calls if total_calls > 0 else 0,
                    "avg_ms": sum(timings) / len(timings) if timings else 0,
                    "p95_ms": self._percentile(timings, 95),
                }

            return {
                "timestamp": datetime.now().isoformat(),
                "uptime_seconds": uptime_seconds,
                "operations": operations,
                "status_changes": dict(self._status_changes),
                "rate_limiter": rate_limiter.get_stats()
            }

    def _percentile(self, data: list, percentile: int) -> float:
        """Calculate percentile of a list."""
        if not data:
            return 0
        sorted_data = sorted(data)
        index = int((percentile / 100) * len(sorted_data))
        return sorted_data[min(index, len(sorted_data) - 1)]


# Global metrics collector instance
metrics_collector = MetricsCollector()


@router.get("/metrics")
async def get_metrics():
    """Get application metrics in JSON format."""
    return metrics_collector.get_metrics()


@router.get("/metrics/prometheus", response_class=PlainTextResponse)
async def get_prometheus_metrics():
    """Get metrics in Prometheus text format."""
    metrics = metrics_collector.get_metrics()

    prometheus_lines = [
        "# HELP tripboard_uptime_seconds Application uptime in seconds",
        "# TYPE tripboard_uptime_seconds counter",
        f"tripboard_uptime_seconds {metrics['uptime_seconds']}",
        "",
        "# HELP tripboard_operations_total Total trip operations",
        "# TYPE tripboard_operations_total counter",
        "# HELP tripboard_operation_errors_total Total failed trip operations",
        "# TYPE tripboard_operation_errors_total counter",
    ]

    for operation, stats in metrics["operations"].items():
        prometheus_lines.extend([
            f"tripboard_operations_total{{operation=\"{operation}\"}} {stats['total_calls']}",
            f"tripboard_operation_errors_total{{operation=\"{operation}\"}} {stats['errors']}",
        ])

    prometheus_lines.extend([
        "",
        "# HELP tripboard_status_changes_total Trip status changes by target status",
        "# TYPE tripboard_status_changes_total counter",
    ])
    for status, count in metrics["status_changes"].items():
        prometheus_lines.append(f"tripboard_status_changes_total{{status=\"{status}\"}} {count}")

    return "\n".join(prometheus_lines) + "\n"
