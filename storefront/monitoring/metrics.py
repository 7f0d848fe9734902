"""
Prometheus metrics for ledger monitoring.

Tracks:
- Ledger operation counts by outcome
- Ledger operation duration
- Optimistic transaction conflicts and aborts
- Committed orders and their value
- Reconciliation discrepancies
"""
import time
from contextlib import contextmanager
from typing import Iterator

from prometheus_client import Counter, Gauge, Histogram

from storefront.domain.errors import LedgerError

# Ledger operation metrics
ledger_operations_total = Counter(
    "ledger_operations_total",
    "Total number of ledger operations",
    ["operation", "status"],  # status: success or an error code
)

ledger_operation_duration_seconds = Histogram(
    "ledger_operation_duration_seconds",
    "Ledger operation duration in seconds",
    ["operation"],
    buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0),
)

# Transaction metrics
transaction_conflicts_total = Counter(
    "transaction_conflicts_total",
    "Optimistic transaction conflicts (WATCH invalidated before EXEC)",
    ["operation"],
)

transaction_aborts_total = Counter(
    "transaction_aborts_total",
    "Transactions aborted after exhausting retries or on store failure",
    ["operation", "reason"],  # reason: contention, store_error
)

# Order metrics
orders_committed_total = Counter(
    "orders_committed_total",
    "Total orders committed by checkout",
)

order_value = Histogram(
    "order_value",
    "Committed order totals",
    buckets=(1, 5, 10, 25, 50, 100, 250, 500, 1000),
)

order_line_count = Histogram(
    "order_line_count",
    "Number of lines per committed order",
    buckets=(1, 2, 3, 5, 10, 20, 50),
)

# Reconciliation metrics
reconciliation_discrepancies_total = Gauge(
    "reconciliation_discrepancies_total",
    "Products whose stock, reservations and orders do not add up to seeded stock",
)

reconciliation_last_run_timestamp = Gauge(
    "reconciliation_last_run_timestamp",
    "Timestamp of last reconciliation run",
)


class MetricsCollector:
    """Helper class for collecting metrics."""

    @staticmethod
    def record_operation(operation: str, status: str, duration_seconds: float) -> None:
        """Record a ledger operation outcome."""
        ledger_operations_total.labels(operation=operation, status=status).inc()
        ledger_operation_duration_seconds.labels(operation=operation).observe(
            duration_seconds
        )

    @staticmethod
    def record_transaction_conflict(operation: str) -> None:
        """Record a WATCH conflict that triggered a retry."""
        transaction_conflicts_total.labels(operation=operation).inc()

    @staticmethod
    def record_transaction_abort(operation: str, reason: str) -> None:
        """Record an aborted transaction."""
        transaction_aborts_total.labels(operation=operation, reason=reason).inc()

    @staticmethod
    def record_order(total: float, line_count: int) -> None:
        """Record a committed order."""
        orders_committed_total.inc()
        order_value.observe(total)
        order_line_count.observe(line_count)

    @staticmethod
    def set_reconciliation_metrics(discrepancies_count: int) -> None:
        """Set reconciliation metrics."""
        reconciliation_discrepancies_total.set(discrepancies_count)
        reconciliation_last_run_timestamp.set(time.time())


# Export singleton instance
metrics = MetricsCollector()


@contextmanager
def track_operation(operation: str) -> Iterator[None]:
    """Time a ledger operation and count it under its outcome (error code or success)."""
    start = time.perf_counter()
    status = "success"
    try:
        yield
    except LedgerError as e:
        status = e.code
        raise
    except Exception:
        status = "error"
        raise
    finally:
        metrics.record_operation(operation, status, time.perf_counter() - start)
