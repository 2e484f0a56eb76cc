"""Prometheus metrics for the journal service.

Exposed by the API on ``/metrics``.
"""

from __future__ import annotations

from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest

# ---------------------------------------------------------------------------
# Journal metrics
# ---------------------------------------------------------------------------

TRADES_WRITTEN = Counter(
    "journal_trades_written_total",
    "Trades created, updated or deleted",
    ["operation"],
)

TRADES_IMPORTED = Counter(
    "journal_trades_imported_total",
    "Trades loaded from import files",
)

ROLLUPS_RECOMPUTED = Counter(
    "journal_rollups_recomputed_total",
    "Daily metric rollups rebuilt",
    ["result"],  # "upserted" or "removed"
)

INSIGHTS_GENERATED = Counter(
    "journal_insights_generated_total",
    "Insights produced by the insight generator",
    ["type"],
)

CACHE_REQUESTS = Counter(
    "journal_cache_requests_total",
    "Analytics cache lookups",
    ["cache", "result"],  # result: "hit" or "miss"
)

ANALYTICS_LATENCY = Histogram(
    "journal_analytics_seconds",
    "Time spent computing an analytics response",
    ["operation"],
    buckets=[0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1.0],
)


def render_latest() -> tuple[bytes, str]:
    """Serialised metrics and their content type."""
    return generate_latest(), CONTENT_TYPE_LATEST


# ---------------------------------------------------------------------------
# Convenience helpers
# ---------------------------------------------------------------------------


def record_trade_write(operation: str) -> None:
    """Record a trade create / update / delete."""
    TRADES_WRITTEN.labels(operation=operation).inc()


def record_import(count: int) -> None:
    TRADES_IMPORTED.inc(count)


def record_rollup(removed: bool) -> None:
    ROLLUPS_RECOMPUTED.labels(result="removed" if removed else "upserted").inc()


def record_insight(insight_type: str) -> None:
    INSIGHTS_GENERATED.labels(type=insight_type).inc()


def record_cache(cache: str, hit: bool) -> None:
    """Record a cache lookup outcome."""
    CACHE_REQUESTS.labels(cache=cache, result="hit" if hit else "miss").inc()
