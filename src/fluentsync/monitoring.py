"""Monitoring configuration for the sync layer."""
from prometheus_client import Counter, start_http_server

# Writer metrics
publishes = Counter(
    "fluentsync_publishes_total",
    "Total number of successful publishes into the shared store",
    ["kind"],
)

publish_failures = Counter(
    "fluentsync_publish_failures_total",
    "Total number of publishes dropped because encoding failed",
    ["kind"],
)

reload_signals = Counter(
    "fluentsync_reload_signals_total",
    "Total number of reload signals sent to display surfaces",
    ["scope"],
)

# Store metrics
storage_unavailable = Counter(
    "fluentsync_storage_unavailable_total",
    "Total number of store operations that fell back to a default",
    ["operation"],
)

# Reader metrics
decode_errors = Counter(
    "fluentsync_decode_errors_total",
    "Total number of stored words of the day that failed to decode",
)

entries_produced = Counter(
    "fluentsync_entries_produced_total",
    "Total number of display entries produced",
    ["origin"],
)


def start_monitoring(port: int = 9090) -> None:
    """Start the Prometheus metrics server."""
    start_http_server(port)
