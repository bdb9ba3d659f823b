from prometheus_client import Counter, Histogram, REGISTRY


# we check if they are already registered to avoid errors during hot reloads or test runs
def get_or_create_metric(name, documentation, metric_type, **kwargs):
    try:
        return metric_type(name, documentation, **kwargs)
    except ValueError:
        return REGISTRY._names_to_collectors[name]


INGEST_REQUESTS_TOTAL = get_or_create_metric(
    "vocalclerk_ingest_requests_total",
    "Ingestion requests by outcome",
    Counter,
    labelnames=["status"],
)

INGEST_LATENCY_SECONDS = get_or_create_metric(
    "vocalclerk_ingest_latency_seconds",
    "End-to-end ingestion latency",
    Histogram,
)

TASKS_MATERIALIZED_TOTAL = get_or_create_metric(
    "vocalclerk_tasks_materialized_total", "Total tasks created from raw input", Counter
)

BACKEND_PROCESSING_MS = get_or_create_metric(
    "vocalclerk_backend_processing_ms",
    "Time spent in the AI backend per ingestion (ms)",
    Histogram,
    labelnames=["backend"],
    buckets=(50, 100, 250, 500, 1000, 2500, 5000, 10000, 30000, 60000),
)
