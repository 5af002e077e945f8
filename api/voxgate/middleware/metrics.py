from prometheus_client import Counter, Gauge, Histogram
from prometheus_fastapi_instrumentator import Instrumentator

SYNTHESIS_REQUESTS = Counter(
    "voxgate_synthesis_total",
    "Synthesis attempts by outcome",
    ["outcome"],
)

PROVIDER_DURATION = Histogram(
    "voxgate_provider_duration_seconds",
    "Duration of delegated provider calls",
    buckets=[0.25, 0.5, 1.0, 2.0, 3.0, 5.0, 10.0, 20.0, 30.0],
)

ABANDONED_CALLS = Gauge(
    "voxgate_abandoned_calls",
    "Provider calls still in flight after their request timed out",
)


def setup_metrics(app):
    Instrumentator(
        should_group_status_codes=True,
        should_ignore_untemplated=True,
        excluded_handlers=["/metrics", "/swagger", "/openapi.json"],
    ).instrument(app).expose(app, endpoint="/metrics")
