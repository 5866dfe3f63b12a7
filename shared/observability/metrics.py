from prometheus_client import (
    Counter,
    Histogram,
    generate_latest,
    CONTENT_TYPE_LATEST,
)
from fastapi import Response


proxy_requests = Counter(
    "llm_proxy_requests_total",
    "Total proxy requests by action and response status",
    ["action", "status"],
)

llm_tokens = Counter(
    "llm_tokens_total",
    "Total LLM tokens consumed",
    ["provider", "direction"],
)

provider_failures = Counter(
    "llm_provider_failures_total",
    "Vendor calls that failed",
    ["provider", "operation"],
)

vendor_latency = Histogram(
    "llm_vendor_latency_seconds",
    "Latency of upstream vendor API calls",
    ["provider", "operation"],
    buckets=(0.1, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0, 120.0),
)


def metrics_response() -> Response:
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST,
    )
