"""Prometheus metrics for the EDI document portal.

Exposes key metrics for monitoring:
- Request counts by endpoint and status
- Request duration histograms
- EDI API upstream call metrics
- LLM request and assistant tool-calling metrics

Based on Prometheus best practices:
https://prometheus.io/docs/practices/naming/
"""

from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest

# Request metrics
http_requests_total = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status"],
)

http_request_duration_seconds = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint"],
    buckets=(0.01, 0.05, 0.1, 0.5, 1.0, 2.5, 5.0, 10.0),
)

# EDI API metrics
edi_api_requests_total = Counter(
    "edi_api_requests_total",
    "Total document searches against the EDI source",
    ["source", "status"],  # success, connection_error, upstream_error
)

edi_api_request_duration_seconds = Histogram(
    "edi_api_request_duration_seconds",
    "EDI API request duration in seconds",
    buckets=(0.05, 0.1, 0.5, 1.0, 2.0, 5.0, 10.0, 30.0),
)

# LLM metrics
llm_requests_total = Counter(
    "llm_requests_total",
    "Total chat completion requests",
    ["operation", "status"],  # completion/stream, success/failed
)

assistant_tool_calls_total = Counter(
    "assistant_tool_calls_total",
    "Total tool calls executed by the assistant",
    ["tool", "status"],
)

assistant_iterations = Histogram(
    "assistant_iterations",
    "Model round-trips per assistant turn",
    buckets=(1, 2, 3, 4, 5, 10),
)


def get_metrics() -> tuple[bytes, str]:
    """Generate Prometheus metrics in text format.

    Returns:
        Tuple of (metrics bytes, content type)
    """
    return generate_latest(), CONTENT_TYPE_LATEST
