from __future__ import annotations

from prometheus_client import Counter, Histogram, start_http_server

results_total = Counter(
    "decoder_results_total",
    "Total decode calls handled",
    labelnames=["kind", "status"],
)

latency_seconds = Histogram(
    "decoder_latency_seconds",
    "Decode latency (seconds)",
    buckets=[0.0005, 0.001, 0.0025, 0.005, 0.01, 0.025, 0.05, 0.1, 0.5],
    labelnames=["kind"],
)

errors_total = Counter(
    "decoder_errors_total",
    "Total decode failures by error type",
    labelnames=["type"],
)

leniency_resolutions_total = Counter(
    "decoder_leniency_resolutions_total",
    "Field mismatches resolved by default, zero-fill or coercion",
    labelnames=["kind"],
)

tolerated_subtrees_total = Counter(
    "decoder_tolerated_subtrees_total",
    "Optional subtrees dropped because they failed to decode",
    labelnames=["field"],
)


def maybe_start_metrics(*, enable: bool, bind: str, port: int) -> None:
    if not enable:
        return
    start_http_server(port, addr=bind)
