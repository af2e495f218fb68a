"""Prometheus metrics for monitoring rate outcomes and outlier removal"""

from prometheus_client import Counter, Histogram

# Rate metrics
rate_calculation_counter = Counter(
    "dscr_rate_calculations_total",
    "Total interest rate calculations",
    ["outcome"],  # floor | ceiling | solved
)

rate_histogram = Histogram(
    "dscr_rate_percent",
    "Solved annual interest rate in percent",
    buckets=[1.0, 2.0, 3.0, 4.0, 5.0, 6.0, 7.0, 8.0, 9.0, 10.0],
)

outliers_removed_counter = Counter(
    "dscr_outliers_removed_total",
    "Transaction amounts dropped as outliers",
    ["strategy"],  # mad | iqr
)

invalid_request_counter = Counter(
    "dscr_invalid_requests_total",
    "Requests rejected for invalid loan parameters or transactions",
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_rate(outcome: str, interest_rate: float, outliers_removed: int, strategy: str) -> None:
    """Record rate metrics; `interest_rate` is in percent * 100"""
    rate_calculation_counter.labels(outcome=outcome).inc()
    rate_histogram.observe(interest_rate / 100)

    if outliers_removed:
        outliers_removed_counter.labels(strategy=strategy).inc(outliers_removed)
