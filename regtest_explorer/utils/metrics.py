"""Prometheus metrics for the explorer."""

from prometheus_client import Counter, Histogram


class Metrics:
    """Prometheus metrics collection."""

    def __init__(self):
        # Request metrics
        self.request_count = Counter(
            'regtest_explorer_requests_total',
            'Total number of API requests',
            ['method', 'endpoint', 'status']
        )

        self.request_duration = Histogram(
            'regtest_explorer_request_duration_seconds',
            'Request duration in seconds',
            ['method', 'endpoint']
        )

        # Node gateway metrics
        self.rpc_calls = Counter(
            'regtest_explorer_rpc_calls_total',
            'Bitcoin Core RPC calls',
            ['method', 'outcome']
        )

        self.rpc_duration = Histogram(
            'regtest_explorer_rpc_duration_seconds',
            'Bitcoin Core RPC round-trip time in seconds',
            ['method']
        )


# Global metrics instance
metrics = Metrics()
