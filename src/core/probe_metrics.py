from prometheus_client import Counter, Gauge, Histogram

from contracts.alert import AlertEvent
from contracts.probe import ProbeDefinition
from contracts.probe_result import ProbeResult

PROBE_LATENCY = Histogram(
    "statusok_probe_latency_seconds",
    "Latency of successful probes in seconds",
    ["probe_id"],
)
PROBE_FAILURES = Counter(
    "statusok_probe_failures_total",
    "Number of failed probes",
    ["probe_id", "reason"],
)
PROBES_IN_FLIGHT = Gauge(
    "statusok_probes_in_flight",
    "Number of probe executions holding a concurrency slot",
)
ALERTS = Counter(
    "statusok_alerts_total",
    "Number of alerts raised",
    ["kind"],
)
BACKEND_ERRORS = Counter(
    "statusok_backend_errors_total",
    "Number of failed backend write/notify calls",
    ["backend"],
)


class ProbeMetrics:
    """
    Thin facade over the process-wide Prometheus collectors so engine code
    does not deal with label plumbing.
    """

    def observe_result(self, definition: ProbeDefinition, result: ProbeResult):
        probe_id = str(definition.id)
        if result.ok:
            PROBE_LATENCY.labels(probe_id=probe_id).observe(
                result.outcome.latency_ms / 1000.0
            )
        else:
            PROBE_FAILURES.labels(
                probe_id=probe_id, reason=result.outcome.reason.value
            ).inc()

    def observe_alert(self, alert: AlertEvent):
        ALERTS.labels(kind=alert.detail.kind).inc()

    def observe_backend_error(self, backend_name: str):
        BACKEND_ERRORS.labels(backend=backend_name).inc()

    def probe_started(self):
        PROBES_IN_FLIGHT.inc()

    def probe_finished(self):
        PROBES_IN_FLIGHT.dec()
