import asyncio
import logging
from collections import deque
from typing import Dict, Iterable, List, Optional

from contracts.alert import AlertEvent, HardFailure, SlowResponse
from contracts.probe import ProbeDefinition
from contracts.probe_result import ProbeResult
from core.profiler import Profiler

logger = logging.getLogger(__name__)


def median_latency(values: Iterable[int]) -> int:
    """
    Median of the given latencies. For an even count this is the integer
    average of the two middle values.
    """
    ordered = sorted(values)
    if not ordered:
        raise ValueError("median of empty window")
    middle = len(ordered) // 2
    if len(ordered) % 2:
        return ordered[middle]
    return (ordered[middle - 1] + ordered[middle]) // 2


def mean_latency(values: Iterable[int]) -> int:
    values = list(values)
    if not values:
        raise ValueError("mean of empty window")
    return sum(values) // len(values)


class LatencyAggregator:
    """
    Keeps a bounded window of recent latencies per probe and decides when a
    probe is slow enough to alert.
    """

    def __init__(self):
        # Structure: {probe_id: {'latencies': deque(maxlen=window_size), 'capacity': int}}
        self.windows: Dict[int, dict] = {}
        self._lock = asyncio.Lock()

    @Profiler.profile
    async def record_latency(
        self, definition: ProbeDefinition, latency_ms: int
    ) -> Optional[AlertEvent]:
        """
        Append a latency to the probe's window and evaluate it once full.

        Returns:
            Optional[AlertEvent]: A SlowResponse alert if the median of a full
            window exceeds the expected latency, else None.
        """
        async with self._lock:
            entry = self.windows.get(definition.id)
            if entry is None:
                entry = {
                    "latencies": deque(maxlen=definition.window_size),
                    "capacity": definition.window_size,
                }
                self.windows[definition.id] = entry
            latencies = entry["latencies"]
            latencies.append(latency_ms)

            if len(latencies) < entry["capacity"]:
                return None

            median = median_latency(latencies)
            logger.debug(
                f"Probe {definition.id} median latency {median}ms over {list(latencies)}"
            )
            if median <= definition.expected_latency_ms:
                return None
            latencies.clear()

        logger.warning(
            f"Probe {definition.id} {definition.url} median response time {median}ms "
            f"exceeds expected {definition.expected_latency_ms}ms"
        )
        return AlertEvent(
            probe_id=definition.id,
            url=definition.url,
            request_type=definition.method,
            detail=SlowResponse(
                expected_latency_ms=definition.expected_latency_ms,
                observed_median_ms=median,
            ),
        )

    async def record_failure(
        self, definition: ProbeDefinition, result: ProbeResult
    ) -> AlertEvent:
        """
        Turn a failed probe into a HardFailure alert. The latency window is not
        consulted or modified.
        """
        failure = result.outcome
        return AlertEvent(
            probe_id=definition.id,
            url=definition.url,
            request_type=definition.method,
            detail=HardFailure(
                reason=failure.reason.value,
                response_code=failure.status_code,
                response_body=failure.response_body,
                other_info=failure.message,
            ),
        )

    async def count(self, probe_id: int) -> int:
        async with self._lock:
            entry = self.windows.get(probe_id)
            return len(entry["latencies"]) if entry else 0

    async def window(self, probe_id: int) -> List[int]:
        """Return a copy of the probe's current window, oldest first."""
        async with self._lock:
            entry = self.windows.get(probe_id)
            return list(entry["latencies"]) if entry else []

    async def get_median(self, probe_id: int) -> Optional[int]:
        """Median of a full window, or None if there is not enough data yet."""
        async with self._lock:
            entry = self.windows.get(probe_id)
            if not entry or len(entry["latencies"]) < entry["capacity"]:
                return None
            return median_latency(entry["latencies"])

    async def get_mean(self, probe_id: int) -> Optional[int]:
        """Integer mean of a full window, or None if there is not enough data yet."""
        async with self._lock:
            entry = self.windows.get(probe_id)
            if not entry or len(entry["latencies"]) < entry["capacity"]:
                return None
            return mean_latency(entry["latencies"])
