import asyncio
import functools
import logging
import time

from prometheus_client import Histogram

logger = logging.getLogger(__name__)

CALL_DURATION = Histogram(
    "statusok_call_duration_seconds",
    "Duration of profiled engine calls in seconds",
    ["function"],
)


class Profiler:
    """
    Provides a decorator to profile synchronous and asynchronous methods,
    recording their execution times in a histogram.
    """

    @staticmethod
    def _record(name, start):
        elapsed = time.perf_counter() - start
        CALL_DURATION.labels(function=name).observe(elapsed)
        logger.debug(f"[Profiler] {name} took {elapsed:.4f}s")

    @staticmethod
    def profile(func):
        name = func.__qualname__
        if asyncio.iscoroutinefunction(func):

            @functools.wraps(func)
            async def async_wrapper(*args, **kwargs):
                start = time.perf_counter()
                try:
                    return await func(*args, **kwargs)
                finally:
                    Profiler._record(name, start)

            return async_wrapper
        else:

            @functools.wraps(func)
            def sync_wrapper(*args, **kwargs):
                start = time.perf_counter()
                try:
                    return func(*args, **kwargs)
                finally:
                    Profiler._record(name, start)

            return sync_wrapper
