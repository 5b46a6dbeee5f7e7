"""Run independent blocking calls in parallel under one deadline."""
import logging
import time
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeout
from typing import Any, Callable

logger = logging.getLogger(__name__)


def gather(calls: dict[str, Callable[[], Any]], timeout: float) -> tuple[dict[str, Any], list[str]]:
    """
    Start every call at once and wait at most ``timeout`` seconds overall.

    Returns the results of the calls that finished in time, and the names of
    those that raised or ran out of time. Stragglers are abandoned, not
    cancelled mid-flight.
    """
    results: dict[str, Any] = {}
    unavailable: list[str] = []
    if not calls:
        return results, unavailable

    pool = ThreadPoolExecutor(max_workers=len(calls))
    deadline = time.monotonic() + timeout
    try:
        futures = {name: pool.submit(fn) for name, fn in calls.items()}
        for name, future in futures.items():
            try:
                results[name] = future.result(timeout=max(0.0, deadline - time.monotonic()))
            except FutureTimeout:
                logger.warning(f"[FANOUT] {name} timed out after {timeout}s")
                unavailable.append(name)
            except Exception as e:
                logger.warning(f"[FANOUT] {name} failed: {e}")
                unavailable.append(name)
    finally:
        pool.shutdown(wait=False, cancel_futures=True)
    return results, unavailable
