"""Parallel execution helpers for the map generation stages."""
from __future__ import annotations

import concurrent.futures
import logging
from contextlib import contextmanager
from typing import Callable, Dict, Iterator, Mapping, Optional, TypeVar


LOGGER = logging.getLogger("photo_pbr.parallel")

K = TypeVar("K")
T = TypeVar("T")
R = TypeVar("R")


def create_thread_pool(max_workers: Optional[int] = None) -> concurrent.futures.ThreadPoolExecutor:
    """Create a thread pool executor with sane defaults."""

    return concurrent.futures.ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="photo_pbr")


def run_parallel(
    function: Callable[[K, T], R],
    items: Mapping[K, T],
    *,
    max_workers: Optional[int] = None,
) -> Dict[K, R]:
    """Run ``function(key, value)`` for each entry of *items* concurrently.

    Results are keyed like *items* and keep its order. The first worker
    exception is re-raised once every submitted task has settled.
    """

    if not items:
        return {}
    if max_workers is not None and max_workers <= 1:
        return {key: function(key, value) for key, value in items.items()}

    with limited_threads(max_workers):
        with create_thread_pool(max_workers=max_workers) as executor:
            futures = {key: executor.submit(function, key, value) for key, value in items.items()}
            concurrent.futures.wait(futures.values())
            results: Dict[K, R] = {}
            for key, future in futures.items():
                exc = future.exception()
                if exc is not None:
                    LOGGER.debug("Parallel worker for %s failed: %s", key, exc)
                    raise exc
                results[key] = future.result()
            return results


@contextmanager
def limited_threads(max_workers: Optional[int]) -> Iterator[None]:
    """Context manager that logs thread usage for diagnostics."""

    LOGGER.debug("Starting thread pool with up to %s workers", max_workers)
    try:
        yield
    finally:
        LOGGER.debug("Thread pool with %s workers completed", max_workers)
