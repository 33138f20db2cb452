"""Ordered, fail-fast fan-out over a thread pool."""
from __future__ import annotations
from concurrent.futures import FIRST_EXCEPTION, ThreadPoolExecutor, wait
from typing import Callable, Iterable, List, TypeVar

T = TypeVar("T")
R = TypeVar("R")

DEFAULT_MAX_WORKERS = 16


def gather(func: Callable[[T], R], items: Iterable[T], max_workers: int = DEFAULT_MAX_WORKERS) -> List[R]:
    """Run `func` over `items` concurrently and return results in input order.

    The first exception raised by any call cancels the calls that have not
    started yet and is re-raised once the running ones finish. No partial
    results are returned.

    Args:
        func: Callable applied to each item
        items: Inputs; consumed eagerly
        max_workers: Upper bound on concurrent calls

    Returns:
        One result per item, same order as `items`
    """
    items = list(items)
    if not items:
        return []
    if len(items) == 1:
        return [func(items[0])]

    with ThreadPoolExecutor(max_workers=min(max_workers, len(items))) as executor:
        futures = [executor.submit(func, item) for item in items]
        done, pending = wait(futures, return_when=FIRST_EXCEPTION)
        for future in pending:
            future.cancel()
        for future in futures:
            if future in done and future.exception() is not None:
                raise future.exception()
        return [future.result() for future in futures]
