"""Parallel execution helpers for Quire.

Units of work in a build share no mutable state, so they run on a fixed
thread pool. Results are gathered back into input order by index rather
than relying on completion order.

Key items:
- ordered_map: Parallel map whose results follow input order.
- run_units: Parallel map that captures each unit's failure.
- UnitResult: Outcome of one unit.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from typing import Any, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")


@dataclass
class UnitResult:
    """Outcome of processing one unit.

    Attributes:
        source: What was processed (a path or a stage name).
        value: Return value on success.
        error: Exception raised on failure.
    """

    source: Any
    value: Any = None
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def ordered_map(
    fn: Callable[[T], R], items: Iterable[T], workers: int | None = None
) -> list[R]:
    """Apply ``fn`` to every item on a thread pool.

    The first exception raised by any call propagates once all submitted
    calls have finished.

    Args:
        fn: Function to apply.
        items: Inputs.
        workers: Maximum worker threads, or None for the executor default.

    Returns:
        Results in the same order as ``items``.
    """
    inputs = list(items)
    results: list[Any] = [None] * len(inputs)
    if not inputs:
        return results
    with ThreadPoolExecutor(max_workers=workers) as executor:
        futures = {executor.submit(fn, item): index for index, item in enumerate(inputs)}
        for future in as_completed(futures):
            results[futures[future]] = future.result()
    return results


def run_units(
    fn: Callable[[T], Any],
    items: Iterable[T],
    workers: int | None = None,
    source: Callable[[T], Any] | None = None,
) -> list[UnitResult]:
    """Process every item in parallel, isolating failures per item.

    ``OSError`` is not captured: a failed write aborts the build.

    Args:
        fn: Function processing one item.
        items: Inputs.
        workers: Maximum worker threads.
        source: Maps an item to the ``source`` recorded in its result;
            defaults to the item itself.

    Returns:
        One UnitResult per item, in input order.
    """
    describe = source or (lambda item: item)

    def guarded(item: T) -> UnitResult:
        try:
            return UnitResult(describe(item), value=fn(item))
        except OSError:
            raise
        except Exception as exc:
            logger.debug("Unit %s failed: %s", describe(item), exc)
            return UnitResult(describe(item), error=exc)

    return ordered_map(guarded, items, workers)
