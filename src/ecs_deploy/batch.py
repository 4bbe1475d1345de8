"""
ecs_deploy.batch: all-or-nothing parallel execution of independent requests.

Each group of remote calls (describe-many, register-many, update-many) is a
single thread-pool join. The first failure cancels every request that has
not started yet and is re-raised; requests already in flight run to
completion but their results are discarded.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from concurrent.futures import FIRST_EXCEPTION, Future, ThreadPoolExecutor, wait
from typing import TypeVar

from ecs_deploy.config import DEFAULT_MAX_WORKERS

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")


def run_batch(
    fn: Callable[[T], R],
    items: Sequence[T],
    *,
    max_workers: int = DEFAULT_MAX_WORKERS,
) -> list[R]:
    """Apply fn to every item in parallel and return the results in input order.

    Raises the first exception observed; no partial results are returned.
    """
    if not items:
        return []

    workers = max(1, min(max_workers, len(items)))
    with ThreadPoolExecutor(max_workers=workers) as executor:
        futures: list[Future[R]] = [executor.submit(fn, item) for item in items]
        done, not_done = wait(futures, return_when=FIRST_EXCEPTION)

        for future in futures:
            exc = future.exception() if future in done else None
            if exc is not None:
                cancelled = sum(1 for pending in not_done if pending.cancel())
                logger.debug("batch aborted; cancelled %d pending request(s)", cancelled)
                raise exc

    return [future.result() for future in futures]
