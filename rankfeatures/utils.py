"""Shared helpers: output paths, thread fan-out, step timing."""

from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from contextlib import contextmanager
from pathlib import Path
from typing import Callable, Iterator, List, Optional, Sequence, TypeVar

T = TypeVar("T")
R = TypeVar("R")

logger = logging.getLogger(__name__)


def ensure_exists(path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)


def parallel_map(func: Callable[[T], R], items: Sequence[T], max_workers: Optional[int] = None) -> List[R]:
    """Apply ``func`` to every item in a thread pool, keeping input order.

    The first exception raised by ``func`` propagates to the caller.
    """

    if max_workers == 1 or len(items) <= 1:
        return [func(item) for item in items]
    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        return list(executor.map(func, items))


@contextmanager
def timed(step: str, log: Optional[logging.Logger] = None) -> Iterator[None]:
    target = log or logger
    target.debug("%s...", step)
    started = time.perf_counter()
    try:
        yield
    finally:
        target.debug("%s took %.3fs", step, time.perf_counter() - started)


__all__ = ["ensure_exists", "parallel_map", "timed"]
