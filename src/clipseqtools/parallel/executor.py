"""Local parallel execution of per-chromosome tasks.

Analyses that work one reference sequence at a time (coverage, library
overlap, relative density, genic distributions) hand one task per
chromosome to a ParallelExecutor and merge the partial results by
summation once every task has finished.

Features:
    - Multiple execution backends (serial, threads, processes)
    - Per-task timing, summarized in the debug log
    - The first task error is re-raised in the caller

Tasks run on the processes backend must be picklable: pass module-level
functions, or ``functools.partial`` objects built from them.

Example:
    >>> from clipseqtools.parallel.executor import ParallelExecutor
    >>> executor = ParallelExecutor(n_workers=4, backend="processes")
    >>> results = executor.map_items(count_chromosome, tasks, item_ids=rnames)
    >>> total = sum(r.result for r in results)
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Sequence
from concurrent.futures import (
    Executor,
    Future,
    ProcessPoolExecutor,
    ThreadPoolExecutor,
    as_completed,
)
from enum import Enum
from typing import Any, TypeVar

import attrs

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")


# =============================================================================
# Enums
# =============================================================================


class ExecutorBackend(Enum):
    """Available execution backends."""

    SERIAL = "serial"
    THREADS = "threads"
    PROCESSES = "processes"


# =============================================================================
# Data Structures
# =============================================================================


@attrs.define(slots=True)
class TaskResult:
    """Result from one task."""

    task_id: str
    result: Any
    duration_seconds: float = 0.0


def _run_task(func: Callable[[Any], Any], task_id: str, item: Any) -> TaskResult:
    """Run one task with timing.

    Module-level so it pickles for the processes backend.
    """
    start_time = time.time()
    result = func(item)
    return TaskResult(
        task_id=task_id,
        result=result,
        duration_seconds=time.time() - start_time,
    )


# =============================================================================
# Parallel Executor
# =============================================================================


class ParallelExecutor:
    """Execute independent tasks serially, on threads or on processes.

    Example:
        >>> executor = ParallelExecutor(n_workers=4, backend="threads")
        >>> [r.result for r in executor.map_items(len, ["a", "bb", "ccc"])]
        [1, 2, 3]
    """

    def __init__(
        self,
        n_workers: int = 1,
        backend: ExecutorBackend | str = ExecutorBackend.PROCESSES,
    ) -> None:
        """Initialize executor.

        Args:
            n_workers: Number of parallel workers (1 = serial).
            backend: Execution backend.
        """
        self.n_workers = max(1, n_workers)
        self.backend = (
            ExecutorBackend(backend) if isinstance(backend, str) else backend
        )

        # Auto-select serial if n_workers=1
        if self.n_workers == 1:
            self.backend = ExecutorBackend.SERIAL

    def map_items(
        self,
        func: Callable[[T], R],
        items: Sequence[T],
        item_ids: Sequence[str] | None = None,
    ) -> list[TaskResult]:
        """Apply ``func`` to every item.

        Args:
            func: Function applied to each item.
            items: Items to process.
            item_ids: Task identifiers (defaults to item indices).

        Returns:
            Results in item order.

        Raises:
            ValueError: If ``item_ids`` and ``items`` differ in length.
            Exception: The first task error; pending tasks are cancelled.
        """
        if item_ids is None:
            item_ids = [f"item_{i:06d}" for i in range(len(items))]
        if len(item_ids) != len(items):
            raise ValueError("item_ids and items must have the same length")

        if not items:
            return []

        logger.debug(
            f"Processing {len(items)} tasks with {self.n_workers} workers "
            f"(backend={self.backend.value})"
        )

        start_time = time.time()
        if self.backend == ExecutorBackend.SERIAL:
            results = [
                _run_task(func, task_id, item)
                for task_id, item in zip(item_ids, items)
            ]
        else:
            pool_cls = (
                ThreadPoolExecutor
                if self.backend == ExecutorBackend.THREADS
                else ProcessPoolExecutor
            )
            with pool_cls(max_workers=self.n_workers) as pool:
                results = self._execute_pool(pool, func, items, item_ids)

        slowest = max(results, key=lambda r: r.duration_seconds)
        logger.debug(
            f"Completed {len(results)} tasks in {time.time() - start_time:.1f}s "
            f"(slowest: {slowest.task_id}, {slowest.duration_seconds:.1f}s)"
        )
        return results

    def _execute_pool(
        self,
        pool: Executor,
        func: Callable,
        items: Sequence,
        item_ids: Sequence[str],
    ) -> list[TaskResult]:
        """Pool execution; results are returned in item order."""
        futures: dict[Future, int] = {}
        for index, (task_id, item) in enumerate(zip(item_ids, items)):
            future = pool.submit(_run_task, func, task_id, item)
            futures[future] = index

        ordered: list[TaskResult | None] = [None] * len(items)
        try:
            for future in as_completed(futures):
                ordered[futures[future]] = future.result()
        except Exception:
            for pending in futures:
                pending.cancel()
            raise

        return [r for r in ordered if r is not None]
