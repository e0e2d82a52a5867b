"""Parallelization utilities for clipseqtools.

Per-chromosome analyses can run one reference sequence per task on
threads or processes.

Example:
    >>> from clipseqtools.parallel import ParallelExecutor
    >>> executor = ParallelExecutor(n_workers=4)
"""

from clipseqtools.parallel.executor import (
    ExecutorBackend,
    ParallelExecutor,
    TaskResult,
)

__all__: list[str] = [
    "ExecutorBackend",
    "ParallelExecutor",
    "TaskResult",
]
