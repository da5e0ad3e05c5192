"""
Task/parallelism providers for the simulation phases.

The simulator only needs three capabilities: map a function over a
sequence, aggregate a sequence with a fold and an associative combine,
and run a list of independent thunks. Each worker owns its partial
accumulator until the combine, so no locks are needed.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, List, Optional, Protocol, Sequence, TypeVar

from .validation import validate_parallelism

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")
A = TypeVar("A")


class TaskSupport(Protocol):
    """Capability the simulator depends on to run phases in parallel."""

    @property
    def parallelism_level(self) -> int: ...

    def map(self, fn: Callable[[T], R], items: Sequence[T]) -> List[R]: ...

    def aggregate(
        self,
        items: Sequence[T],
        zero: Callable[[], A],
        seqop: Callable[[A, T], A],
        combop: Callable[[A, A], A],
    ) -> A: ...

    def run_all(self, thunks: Sequence[Callable[[], R]]) -> List[R]: ...


def partition(items: Sequence[T], parts: int) -> List[Sequence[T]]:
    """
    Split items into at most ``parts`` contiguous, near-equal chunks.

    Empty chunks are never produced; an empty sequence yields one empty chunk.
    """
    n = len(items)
    if n == 0:
        return [items]
    parts = max(1, min(parts, n))
    base, extra = divmod(n, parts)
    chunks = []
    start = 0
    for i in range(parts):
        end = start + base + (1 if i < extra else 0)
        chunks.append(items[start:end])
        start = end
    return chunks


def fold(items: Sequence[T], zero: Callable[[], A], seqop: Callable[[A, T], A]) -> A:
    """Fold one chunk from a fresh accumulator."""
    acc = zero()
    for item in items:
        acc = seqop(acc, item)
    return acc


def tree_reduce(partials: Sequence[A], combop: Callable[[A, A], A]) -> A:
    """Combine partial results pairwise in a balanced tree, keeping their order."""
    level = list(partials)
    while len(level) > 1:
        paired = [combop(level[i], level[i + 1]) for i in range(0, len(level) - 1, 2)]
        if len(level) % 2:
            paired.append(level[-1])
        level = paired
    return level[0]


class SequentialTaskSupport:
    """Runs every phase on the calling thread."""

    parallelism_level = 1

    def map(self, fn: Callable[[T], R], items: Sequence[T]) -> List[R]:
        return [fn(item) for item in items]

    def aggregate(
        self,
        items: Sequence[T],
        zero: Callable[[], A],
        seqop: Callable[[A, T], A],
        combop: Callable[[A, A], A],
    ) -> A:
        return fold(items, zero, seqop)

    def run_all(self, thunks: Sequence[Callable[[], R]]) -> List[R]:
        return [thunk() for thunk in thunks]


class ThreadPoolTaskSupport:
    """
    Runs phases across a fixed pool of worker threads.

    Work is split into one contiguous chunk per worker. Tasks never
    submit further tasks, so waiting on results cannot deadlock the pool.

    Example:
        with ThreadPoolTaskSupport(workers=4) as tasks:
            simulator = Simulator(task_support=tasks)
            bodies, quad = simulator.step(bodies)
    """

    def __init__(self, workers: int = 4, executor: Optional[ThreadPoolExecutor] = None) -> None:
        """
        Initialize the pool.

        Args:
            workers: Parallelism level (number of threads)
            executor: Existing executor to use instead of creating one.
                It is not shut down by close().
        """
        self._workers = validate_parallelism(workers)
        self._owns_executor = executor is None
        self._executor = executor or ThreadPoolExecutor(
            max_workers=self._workers, thread_name_prefix="barneshut"
        )
        logger.debug("Started task support with %d workers", self._workers)

    @property
    def parallelism_level(self) -> int:
        return self._workers

    def map(self, fn: Callable[[T], R], items: Sequence[T]) -> List[R]:
        chunks = partition(items, self._workers)
        if len(chunks) == 1:
            return [fn(item) for item in chunks[0]]
        results: List[R] = []
        for chunk_result in self._executor.map(lambda chunk: [fn(i) for i in chunk], chunks):
            results.extend(chunk_result)
        return results

    def aggregate(
        self,
        items: Sequence[T],
        zero: Callable[[], A],
        seqop: Callable[[A, T], A],
        combop: Callable[[A, A], A],
    ) -> A:
        chunks = partition(items, self._workers)
        if len(chunks) == 1:
            return fold(chunks[0], zero, seqop)
        partials = list(self._executor.map(lambda chunk: fold(chunk, zero, seqop), chunks))
        return tree_reduce(partials, combop)

    def run_all(self, thunks: Sequence[Callable[[], R]]) -> List[R]:
        futures = [self._executor.submit(thunk) for thunk in thunks]
        return [future.result() for future in futures]

    def close(self) -> None:
        """Shut down the pool if this instance created it."""
        if self._owns_executor:
            self._executor.shutdown(wait=True)

    def __enter__(self) -> ThreadPoolTaskSupport:
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()


__all__ = [
    "TaskSupport",
    "SequentialTaskSupport",
    "ThreadPoolTaskSupport",
    "partition",
    "fold",
    "tree_reduce",
]
