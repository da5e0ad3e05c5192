"""Tests for task support providers."""

import threading
from concurrent.futures import ThreadPoolExecutor

import pytest

from barneshut import InvalidConfigError, SequentialTaskSupport, ThreadPoolTaskSupport
from barneshut.parallel import fold, partition, tree_reduce


class TestHelpers:
    """Tests for partition, fold and tree_reduce."""

    def test_partition_near_equal_chunks(self):
        chunks = partition(list(range(10)), 3)
        assert [list(c) for c in chunks] == [[0, 1, 2, 3], [4, 5, 6], [7, 8, 9]]

    def test_partition_more_parts_than_items(self):
        """No empty chunks are produced."""
        chunks = partition([1, 2], 5)
        assert [list(c) for c in chunks] == [[1], [2]]

    def test_partition_empty(self):
        assert partition([], 4) == [[]]

    def test_fold_uses_fresh_accumulator(self):
        assert fold([1, 2, 3], list, lambda acc, x: acc + [x * 2]) == [2, 4, 6]

    def test_tree_reduce_keeps_order(self):
        """Non-commutative combines see partials left to right."""
        assert tree_reduce(["a", "b", "c", "d", "e"], lambda x, y: x + y) == "abcde"

    def test_tree_reduce_single(self):
        assert tree_reduce([7], lambda x, y: x + y) == 7


class TestSequentialTaskSupport:
    """Tests for the single-threaded provider."""

    def test_parallelism_level(self):
        assert SequentialTaskSupport().parallelism_level == 1

    def test_map(self):
        assert SequentialTaskSupport().map(lambda x: x * x, [1, 2, 3]) == [1, 4, 9]

    def test_aggregate(self):
        total = SequentialTaskSupport().aggregate(
            list(range(100)), lambda: 0, lambda acc, x: acc + x, lambda a, b: a + b
        )
        assert total == 4950

    def test_run_all(self):
        assert SequentialTaskSupport().run_all([lambda: 1, lambda: 2]) == [1, 2]


class TestThreadPoolTaskSupport:
    """Tests for the thread pool provider."""

    def test_parallelism_level(self, thread_pool):
        assert thread_pool.parallelism_level == 4

    def test_invalid_worker_count(self):
        with pytest.raises(InvalidConfigError):
            ThreadPoolTaskSupport(workers=0)

    def test_map_preserves_order(self, thread_pool):
        items = list(range(101))
        assert thread_pool.map(lambda x: -x, items) == [-x for x in items]

    def test_map_uses_worker_threads(self, thread_pool):
        names = thread_pool.map(lambda _: threading.current_thread().name, list(range(40)))
        assert any(name.startswith("barneshut") for name in names)

    def test_aggregate_matches_sequential(self, thread_pool):
        items = list(range(1000))
        result = thread_pool.aggregate(
            items, list, lambda acc, x: acc + [x], lambda a, b: a + b
        )
        assert result == items

    def test_aggregate_fresh_accumulator_per_chunk(self, thread_pool):
        """Each chunk folds into its own accumulator."""
        zeros = []

        def zero():
            acc = []
            zeros.append(acc)
            return acc

        def seqop(acc, x):
            acc.append(x)
            return acc

        result = thread_pool.aggregate(list(range(20)), zero, seqop, lambda a, b: a + b)
        assert result == list(range(20))
        assert len(zeros) == 4
        assert len({id(z) for z in zeros}) == 4

    def test_aggregate_small_input(self, thread_pool):
        """Fewer items than workers still aggregates correctly."""
        assert thread_pool.aggregate([5], lambda: 0, lambda a, x: a + x, lambda a, b: a + b) == 5

    def test_run_all_order(self, thread_pool):
        thunks = [lambda i=i: i * 10 for i in range(8)]
        assert thread_pool.run_all(thunks) == [i * 10 for i in range(8)]

    def test_run_all_propagates_errors(self, thread_pool):
        def boom():
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError, match="boom"):
            thread_pool.run_all([boom])

    def test_external_executor_not_shut_down(self):
        """close() leaves a borrowed executor running."""
        with ThreadPoolExecutor(max_workers=2) as executor:
            tasks = ThreadPoolTaskSupport(workers=2, executor=executor)
            tasks.close()
            assert executor.submit(lambda: 42).result() == 42
