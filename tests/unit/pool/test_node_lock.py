"""
Unit tests for neva.pool.node_lock module.
"""

import pytest

from neva.pool import NodeMutationLock


class TestNodeMutationLock:

    def test_initially_unlocked(self):
        lock = NodeMutationLock(2, 3, 0.1)
        assert not lock.locked
        assert lock.lock_count == 0

    def test_disabled(self):
        lock = NodeMutationLock(0, 5, 1.0)
        for generation in range(10):
            assert lock.update(generation, 2.0) is False

    def test_plateau_locks(self):
        lock = NodeMutationLock(2, 3, 0.1)
        assert lock.update(0, 2.0) is False   # window mean 1.0
        assert lock.update(1, 2.0) is False   # window mean 2.0, change 100%
        assert lock.update(2, 2.0) is True    # change 0% => lock for 3 generations
        assert lock.lock_count == 3

    def test_lock_counts_down(self):
        lock = NodeMutationLock(2, 3, 0.1)
        for generation in range(3):
            lock.update(generation, 2.0)
        assert lock.update(3, 2.0) is True
        assert lock.update(4, 2.0) is True
        assert lock.update(5, 2.0) is False

    def test_window_restarts_after_unlock(self):
        lock = NodeMutationLock(2, 1, 0.1)
        for generation in range(3):
            lock.update(generation, 2.0)
        assert lock.update(3, 2.0) is False
        # a fresh window needs two more generations before it can lock again
        assert lock.update(4, 2.0) is False
        assert lock.update(5, 2.0) is False
        assert lock.update(6, 2.0) is True

    def test_growth_never_locks(self):
        lock = NodeMutationLock(2, 3, 0.1)
        for generation in range(10):
            assert lock.update(generation, float(2 ** generation)) is False

    def test_reset(self):
        lock = NodeMutationLock(2, 3, 0.1)
        for generation in range(3):
            lock.update(generation, 2.0)
        lock.reset()
        assert not lock.locked
