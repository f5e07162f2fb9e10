"""
Unit tests for per-skill write serialization.

Tests:
- SkillLockRegistry behaviour
- Concurrent submissions on one skill lose no decay update
- Concurrent resubmission of one test completes it exactly once
"""

import threading
from concurrent.futures import ThreadPoolExecutor

import pytest

from src.retention.errors import AlreadyCompletedError
from src.retention.locks import SkillLockRegistry

THREE_CORRECT = {"q1": 1, "q2": 0, "q3": 0, "q4": 3, "q5": 3}


class TestSkillLockRegistry:
    def test_same_lock_per_skill(self):
        locks = SkillLockRegistry()
        assert locks.get("a") is locks.get("a")
        assert locks.get("a") is not locks.get("b")
        assert len(locks) == 2

    def test_hold_is_reentrant(self):
        locks = SkillLockRegistry()
        with locks.hold("a"):
            with locks.hold("a"):
                assert len(locks) == 1

    def test_discard(self):
        locks = SkillLockRegistry()
        locks.get("a")
        locks.discard("a")
        locks.discard("never-created")
        assert len(locks) == 0

    def test_hold_excludes_other_threads(self):
        locks = SkillLockRegistry()
        acquired = []

        with locks.hold("a"):
            worker = threading.Thread(target=lambda: acquired.append(locks.get("a").acquire(timeout=0.05)))
            worker.start()
            worker.join()

        assert acquired == [False]


class TestConcurrentSubmissions:
    def _submit_all(self, tracker, test_ids, workers):
        barrier = threading.Barrier(workers)

        def submit(test_id):
            barrier.wait()
            try:
                return tracker.submit_test(test_id, "alice", THREE_CORRECT, 60)
            except AlreadyCompletedError as e:
                return e

        with ThreadPoolExecutor(max_workers=workers) as pool:
            return list(pool.map(submit, test_ids))

    def test_no_lost_decay_updates(self, tracker, storage, skill):
        test_ids = [tracker.generate_test(skill.id, "alice").id for _ in range(4)]

        outcomes = self._submit_all(tracker, test_ids, workers=4)

        assert all(not isinstance(o, Exception) for o in outcomes)
        stored = storage.find_skill_by_id(skill.id)
        assert stored.adaptive_decay_multiplier == pytest.approx(0.9**4)
        assert stored.half_life == pytest.approx(7 * 1.1**4)

    def test_duplicate_submission_completes_once(self, tracker, storage, skill):
        test_id = tracker.generate_test(skill.id, "alice").id

        outcomes = self._submit_all(tracker, [test_id] * 6, workers=6)

        rejected = [o for o in outcomes if isinstance(o, AlreadyCompletedError)]
        assert len(rejected) == 5
        stored = storage.find_skill_by_id(skill.id)
        assert stored.adaptive_decay_multiplier == pytest.approx(0.9)
        assert stored.half_life == pytest.approx(7.7)
