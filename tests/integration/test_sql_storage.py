"""
Integration tests for SqlAlchemyStorage on SQLite.

Tests:
- Skill and test records survive a round trip through the database
- Listings keep insertion order
- A failed submission rolls back every write
- Deleting a skill removes its tests
- Trackers sharing only the database file serialize their submissions
"""

import threading
from concurrent.futures import ThreadPoolExecutor

import pytest

from src.db.sql_store import SqlAlchemyStorage
from src.retention.errors import AlreadyCompletedError
from src.retention.locks import SkillLockRegistry
from src.retention.models import Confidence, PracticeMark, RetentionStatus
from src.retention.tracker import RetentionTracker

ALL_CORRECT = {"q1": 1, "q2": 0, "q3": 0, "q4": 0, "q5": 0}
ONE_CORRECT = {"q1": 1, "q2": 3, "q3": 3, "q4": 3, "q5": 3}
THREE_CORRECT = {"q1": 1, "q2": 0, "q3": 0, "q4": 3, "q5": 3}


@pytest.fixture
def sql_storage(clock):
    return SqlAlchemyStorage.from_url("sqlite://", clock=clock)


@pytest.fixture
def sql_tracker(sql_storage, clock, settings):
    return RetentionTracker(sql_storage, clock=clock, settings=settings)


class TestRoundTrip:
    def test_skill(self, sql_tracker, sql_storage, clock):
        created = sql_tracker.create_skill("alice", "Python", "Programming", 80)

        stored = sql_storage.find_skill_by_id(created.id)

        assert stored.name == "Python"
        assert stored.category == "Programming"
        assert stored.initial_proficiency == 80
        assert stored.half_life == 7.0
        assert stored.last_practiced_at == clock.now
        assert stored.last_practiced_at.tzinfo is not None

    def test_generated_test_keeps_answer_key(self, sql_tracker, sql_storage):
        skill = sql_tracker.create_skill("alice", "Python")
        prompt = sql_tracker.generate_test(skill.id, "alice")

        stored = sql_storage.find_test_by_id(prompt.id)

        assert stored.completed_at is None
        assert stored.confidence is None
        assert [q.id for q in stored.questions] == ["q1", "q2", "q3", "q4", "q5"]
        assert [q.correct_index for q in stored.questions] == [1, 0, 0, 0, 0]

    def test_submitted_results(self, sql_tracker, sql_storage, clock):
        skill = sql_tracker.create_skill("alice", "Python", initial_proficiency=80)
        prompt = sql_tracker.generate_test(skill.id, "alice")
        clock.advance(minutes=2)

        sql_tracker.submit_test(prompt.id, "alice", ALL_CORRECT, 25)

        test = sql_storage.find_test_by_id(prompt.id)
        assert test.answers == ALL_CORRECT
        assert test.score == 5
        assert test.accuracy == 100
        assert test.confidence is Confidence.HIGH
        assert test.completed_at == clock.now

        stored_skill = sql_storage.find_skill_by_id(skill.id)
        assert stored_skill.half_life == pytest.approx(9.1)
        assert stored_skill.adaptive_decay_multiplier == pytest.approx(0.76)
        assert stored_skill.last_practiced_at == clock.now

    def test_missing_records(self, sql_storage, clock):
        assert sql_storage.find_skill_by_id("missing") is None
        assert sql_storage.find_test_by_id("missing") is None
        assert sql_storage.update_skill("missing", PracticeMark(practiced_at=clock.now)) is None
        assert sql_storage.delete_skill("missing") is False


class TestListings:
    def test_insertion_order_per_user(self, sql_tracker, sql_storage):
        for name in ["Rust", "Go", "SQL"]:
            sql_tracker.create_skill("alice", name)
        sql_tracker.create_skill("bob", "Haskell")

        assert [s.name for s in sql_storage.find_skills_by_user_id("alice")] == ["Rust", "Go", "SQL"]

    def test_history_most_recent_first(self, sql_tracker, clock):
        skill = sql_tracker.create_skill("alice", "Python")
        first = sql_tracker.generate_test(skill.id, "alice")
        sql_tracker.submit_test(first.id, "alice", ONE_CORRECT, 125)
        clock.advance(hours=3)
        second = sql_tracker.generate_test(skill.id, "alice")
        sql_tracker.submit_test(second.id, "alice", ALL_CORRECT, 25)

        assert [t.id for t in sql_tracker.get_test_history(skill.id, "alice")] == [second.id, first.id]


class TestTransactions:
    def test_failed_submission_rolls_back(self, clock, settings):
        class FailingPracticeStorage(SqlAlchemyStorage):
            def update_skill(self, skill_id, update):
                if isinstance(update, PracticeMark):
                    raise RuntimeError("connection lost")
                return super().update_skill(skill_id, update)

        seed = SqlAlchemyStorage.from_url("sqlite://", clock=clock)
        storage = FailingPracticeStorage(seed._session_factory, clock=clock)
        tracker = RetentionTracker(storage, clock=clock, settings=settings)
        skill = tracker.create_skill("alice", "Python")
        prompt = tracker.generate_test(skill.id, "alice")

        with pytest.raises(RuntimeError):
            tracker.submit_test(prompt.id, "alice", ALL_CORRECT, 25)

        assert storage.find_test_by_id(prompt.id).completed_at is None
        stored = storage.find_skill_by_id(skill.id)
        assert stored.half_life == 7.0
        assert stored.adaptive_decay_multiplier == 1.0

    def test_resubmission_rejected(self, sql_tracker, sql_storage):
        skill = sql_tracker.create_skill("alice", "Python")
        prompt = sql_tracker.generate_test(skill.id, "alice")
        sql_tracker.submit_test(prompt.id, "alice", ALL_CORRECT, 25)

        with pytest.raises(AlreadyCompletedError):
            sql_tracker.submit_test(prompt.id, "alice", ONE_CORRECT, 125)

        assert sql_storage.find_test_by_id(prompt.id).accuracy == 100


class TestDelete:
    def test_skill_deletion_removes_tests(self, sql_tracker, sql_storage):
        skill = sql_tracker.create_skill("alice", "Python")
        open_test = sql_tracker.generate_test(skill.id, "alice")
        done = sql_tracker.generate_test(skill.id, "alice")
        sql_tracker.submit_test(done.id, "alice", ALL_CORRECT, 25)

        assert sql_tracker.delete_skill(skill.id, "alice") is True

        assert sql_storage.find_skill_by_id(skill.id) is None
        assert sql_storage.find_test_by_id(open_test.id) is None
        assert sql_storage.find_test_by_id(done.id) is None
        assert sql_storage.find_tests_by_user_id("alice") == []


class TestPersistence:
    def test_file_database_shared_between_stores(self, tmp_path, clock, settings):
        url = f"sqlite:///{tmp_path / 'skillfade.db'}"
        writer = RetentionTracker(SqlAlchemyStorage.from_url(url, clock=clock), clock=clock, settings=settings)
        skill = writer.create_skill("alice", "Python", initial_proficiency=90)

        clock.advance(days=30)
        reader = RetentionTracker(SqlAlchemyStorage.from_url(url, clock=clock), clock=clock, settings=settings)
        data = reader.get_knowledge_overview("alice")

        assert [s.id for s in data.skills] == [skill.id]
        assert data.skills[0].retention_status == RetentionStatus.FADING
        assert data.stats.total_skills == 1
        assert reader.get_skill(skill.id, "alice").days_since_last_practice == pytest.approx(30.0)


class TestSeparateTrackers:
    """Trackers with their own lock registries, like separate CLI processes."""

    def _trackers(self, tmp_path, clock, settings, count=2):
        url = f"sqlite:///{tmp_path / 'shared.db'}"
        return [
            RetentionTracker(
                SqlAlchemyStorage.from_url(url, clock=clock),
                clock=clock,
                locks=SkillLockRegistry(),
                settings=settings,
            )
            for _ in range(count)
        ]

    def _submit_concurrently(self, submissions):
        barrier = threading.Barrier(len(submissions))

        def submit(args):
            tracker, test_id = args
            barrier.wait()
            try:
                return tracker.submit_test(test_id, "alice", THREE_CORRECT, 60)
            except AlreadyCompletedError as e:
                return e

        with ThreadPoolExecutor(max_workers=len(submissions)) as pool:
            return list(pool.map(submit, submissions))

    def test_no_lost_decay_updates(self, tmp_path, clock, settings):
        trackers = self._trackers(tmp_path, clock, settings)
        skill = trackers[0].create_skill("alice", "Python")
        test_ids = [trackers[0].generate_test(skill.id, "alice").id for _ in range(4)]

        outcomes = self._submit_concurrently(
            [(trackers[i % 2], test_id) for i, test_id in enumerate(test_ids)]
        )

        assert all(not isinstance(o, Exception) for o in outcomes)
        stored = trackers[1].storage.find_skill_by_id(skill.id)
        assert stored.adaptive_decay_multiplier == pytest.approx(0.9**4)
        assert stored.half_life == pytest.approx(7 * 1.1**4)

    def test_duplicate_submission_completes_once(self, tmp_path, clock, settings):
        trackers = self._trackers(tmp_path, clock, settings)
        skill = trackers[0].create_skill("alice", "Python")
        test_id = trackers[0].generate_test(skill.id, "alice").id

        outcomes = self._submit_concurrently([(tracker, test_id) for tracker in trackers])

        assert sum(isinstance(o, AlreadyCompletedError) for o in outcomes) == 1
        stored = trackers[0].storage.find_skill_by_id(skill.id)
        assert stored.adaptive_decay_multiplier == pytest.approx(0.9)
        assert stored.half_life == pytest.approx(7.7)
