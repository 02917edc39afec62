from datetime import date, datetime, timedelta, timezone

import pytest

from task_api.db import SQLiteRepository
from task_api.errors import ConflictError
from task_api.models import TaskStatus
from task_api.repositories import ListQuery


@pytest.fixture
def repo(tmp_path):
    return SQLiteRepository(str(tmp_path / "nested" / "tasks.db"))


@pytest.fixture
def owner(repo):
    return repo.create_user(name="Owner", email="owner@example.com", password_hash="hash")


def _task(repo, owner_id, title="Task"):
    return repo.create_task(
        owner_id=owner_id,
        title=title,
        description="Task Description",
        due_date=date(2022, 7, 24),
        status=TaskStatus.PENDING,
        date_completed=None,
    )


class TestUsers:
    def test_create_and_fetch(self, repo, owner):
        assert owner["id"] == 1
        assert repo.get_user(owner["id"]) == owner
        assert repo.get_user(42) is None

    def test_email_lookup_ignores_case(self, repo, owner):
        assert repo.get_user_by_email("OWNER@example.com")["id"] == owner["id"]

    def test_duplicate_email_conflicts(self, repo, owner):
        with pytest.raises(ConflictError) as info:
            repo.create_user(name="Again", email="Owner@Example.com", password_hash="hash")
        assert info.value.field == "email"


class TestTasks:
    def test_round_trip_types(self, repo, owner):
        task = _task(repo, owner["id"])
        fetched = repo.get_task(task["id"])
        assert fetched == task
        assert fetched["due_date"] == date(2022, 7, 24)
        assert fetched["status"] is TaskStatus.PENDING
        assert fetched["date_completed"] is None
        assert isinstance(fetched["created_at"], datetime)

    def test_save_overwrites_mutable_fields(self, repo, owner):
        task = _task(repo, owner["id"])
        task.update(
            title="Changed",
            status=TaskStatus.COMPLETED,
            date_completed=date(2024, 1, 2),
            owner_id=999,
        )
        saved = repo.save_task(task)
        assert saved["title"] == "Changed"
        assert saved["status"] is TaskStatus.COMPLETED
        assert saved["date_completed"] == date(2024, 1, 2)
        assert saved["owner_id"] == owner["id"]

    def test_save_missing_task(self, repo, owner):
        task = _task(repo, owner["id"])
        assert repo.delete_task(task["id"]) is True
        assert repo.save_task(task) is None
        assert repo.delete_task(task["id"]) is False

    def test_list_in_insertion_order_with_total(self, repo, owner):
        for i in range(5):
            _task(repo, owner["id"], title=f"Task {i}")
        items, total = repo.list_tasks(ListQuery(limit=2, offset=3))
        assert total == 5
        assert [t["title"] for t in items] == ["Task 3", "Task 4"]

    def test_data_survives_reopen(self, tmp_path):
        path = str(tmp_path / "tasks.db")
        first = SQLiteRepository(path)
        user = first.create_user(name="Owner", email="owner@example.com", password_hash="hash")
        _task(first, user["id"], title="Persisted")

        second = SQLiteRepository(path)
        items, total = second.list_tasks()
        assert total == 1
        assert items[0]["title"] == "Persisted"


class TestRevokedTokens:
    def test_revocation_is_remembered(self, repo):
        expires = datetime.now(timezone.utc) + timedelta(hours=1)
        assert repo.is_token_revoked("abc") is False
        repo.revoke_token("abc", expires)
        assert repo.is_token_revoked("abc") is True

    def test_expired_revocations_are_pruned(self, repo):
        now = datetime.now(timezone.utc)
        repo.revoke_token("old", now - timedelta(minutes=1))
        repo.revoke_token("new", now + timedelta(hours=1))
        assert repo.is_token_revoked("old") is False
        assert repo.is_token_revoked("new") is True


class TestOutOfRangeIds:
    def test_lookups_with_huge_ids(self, repo, owner):
        _task(repo, owner["id"])
        huge = 2**63
        assert repo.get_task(huge) is None
        assert repo.get_user(huge) is None
        assert repo.delete_task(huge) is False

    def test_offset_past_integer_range(self, repo, owner):
        _task(repo, owner["id"])
        items, total = repo.list_tasks(ListQuery(limit=2**70, offset=2**70))
        assert items == []
        assert total == 1
