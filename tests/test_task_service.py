from datetime import date

import pytest

from task_api.errors import AuthorizationError, NotFoundError, ValidationError
from task_api.models import TaskStatus
from task_api.repositories import InMemoryRepository
from task_api.task_service import TaskService

FIXED_TODAY = date(2024, 3, 15)


@pytest.fixture
def repo():
    r = InMemoryRepository()
    r.create_user(name="Owner", email="owner@example.com", password_hash="x")
    r.create_user(name="Other", email="other@example.com", password_hash="x")
    return r


@pytest.fixture
def service(repo):
    return TaskService(repo, today=lambda: FIXED_TODAY)


def _new_task(service, owner_id=1, title="New Task"):
    return service.create(
        owner_id,
        {"title": title, "description": "Task Description", "due_date": "2022-07-24"},
    )


class TestCreate:
    def test_new_task_defaults(self, service):
        task = _new_task(service)
        assert task["owner_id"] == 1
        assert task["status"] is TaskStatus.PENDING
        assert task["date_completed"] is None
        assert task["due_date"] == date(2022, 7, 24)

    def test_invalid_payload_stores_nothing(self, service, repo):
        with pytest.raises(ValidationError):
            service.create(1, {"title": "T"})
        assert repo.list_tasks()[1] == 0


class TestUpdate:
    def test_completion_date_recomputed_on_every_update(self, service, repo):
        task = _new_task(service)

        done = service.update(1, task["id"], {"status": "Completed"})
        assert done["date_completed"] == FIXED_TODAY

        later = TaskService(repo, today=lambda: date(2024, 3, 20))
        renamed = later.update(1, task["id"], {"title": "x"})
        assert renamed["status"] is TaskStatus.COMPLETED
        assert renamed["date_completed"] == date(2024, 3, 20)

        reopened = later.update(1, task["id"], {"status": "Pending"})
        assert reopened["date_completed"] is None

    def test_owner_check_runs_before_validation(self, service):
        task = _new_task(service)
        with pytest.raises(AuthorizationError):
            service.update(2, task["id"], {"status": "bogus"})

    def test_missing_task_before_owner_check(self, service):
        with pytest.raises(NotFoundError):
            service.update(2, 999, {"title": "x"})

    def test_failed_validation_leaves_task_untouched(self, service):
        task = _new_task(service)
        with pytest.raises(ValidationError):
            service.update(1, task["id"], {"title": "ok", "description": "short"})
        assert service.get(task["id"])["title"] == "New Task"

    def test_owner_cannot_be_changed(self, service):
        task = _new_task(service)
        updated = service.update(1, task["id"], {"owner_id": 2, "title": "Mine"})
        assert updated["owner_id"] == 1

    def test_task_deleted_between_read_and_write(self, service, repo, monkeypatch):
        task = _new_task(service)
        monkeypatch.setattr(repo, "save_task", lambda t: None)
        with pytest.raises(NotFoundError):
            service.update(1, task["id"], {"title": "x"})


class TestDeleteAndList:
    def test_delete_returns_snapshot(self, service):
        task = _new_task(service, title="Doomed")
        deleted = service.delete(1, task["id"])
        assert deleted == task
        with pytest.raises(NotFoundError):
            service.get(task["id"])

    def test_non_owner_cannot_delete(self, service):
        task = _new_task(service)
        with pytest.raises(AuthorizationError):
            service.delete(2, task["id"])
        assert service.get(task["id"])["id"] == task["id"]

    def test_list_pages(self, service):
        for i in range(5):
            _new_task(service, owner_id=1 + i % 2, title=f"Task {i}")
        items, total = service.list(page=2, per_page=2)
        assert total == 5
        assert [t["title"] for t in items] == ["Task 2", "Task 3"]

    def test_list_clamps_page_numbers(self, service):
        _new_task(service)
        items, total = service.list(page=0, per_page=0)
        assert total == 1
        assert len(items) == 1
