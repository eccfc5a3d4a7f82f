"""Tests for leadtime.services.task_service."""

import time

import pytest
from sqlalchemy.exc import OperationalError

from leadtime.core.exceptions import NotFound, StorageError, ValidationError
from leadtime.services import task_service
from leadtime.services.aggregator import average_task_lead_time


def test_create_complete_task(db):
    task = task_service.create_task(db, "test_create_complete_task")
    assert task.id is not None
    assert task.end_time is None

    time.sleep(0.1)

    completed = task_service.complete_task(db, task.id)
    assert completed.end_time is not None
    assert completed.end_time > completed.start_time

    # 100ms = 0.001666667분
    lead = average_task_lead_time(db, unit="minutes")
    assert 0.0012 < lead < 0.0020


def test_complete_twice_rejected(db):
    task = task_service.create_task(db, "twice")
    task_service.complete_task(db, task.id)
    end_time = task_service.get_task(db, task.id).end_time

    with pytest.raises(ValidationError):
        task_service.complete_task(db, task.id)
    assert task_service.get_task(db, task.id).end_time == end_time


def test_complete_missing_task(db):
    with pytest.raises(NotFound):
        task_service.complete_task(db, 404)


def test_blank_name_rejected(db):
    with pytest.raises(ValidationError):
        task_service.create_task(db, "   ")


def test_count_tasks(db):
    done = task_service.create_task(db, "done")
    task_service.create_task(db, "open")
    task_service.complete_task(db, done.id)
    assert task_service.count_tasks(db) == {"open": 1, "completed": 1}


def test_get_task_storage_error(db, monkeypatch):
    def broken_query(*entities, **kwargs):
        raise OperationalError("SELECT task", {}, Exception("connection refused"))

    monkeypatch.setattr(db, "query", broken_query)
    with pytest.raises(StorageError) as exc_info:
        task_service.get_task(db, 1)
    assert exc_info.value.operation == "get_task"
    assert exc_info.value.identifier == 1
