"""
태스크 서비스 - 이름 있는 단순 작업의 시작/완료
"""

import logging

from sqlalchemy import func
from sqlalchemy.orm import Session

from ..core.config import now_utc
from ..core.database import storage_errors
from ..core.exceptions import NotFound, ValidationError
from ..models.task import Task

logger = logging.getLogger(__name__)


def create_task(db: Session, name: str) -> Task:
    """태스크 생성 (시작 시각 = 현재)"""
    name = name.strip()
    if not name:
        raise ValidationError("태스크 이름이 비어 있음", "create_task", name)

    task = Task(name=name, start_time=now_utc())
    with storage_errors(db, "create_task", name):
        db.add(task)
        db.commit()
        db.refresh(task)

    logger.info(f"태스크 생성: #{task.id} ({task.name})")
    return task


def get_task(db: Session, task_id: int) -> Task:
    with storage_errors(db, "get_task", task_id):
        task = db.query(Task).filter(Task.id == task_id).first()
    if task is None:
        raise NotFound(f"태스크 {task_id} 없음", "get_task", task_id)
    return task


def complete_task(db: Session, task_id: int) -> Task:
    """태스크 완료 (종료 시각 = 현재)"""
    with storage_errors(db, "complete_task", task_id):
        task = (
            db.query(Task)
            .filter(Task.id == task_id)
            .with_for_update()
            .populate_existing()
            .first()
        )
        if task is None:
            raise NotFound(f"태스크 {task_id} 없음", "complete_task", task_id)
        if task.end_time is not None:
            raise ValidationError(f"이미 완료된 태스크: {task_id}", "complete_task", task_id)

        task.end_time = now_utc()
        db.commit()
        db.refresh(task)

    logger.info(f"태스크 완료: #{task.id} ({task.name})")
    return task


def count_tasks(db: Session) -> dict[str, int]:
    """열린 / 완료된 태스크 수"""
    with storage_errors(db, "count_tasks"):
        completed_count = db.query(func.count(Task.id)).filter(Task.end_time.isnot(None)).scalar()
        open_count = db.query(func.count(Task.id)).filter(Task.end_time.is_(None)).scalar()
    return {"open": open_count, "completed": completed_count}
