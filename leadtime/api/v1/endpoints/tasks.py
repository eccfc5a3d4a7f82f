"""
태스크 API 엔드포인트
"""

from datetime import datetime

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ....core.config import settings
from ....core.database import get_db
from ....schemas.task import TaskCreate, TaskResponse
from ....schemas.work import LeadTimeResponse
from ....services import task_service
from ....services.aggregator import average_task_lead_time

router = APIRouter(prefix="/tasks", tags=["tasks"])


@router.post("", response_model=TaskResponse, status_code=201)
def create_task(data: TaskCreate, db: Session = Depends(get_db)):
    """태스크 시작"""
    return task_service.create_task(db, data.name)


@router.get("/lead-time", response_model=LeadTimeResponse)
def get_task_lead_time(
    since: datetime = None,
    unit: str = None,
    db: Session = Depends(get_db),
):
    """완료된 태스크 평균 리드타임"""
    unit = unit or settings.lead_time_unit
    return LeadTimeResponse(time=average_task_lead_time(db, since=since, unit=unit), unit=unit)


@router.post("/{task_id}/complete", response_model=TaskResponse)
def complete_task(task_id: int, db: Session = Depends(get_db)):
    """태스크 완료"""
    return task_service.complete_task(db, task_id)


@router.get("/{task_id}", response_model=TaskResponse)
def get_task(task_id: int, db: Session = Depends(get_db)):
    return task_service.get_task(db, task_id)
