"""
리드타임 집계 서비스
"""

import enum
from datetime import datetime
from typing import Iterable

from sqlalchemy.orm import Session

from ..core.config import settings, LEAD_TIME_UNITS, as_utc
from ..core.database import storage_errors
from ..core.exceptions import DivisionUndefined, ValidationError
from ..models.task import Task
from ..models.work import Work


class LeadTimeStage(str, enum.Enum):
    """집계 구간 (시작 필드 → 종료 필드)"""
    START_TO_MERGE = "start_to_merge"
    MERGE_TO_DEPLOY = "merge_to_deploy"
    START_TO_DEPLOY = "start_to_deploy"


_STAGE_COLUMNS = {
    LeadTimeStage.START_TO_MERGE: (Work.start_time, Work.merged_time),
    LeadTimeStage.MERGE_TO_DEPLOY: (Work.merged_time, Work.deployed_time),
    LeadTimeStage.START_TO_DEPLOY: (Work.start_time, Work.deployed_time),
}


def unit_seconds(unit: str = None) -> float:
    """집계 단위 → 초 (기본값: LEAD_TIME_UNIT 설정)"""
    unit = unit or settings.lead_time_unit
    if unit not in LEAD_TIME_UNITS:
        raise ValidationError(
            f"지원하지 않는 단위: {unit} ({', '.join(LEAD_TIME_UNITS)})", "lead_time_unit", unit
        )
    return LEAD_TIME_UNITS[unit]


def mean_duration(pairs: Iterable[tuple[datetime, datetime]], unit: str = None) -> float:
    """(시작, 종료) 쌍의 평균 소요 시간"""
    divisor = unit_seconds(unit)
    total = 0.0
    count = 0
    for start, end in pairs:
        total += (as_utc(end) - as_utc(start)).total_seconds() / divisor
        count += 1

    if count == 0:
        raise DivisionUndefined("집계 대상이 없어 평균을 계산할 수 없음", "mean_duration")
    return total / count


def average_work_lead_time(
    db: Session,
    stage: LeadTimeStage = LeadTimeStage.START_TO_DEPLOY,
    since: datetime = None,
    until: datetime = None,
    branch: str = None,
    unit: str = None,
) -> float:
    """작업 항목 평균 리드타임 (두 필드가 모두 있는 작업만)"""
    start_col, end_col = _STAGE_COLUMNS[LeadTimeStage(stage)]

    query = db.query(start_col, end_col).filter(start_col.isnot(None), end_col.isnot(None))
    if since:
        query = query.filter(start_col >= as_utc(since))
    if until:
        query = query.filter(start_col < as_utc(until))
    if branch:
        query = query.filter(Work.branch == branch)

    with storage_errors(db, "average_work_lead_time", LeadTimeStage(stage).value):
        rows = query.all()

    try:
        return mean_duration(rows, unit)
    except DivisionUndefined as e:
        e.operation = "average_work_lead_time"
        e.identifier = LeadTimeStage(stage).value
        raise


def average_task_lead_time(db: Session, since: datetime = None, unit: str = None) -> float:
    """완료된 태스크 평균 리드타임"""
    query = db.query(Task.start_time, Task.end_time).filter(
        Task.start_time.isnot(None), Task.end_time.isnot(None)
    )
    if since:
        query = query.filter(Task.start_time >= as_utc(since))

    with storage_errors(db, "average_task_lead_time"):
        rows = query.all()

    try:
        return mean_duration(rows, unit)
    except DivisionUndefined as e:
        e.operation = "average_task_lead_time"
        raise
