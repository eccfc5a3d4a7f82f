"""
헬스체크 및 모니터링 엔드포인트
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from sqlalchemy import func

from ....core.config import APP_VERSION, now_utc, settings
from ....core.database import get_db, storage_errors
from ....models.task import Task
from ....models.work import Work
from ....services import task_service
from ....services.ledger import WorkLedger

router = APIRouter()


@router.get("/health")
def health_check(db: Session = Depends(get_db)):
    """서비스 상태 확인 (DB 접근 실패 시 503)"""
    with storage_errors(db, "health_check"):
        work_count = db.query(func.count(Work.id)).scalar()
        task_count = db.query(func.count(Task.id)).scalar()

    return {
        "status": "ok",
        "service": "LeadTime",
        "version": APP_VERSION,
        "timestamp": now_utc().isoformat(),
        "database": {
            "work": work_count,
            "tasks": task_count,
        },
    }


@router.get("/stats")
def get_stats(db: Session = Depends(get_db)):
    """작업 상태별 통계"""
    by_status = WorkLedger(db).count_by_status()

    return {
        "work": {
            **by_status,
            "total": sum(by_status.values()),
        },
        "tasks": task_service.count_tasks(db),
        "lead_time_unit": settings.lead_time_unit,
    }
