"""
작업 항목 API 엔드포인트
"""

from datetime import datetime

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ....core.config import settings
from ....core.database import get_db
from ....models.work import WorkStatus
from ....schemas.github import PushPayload, PullRequestPayload, DeploymentPayload
from ....schemas.work import WorkResponse, WorkIdResponse, LeadTimeResponse
from ....services.aggregator import LeadTimeStage, average_work_lead_time
from ....services.correlator import LifecycleCorrelator, get_correlator
from ....services.ledger import WorkLedger

router = APIRouter(prefix="/work", tags=["work"])


def correlator_dependency(db: Session = Depends(get_db)) -> LifecycleCorrelator:
    return get_correlator(db)


@router.post("/push", response_model=WorkIdResponse)
def submit_push(
    payload: PushPayload,
    correlator: LifecycleCorrelator = Depends(correlator_dependency),
):
    """브랜치 push 이벤트"""
    return WorkIdResponse(id=correlator.submit_push(payload))


@router.post("/pull-request", response_model=WorkIdResponse)
def submit_pull_request(
    payload: PullRequestPayload,
    correlator: LifecycleCorrelator = Depends(correlator_dependency),
):
    """PR 이벤트"""
    work_id = correlator.submit_pull_request(payload)
    return WorkIdResponse(id=work_id, ignored=work_id is None)


@router.post("/deployed", response_model=WorkIdResponse)
def submit_deployment(
    payload: DeploymentPayload,
    correlator: LifecycleCorrelator = Depends(correlator_dependency),
):
    """배포 완료 알림"""
    return WorkIdResponse(id=correlator.submit_deployment(payload))


@router.get("", response_model=list[WorkResponse])
def list_work(
    branch: str = None,
    status: WorkStatus = None,
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    db: Session = Depends(get_db),
):
    """작업 항목 목록 조회"""
    return WorkLedger(db).list_work(branch=branch, status=status, limit=limit, offset=offset)


@router.get("/lead-time", response_model=LeadTimeResponse)
def get_lead_time(
    stage: LeadTimeStage = LeadTimeStage.START_TO_DEPLOY,
    since: datetime = None,
    until: datetime = None,
    branch: str = None,
    unit: str = None,
    db: Session = Depends(get_db),
):
    """평균 리드타임"""
    unit = unit or settings.lead_time_unit
    value = average_work_lead_time(
        db, stage=stage, since=since, until=until, branch=branch, unit=unit
    )
    return LeadTimeResponse(time=value, unit=unit, stage=stage.value)


@router.get("/{work_id}", response_model=WorkResponse)
def get_work(
    work_id: int,
    correlator: LifecycleCorrelator = Depends(correlator_dependency),
):
    """작업 항목 상세 조회"""
    return correlator.get_work(work_id)
