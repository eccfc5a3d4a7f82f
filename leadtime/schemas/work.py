"""
작업 항목 / 리드타임 Pydantic 스키마
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from ..models.work import WorkStatus


class WorkResponse(BaseModel):
    id: int
    branch: str
    status: WorkStatus
    pull_request_number: Optional[int]
    merge_commit: Optional[str]
    start_time: datetime
    merged_time: Optional[datetime]
    deployed_time: Optional[datetime]

    model_config = {"from_attributes": True}


class WorkIdResponse(BaseModel):
    """이벤트 처리 결과 - 영향받은 작업 ID (무시된 이벤트는 None)"""
    id: Optional[int]
    ignored: bool = False


class LeadTimeResponse(BaseModel):
    time: float
    unit: str
    stage: Optional[str] = None
