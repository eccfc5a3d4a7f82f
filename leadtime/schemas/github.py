"""
GitHub 웹훅 / 배포 알림 원본 페이로드 스키마
필요한 필드만 정의 (나머지 필드는 무시)
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


# ============================================================
# push
# ============================================================

class PushCommit(BaseModel):
    id: Optional[str] = None
    timestamp: datetime


class PushPayload(BaseModel):
    ref: str
    deleted: bool = False
    commits: list[PushCommit] = Field(default_factory=list)


# ============================================================
# pull_request
# ============================================================

class PullRequestRef(BaseModel):
    ref: str


class PullRequestDetail(BaseModel):
    head: PullRequestRef
    merged: Optional[bool] = None
    merged_at: Optional[datetime] = None
    merge_commit_sha: Optional[str] = None


class PullRequestPayload(BaseModel):
    action: str
    number: int
    pull_request: PullRequestDetail


# ============================================================
# 배포 완료 알림 (CD 파이프라인에서 직접 호출)
# ============================================================

class DeploymentPayload(BaseModel):
    commit: str = Field(..., max_length=64)
    deployed_at: datetime


# ============================================================
# deployment_status (GitHub Deployments API)
# ============================================================

class GitHubDeployment(BaseModel):
    sha: str
    environment: Optional[str] = None


class GitHubDeploymentStatus(BaseModel):
    state: str
    environment: Optional[str] = None
    created_at: datetime


class DeploymentStatusPayload(BaseModel):
    deployment: GitHubDeployment
    deployment_status: GitHubDeploymentStatus
