"""
정규화된 내부 이벤트

GitHub 원본 페이로드를 브랜치 이름 또는 머지 커밋으로 식별되는 이벤트로 변환한 결과.
PR 닫힘은 머지(PullRequestMerged)와 포기(PullRequestAbandoned)를 별도 타입으로 구분한다.
"""

from datetime import datetime
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field


class BranchStarted(BaseModel):
    """브랜치 첫 push (가장 이른 커밋 시각)"""
    model_config = {"frozen": True}

    branch: str
    started_at: datetime


class PullRequestOpened(BaseModel):
    model_config = {"frozen": True}

    kind: Literal["opened"] = "opened"
    branch: str
    number: int


class PullRequestReopened(BaseModel):
    model_config = {"frozen": True}

    kind: Literal["reopened"] = "reopened"
    branch: str
    number: int


class PullRequestMerged(BaseModel):
    model_config = {"frozen": True}

    kind: Literal["merged"] = "merged"
    branch: str
    number: int
    merge_commit: str
    merged_at: datetime


class PullRequestAbandoned(BaseModel):
    model_config = {"frozen": True}

    kind: Literal["abandoned"] = "abandoned"
    branch: str
    number: int


PullRequestChange = Annotated[
    Union[PullRequestOpened, PullRequestReopened, PullRequestMerged, PullRequestAbandoned],
    Field(discriminator="kind"),
]


class DeploymentCompleted(BaseModel):
    """머지 커밋의 운영 배포 완료"""
    model_config = {"frozen": True}

    merge_commit: str
    deployed_at: datetime
