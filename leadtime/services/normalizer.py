"""
이벤트 정규화 - GitHub 원본 페이로드 → 내부 이벤트
상태 없음 (DB 접근 없음)
"""

import logging
from typing import Optional

from ..core.config import settings, as_utc
from ..core.exceptions import ValidationError
from ..schemas.github import (
    PushPayload, PullRequestPayload, DeploymentPayload, DeploymentStatusPayload,
)
from ..schemas.events import (
    BranchStarted, DeploymentCompleted,
    PullRequestChange, PullRequestOpened, PullRequestReopened,
    PullRequestMerged, PullRequestAbandoned,
)

logger = logging.getLogger(__name__)

BRANCH_REF_PREFIX = "refs/heads/"


def branch_from_ref(ref: str) -> str:
    """refs/heads/ 접두어 제거"""
    if ref.startswith(BRANCH_REF_PREFIX):
        return ref[len(BRANCH_REF_PREFIX):]
    if ref.startswith("refs/"):
        raise ValidationError(f"브랜치 ref 가 아님: {ref}", "normalize_push", ref)
    return ref


def normalize_push(payload: PushPayload) -> BranchStarted:
    """push → 브랜치 시작 (가장 이른 커밋 시각)"""
    branch = branch_from_ref(payload.ref)
    if not branch:
        raise ValidationError("브랜치 이름이 비어 있음", "normalize_push", payload.ref)

    if payload.deleted or not payload.commits:
        raise ValidationError(
            "커밋이 없는 push 는 시작 시각을 정할 수 없음", "normalize_push", branch
        )

    earliest = min(as_utc(commit.timestamp) for commit in payload.commits)
    return BranchStarted(branch=branch, started_at=earliest)


def normalize_pull_request(payload: PullRequestPayload) -> Optional[PullRequestChange]:
    """pull_request → opened / reopened / merged / abandoned (그 외 action 은 None)"""
    pr = payload.pull_request
    branch = pr.head.ref

    if payload.action == "opened":
        return PullRequestOpened(branch=branch, number=payload.number)

    if payload.action == "reopened":
        return PullRequestReopened(branch=branch, number=payload.number)

    if payload.action == "closed":
        # GitHub 은 머지되지 않은 PR 에도 테스트 머지 sha 를 채우므로 merged 플래그를 우선
        integrated = bool(pr.merge_commit_sha) and pr.merged_at is not None
        if pr.merged is False:
            integrated = False

        if integrated:
            return PullRequestMerged(
                branch=branch,
                number=payload.number,
                merge_commit=pr.merge_commit_sha,
                merged_at=as_utc(pr.merged_at),
            )
        return PullRequestAbandoned(branch=branch, number=payload.number)

    logger.debug(f"무시하는 PR action: {payload.action} (#{payload.number}, {branch})")
    return None


def normalize_deployment(payload: DeploymentPayload) -> DeploymentCompleted:
    """배포 완료 알림 → 배포 이벤트"""
    commit = payload.commit.strip()
    if not commit:
        raise ValidationError("배포 커밋이 비어 있음", "normalize_deployment", payload.commit)
    return DeploymentCompleted(merge_commit=commit, deployed_at=as_utc(payload.deployed_at))


def normalize_deployment_status(
    payload: DeploymentStatusPayload, environment: str = None
) -> Optional[DeploymentCompleted]:
    """GitHub deployment_status → 배포 이벤트 (성공 + 대상 환경만)"""
    status = payload.deployment_status
    if status.state != "success":
        return None

    target = settings.deployment_environment if environment is None else environment
    actual = status.environment or payload.deployment.environment
    if target and actual != target:
        logger.debug(f"대상 외 환경 배포 무시: {actual} (대상: {target})")
        return None

    return DeploymentCompleted(
        merge_commit=payload.deployment.sha,
        deployed_at=as_utc(status.created_at),
    )
