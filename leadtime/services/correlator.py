"""
라이프사이클 상관기 (Lifecycle Correlator)

독립적으로 도착하는 push / pull_request / 배포 이벤트를 하나의 작업 항목으로 묶는다.

    started ─ PR opened ─▶ in_review ─ closed(merge) ──▶ merged ─ deploy ─▶ deployed
                                     └ closed(no merge) ▶ abandoned ─ reopened ─▶ in_review

- push / PR opened 는 해당 브랜치의 가장 최근 작업을 대상으로 한다.
- PR reopened / closed 는 그 PR 번호가 연결된 작업을 우선 대상으로 한다.
- 순서가 어긋난 이벤트(push 전 PR, 머지 전 배포)는 NotFound 로 호출자에게 전달한다.
  재시도/재전송은 호출자 책임이며 내부 버퍼는 없다.
"""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.exceptions import LeadTimeError, NotFound
from ..models.work import Work, WorkStatus
from ..schemas.events import (
    BranchStarted, DeploymentCompleted,
    PullRequestOpened, PullRequestReopened, PullRequestMerged, PullRequestAbandoned,
)
from ..schemas.github import (
    PushPayload, PullRequestPayload, DeploymentPayload, DeploymentStatusPayload,
)
from . import normalizer
from .ledger import WorkLedger

logger = logging.getLogger(__name__)


class LifecycleCorrelator:
    """작업 라이프사이클 상태 머신"""

    def __init__(self, ledger: WorkLedger, reuse_open_work: bool = None):
        self.ledger = ledger
        if reuse_open_work is None:
            reuse_open_work = settings.reuse_open_work_on_push
        self.reuse_open_work = reuse_open_work

    # ============================================================
    # 원본 페이로드 진입점
    # ============================================================

    def submit_push(self, payload: PushPayload) -> int:
        return self.on_branch_started(normalizer.normalize_push(payload))

    def submit_pull_request(self, payload: PullRequestPayload) -> Optional[int]:
        """PR 이벤트 처리 (관심 없는 action 은 None)"""
        event = normalizer.normalize_pull_request(payload)
        if event is None:
            return None
        return self.on_pull_request(event)

    def submit_deployment(self, payload: DeploymentPayload) -> int:
        return self.on_deployed(normalizer.normalize_deployment(payload))

    def submit_deployment_status(self, payload: DeploymentStatusPayload) -> Optional[int]:
        event = normalizer.normalize_deployment_status(payload)
        if event is None:
            return None
        return self.on_deployed(event)

    def get_work(self, work_id: int) -> Work:
        return self.ledger.get(work_id)

    # ============================================================
    # 정규화 이벤트 처리
    # ============================================================

    def on_branch_started(self, event: BranchStarted) -> int:
        """push → 작업 생성 (열린 작업이 있으면 그대로 유지)"""
        if self.reuse_open_work:
            existing = self._latest_open(event.branch)
            if existing is not None:
                logger.info(
                    f"열린 작업에 대한 추가 push: #{existing.id} ({event.branch}), 신규 생성 안 함"
                )
                return existing.id

        return self.ledger.create_started(event.branch, event.started_at)

    def on_pull_request(self, event) -> int:
        """PR opened / reopened / merged / abandoned 처리"""
        try:
            if isinstance(event, PullRequestOpened):
                work_id = self.ledger.find_latest_by_branch(event.branch)
                self._attach(work_id, event)
                return work_id

            work_id = self._resolve(event)
            if isinstance(event, PullRequestReopened):
                self.ledger.reopen(work_id)
                logger.info(f"PR 재오픈: #{work_id} (PR #{event.number})")
            elif isinstance(event, PullRequestMerged):
                self.ledger.record_merge(work_id, event.merge_commit, event.merged_at)
                logger.info(
                    f"PR 머지: #{work_id} (PR #{event.number}, {event.merge_commit[:8]})"
                )
            elif isinstance(event, PullRequestAbandoned):
                self.ledger.record_abandoned(work_id)
                logger.info(f"PR 머지 없이 닫힘: #{work_id} (PR #{event.number})")
            else:
                raise TypeError(f"지원하지 않는 PR 이벤트: {type(event).__name__}")

        except LeadTimeError as e:
            logger.warning(f"PR 이벤트 처리 실패 ({event.kind}, {event.branch}): {e}")
            raise

        return work_id

    def on_deployed(self, event: DeploymentCompleted) -> int:
        """배포 완료 → 머지 커밋의 작업에 배포 시각 기록"""
        try:
            work_id = self.ledger.find_by_merge_commit(event.merge_commit)
            self.ledger.record_deployment(work_id, event.deployed_at)
        except LeadTimeError as e:
            logger.warning(f"배포 이벤트 처리 실패 ({event.merge_commit}): {e}")
            raise

        logger.info(f"배포 기록: #{work_id} ({event.merge_commit[:8]})")
        return work_id

    # ============================================================
    # 내부
    # ============================================================

    def _attach(self, work_id: int, event: PullRequestOpened):
        work = self.ledger.get(work_id)
        if work.status == WorkStatus.ABANDONED:
            # 포기된 작업에 새 PR 이 열리면 그 PR 로 다시 리뷰
            previous = work.pull_request_number
            self.ledger.attach_pull_request(work_id, event.number)
            logger.info(f"포기된 작업에 새 PR 연결: #{work_id} (PR #{previous} → #{event.number})")
            return
        if not work.status.is_open:
            logger.warning(f"닫힌 작업에 대한 PR opened 무시: #{work_id} ({work.status.value})")
            return
        if work.pull_request_number is not None:
            # 열린 작업은 첫 PR 연결만 유효
            if work.pull_request_number != event.number:
                logger.warning(
                    f"작업 #{work_id} 에 이미 PR #{work.pull_request_number} 연결됨, "
                    f"PR #{event.number} 무시"
                )
            return

        self.ledger.attach_pull_request(work_id, event.number)
        logger.info(f"PR 연결: #{work_id} (PR #{event.number})")

    def _resolve(self, event) -> int:
        """
        reopened / closed 이벤트의 대상 작업 ID

        최근 작업에 이 PR 이 연결돼 있지 않으면 같은 브랜치에서 이 PR 이 연결된 작업을 찾는다.
        PR 이 닫힌 동안의 push 로 생긴 PR 없는 작업은 재오픈/머지 시 원래 작업에 합친다.
        """
        latest_id = self.ledger.find_latest_by_branch(event.branch)
        latest = self.ledger.get(latest_id)
        if latest.pull_request_number == event.number:
            return latest_id

        try:
            work_id = self.ledger.find_by_pull_request(event.branch, event.number)
        except NotFound:
            return latest_id

        interim = latest.status == WorkStatus.STARTED and latest.pull_request_number is None
        if interim and not isinstance(event, PullRequestAbandoned):
            self.ledger.fold_into(work_id, latest_id)
        return work_id

    def _latest_open(self, branch: str) -> Optional[Work]:
        try:
            work = self.ledger.get(self.ledger.find_latest_by_branch(branch))
        except NotFound:
            return None
        return work if work.status.is_open else None


def get_correlator(db: Session) -> LifecycleCorrelator:
    """요청 세션에 묶인 상관기 생성"""
    return LifecycleCorrelator(WorkLedger(db))
