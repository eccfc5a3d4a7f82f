"""
작업 원장 (Work Ledger) - 작업 항목의 영속 저장소

변경 작업은 모두 행 잠금(SELECT ... FOR UPDATE) 후 한 트랜잭션으로 커밋한다.
같은 작업에 대한 중복 웹훅이 동시에 들어와도 한 번만 반영된다.
"""

import logging
from datetime import datetime

from sqlalchemy import func
from sqlalchemy.orm import Session

from ..core.config import as_utc
from ..core.database import storage_errors
from ..core.exceptions import NotFound, ValidationError
from ..models.work import Work, WorkStatus

logger = logging.getLogger(__name__)


class WorkLedger:
    """작업 항목 저장소"""

    def __init__(self, db: Session):
        self.db = db

    def _storage(self, operation: str, identifier, commit: bool = False):
        return storage_errors(self.db, operation, identifier, commit=commit)

    def _lock(self, work_id: int, operation: str) -> Work:
        work = (
            self.db.query(Work)
            .filter(Work.id == work_id)
            .with_for_update()
            .populate_existing()
            .first()
        )
        if work is None:
            raise NotFound(f"작업 {work_id} 없음", operation, work_id)
        return work

    # ============================================================
    # 생성 / 조회
    # ============================================================

    def create_started(self, branch: str, start_time: datetime) -> int:
        """브랜치 작업 생성 (같은 이름의 브랜치가 있어도 항상 새로 생성)"""
        with self._storage("create_started", branch, commit=True):
            work = Work(
                branch=branch,
                start_time=as_utc(start_time),
                status=WorkStatus.STARTED,
            )
            self.db.add(work)
            self.db.flush()
            work_id = work.id
        logger.info(f"작업 생성: #{work_id} ({branch})")
        return work_id

    def find_latest_by_branch(self, branch: str) -> int:
        """브랜치의 가장 최근 작업 ID"""
        with self._storage("find_latest_by_branch", branch):
            work_id = (
                self.db.query(Work.id)
                .filter(Work.branch == branch)
                .order_by(Work.id.desc())
                .limit(1)
                .scalar()
            )
        if work_id is None:
            raise NotFound(f"브랜치 작업 없음: {branch}", "find_latest_by_branch", branch)
        return work_id

    def find_by_merge_commit(self, merge_commit: str) -> int:
        """머지 커밋으로 작업 ID 조회"""
        with self._storage("find_by_merge_commit", merge_commit):
            work_id = (
                self.db.query(Work.id)
                .filter(Work.merge_commit == merge_commit)
                .order_by(Work.id.desc())
                .limit(1)
                .scalar()
            )
        if work_id is None:
            raise NotFound(
                f"머지 커밋에 해당하는 작업 없음: {merge_commit}",
                "find_by_merge_commit", merge_commit,
            )
        return work_id

    def find_by_pull_request(self, branch: str, pull_request_number: int) -> int:
        """브랜치 + PR 번호로 가장 최근 작업 ID 조회"""
        with self._storage("find_by_pull_request", pull_request_number):
            work_id = (
                self.db.query(Work.id)
                .filter(Work.branch == branch)
                .filter(Work.pull_request_number == pull_request_number)
                .order_by(Work.id.desc())
                .limit(1)
                .scalar()
            )
        if work_id is None:
            raise NotFound(
                f"PR #{pull_request_number} 에 연결된 작업 없음: {branch}",
                "find_by_pull_request", pull_request_number,
            )
        return work_id

    def get(self, work_id: int) -> Work:
        with self._storage("get", work_id):
            work = self.db.query(Work).filter(Work.id == work_id).first()
        if work is None:
            raise NotFound(f"작업 {work_id} 없음", "get", work_id)
        return work

    def list_work(
        self,
        branch: str = None,
        status: WorkStatus = None,
        limit: int = 50,
        offset: int = 0,
    ) -> list[Work]:
        """작업 목록 (최신순)"""
        with self._storage("list_work", branch):
            query = self.db.query(Work).order_by(Work.id.desc())
            if branch:
                query = query.filter(Work.branch == branch)
            if status:
                query = query.filter(Work.status == status)
            return query.offset(offset).limit(limit).all()

    def count_by_status(self) -> dict[str, int]:
        with self._storage("count_by_status", None):
            rows = (
                self.db.query(Work.status, func.count(Work.id))
                .group_by(Work.status)
                .all()
            )
        counts = {status.value: 0 for status in WorkStatus}
        for status, count in rows:
            counts[WorkStatus(status).value] = count
        return counts

    # ============================================================
    # 라이프사이클 전이
    # ============================================================

    def attach_pull_request(self, work_id: int, pull_request_number: int) -> None:
        """PR 번호 연결 (이미 있으면 덮어씀, 포기된 작업은 리뷰 상태로 복귀)"""
        with self._storage("attach_pull_request", work_id, commit=True):
            work = self._lock(work_id, "attach_pull_request")
            work.pull_request_number = pull_request_number
            if work.status in (WorkStatus.STARTED, WorkStatus.ABANDONED):
                work.status = WorkStatus.IN_REVIEW

    def record_merge(self, work_id: int, merge_commit: str, merged_time: datetime) -> None:
        """머지 커밋과 머지 시각을 함께 기록 (한 번만)"""
        if not merge_commit:
            raise ValidationError("머지 커밋이 비어 있음", "record_merge", work_id)
        merged_time = as_utc(merged_time)

        with self._storage("record_merge", work_id, commit=True):
            work = self._lock(work_id, "record_merge")

            if work.merge_commit is not None:
                if work.merge_commit != merge_commit:
                    raise ValidationError(
                        f"이미 다른 커밋으로 머지됨: {work.merge_commit}",
                        "record_merge", work_id,
                    )
                logger.info(f"중복 머지 이벤트 무시: #{work_id} ({merge_commit[:8]})")
                return

            if merged_time < work.start_time:
                raise ValidationError(
                    f"머지 시각({merged_time.isoformat()})이 시작 시각"
                    f"({work.start_time.isoformat()})보다 이름",
                    "record_merge", work_id,
                )

            work.merge_commit = merge_commit
            work.merged_time = merged_time
            work.status = WorkStatus.MERGED

    def record_abandoned(self, work_id: int) -> None:
        """통합 없이 닫힌 작업 (머지 필드는 건드리지 않음)"""
        with self._storage("record_abandoned", work_id, commit=True):
            work = self._lock(work_id, "record_abandoned")
            if work.status in (WorkStatus.MERGED, WorkStatus.DEPLOYED):
                logger.warning(f"이미 머지된 작업의 닫힘 이벤트 무시: #{work_id}")
                return
            work.status = WorkStatus.ABANDONED

    def reopen(self, work_id: int) -> None:
        """포기된 작업을 리뷰 상태로 복귀"""
        with self._storage("reopen", work_id, commit=True):
            work = self._lock(work_id, "reopen")
            if work.status == WorkStatus.ABANDONED:
                work.status = WorkStatus.IN_REVIEW

    def fold_into(self, work_id: int, interim_id: int) -> None:
        """
        PR 없이 시작된 중간 작업을 기존 작업에 합침 (중간 작업 행은 삭제)

        닫힌 PR 브랜치에 push 후 PR 이 재오픈되는 경우, push 로 생긴 작업을
        PR 이 연결된 원래 작업으로 되돌린다. 시작 시각은 둘 중 이른 쪽.
        """
        if work_id == interim_id:
            return

        with self._storage("fold_into", interim_id, commit=True):
            work = self._lock(work_id, "fold_into")
            interim = self._lock(interim_id, "fold_into")

            if interim.branch != work.branch:
                raise ValidationError(
                    f"다른 브랜치의 작업은 합칠 수 없음: {interim.branch} → {work.branch}",
                    "fold_into", interim_id,
                )
            if interim.status != WorkStatus.STARTED or interim.pull_request_number is not None:
                raise ValidationError(
                    f"PR 없는 시작 상태 작업만 합칠 수 있음: #{interim_id} ({interim.status.value})",
                    "fold_into", interim_id,
                )

            if interim.start_time < work.start_time:
                work.start_time = interim.start_time
            self.db.delete(interim)

        logger.info(f"중간 작업 #{interim_id} 을 작업 #{work_id} 에 합침")

    def record_deployment(self, work_id: int, deployed_time: datetime) -> None:
        """운영 배포 시각 기록 (첫 배포만 반영)"""
        deployed_time = as_utc(deployed_time)

        with self._storage("record_deployment", work_id, commit=True):
            work = self._lock(work_id, "record_deployment")

            if work.merged_time is None:
                raise ValidationError(
                    "머지되지 않은 작업은 배포를 기록할 수 없음", "record_deployment", work_id
                )
            if work.deployed_time is not None:
                logger.info(f"이미 배포된 작업, 재배포 무시: #{work_id}")
                return
            if deployed_time < work.merged_time:
                raise ValidationError(
                    f"배포 시각({deployed_time.isoformat()})이 머지 시각"
                    f"({work.merged_time.isoformat()})보다 이름",
                    "record_deployment", work_id,
                )

            work.deployed_time = deployed_time
            work.status = WorkStatus.DEPLOYED
