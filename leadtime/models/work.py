"""
작업 항목 (브랜치 push → PR → 머지 → 배포) 모델
"""

import enum
from datetime import datetime

from sqlalchemy import String, Integer, DateTime, Enum, func
from sqlalchemy.orm import Mapped, mapped_column

from ..core.database import Base, UTCDateTime


class WorkStatus(str, enum.Enum):
    """작업 라이프사이클 상태"""
    STARTED = "started"        # 첫 push
    IN_REVIEW = "in_review"    # PR 생성
    MERGED = "merged"          # 머지/리베이스로 통합
    ABANDONED = "abandoned"    # 통합 없이 닫힘
    DEPLOYED = "deployed"      # 운영 배포 완료

    @property
    def is_open(self) -> bool:
        return self in (WorkStatus.STARTED, WorkStatus.IN_REVIEW)


class Work(Base):
    """작업 항목 테이블"""
    __tablename__ = "work"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    # 브랜치 (열린 작업 사이에서만 유일)
    branch: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    status: Mapped[WorkStatus] = mapped_column(
        Enum(WorkStatus), default=WorkStatus.STARTED, nullable=False
    )

    # GitHub 연동 정보
    pull_request_number: Mapped[int | None] = mapped_column(Integer, nullable=True)
    merge_commit: Mapped[str | None] = mapped_column(String(64), nullable=True, index=True)

    # 라이프사이클 타임스탬프 (UTC)
    start_time: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    merged_time: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    deployed_time: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now(), onupdate=func.now(), nullable=False
    )

    def __repr__(self) -> str:
        return f"<Work(id={self.id}, branch={self.branch}, status={self.status})>"
