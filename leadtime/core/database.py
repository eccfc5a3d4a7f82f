"""
데이터베이스 연결 관리 모듈
"""

import logging
from contextlib import contextmanager
from datetime import datetime, timezone

from sqlalchemy import create_engine, DateTime
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker, DeclarativeBase, Session
from sqlalchemy.types import TypeDecorator

from .config import settings
from .exceptions import LeadTimeError, StorageError

logger = logging.getLogger(__name__)


def _engine_options(database_url: str) -> dict:
    """DB 종류별 엔진 옵션"""
    if database_url.startswith("sqlite"):
        return {"connect_args": {"check_same_thread": False}}
    return {
        "pool_pre_ping": True,
        "pool_size": 5,
        "max_overflow": 10,
    }


engine = create_engine(settings.database_url, **_engine_options(settings.database_url))

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


class Base(DeclarativeBase):
    pass


class UTCDateTime(TypeDecorator):
    """UTC naive 로 저장하고 UTC aware 로 반환하는 DateTime"""

    impl = DateTime
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect):
        if value is None:
            return None
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc).replace(tzinfo=None)
        return value

    def process_result_value(self, value: datetime | None, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)


def get_db():
    """DB 세션 의존성"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def storage_errors(db: Session, operation: str, identifier=None, commit: bool = False):
    """SQLAlchemy 오류를 StorageError 로 변환, 실패 시 롤백"""
    try:
        yield
        if commit:
            db.commit()
    except LeadTimeError:
        db.rollback()
        raise
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"저장소 오류 ({operation}, {identifier}): {e}", exc_info=True)
        raise StorageError(str(e), operation, identifier) from e
