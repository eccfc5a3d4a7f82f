"""
LeadTime - 엔지니어링 리드타임 추적 서비스
FastAPI 메인 애플리케이션
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from alembic.config import Config as AlembicConfig
from alembic import command as alembic_command

from .core.config import settings, APP_VERSION
from .core.exceptions import LeadTimeError
from .core.logging_config import setup_logging
from .api.v1.endpoints import health, tasks, webhooks, work

# 로깅 설정 (파일 + 콘솔)
setup_logging()
logger = logging.getLogger(__name__)


def run_migrations():
    """Alembic 마이그레이션 (head 까지)"""
    alembic_cfg = AlembicConfig(str(settings.BASE_DIR / "alembic.ini"))
    alembic_cfg.set_main_option("script_location", str(settings.BASE_DIR / "alembic"))
    alembic_cfg.set_main_option("sqlalchemy.url", settings.database_url)
    alembic_cfg.attributes["configure_logger"] = False
    alembic_command.upgrade(alembic_cfg, "head")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """앱 시작/종료 시 실행"""
    logger.info("LeadTime 시작 (port: %d)", settings.api_port)

    if settings.run_migrations_on_startup:
        try:
            run_migrations()
            logger.info("DB 마이그레이션 완료")
        except Exception as e:
            logger.error(f"DB 마이그레이션 실패: {e}", exc_info=True)
            raise

    yield

    logger.info("LeadTime 종료")


app = FastAPI(
    title="LeadTime",
    description="엔지니어링 리드타임 추적 - push / PR / 배포 이벤트 기반 작업 라이프사이클",
    version=APP_VERSION,
    lifespan=lifespan,
)


@app.exception_handler(LeadTimeError)
async def lead_time_error_handler(request: Request, exc: LeadTimeError):
    """오류 유형별 HTTP 응답 (영향받은 브랜치/커밋/ID 포함)"""
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} 실패: {exc}")
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": type(exc).__name__,
            "detail": exc.message,
            "operation": exc.operation,
            "identifier": exc.identifier,
        },
    )


# 라우터 등록
app.include_router(health.router, prefix="/api/v1")
app.include_router(webhooks.router, prefix="/api/v1")
app.include_router(work.router, prefix="/api/v1")
app.include_router(tasks.router, prefix="/api/v1")


@app.get("/")
def root():
    return {
        "service": "LeadTime",
        "version": APP_VERSION,
        "docs": "/docs",
    }
