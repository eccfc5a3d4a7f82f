"""
로깅 설정 모듈 - 콘솔 + 회전 파일 로깅

파일 위치, 파일명, 회전 크기/개수는 LOG_* 설정으로 조정한다.
"""

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

from .config import Settings, settings

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# 요청/쿼리마다 찍히는 외부 라이브러리 로그
QUIET_LOGGERS = ("sqlalchemy.engine", "alembic", "uvicorn.access")


def log_directory(config: Settings) -> Path:
    return Path(config.log_dir) if config.log_dir else config.BASE_DIR / "logs"


def _rotating_handler(path: Path, level: int, max_bytes: int, backup_count: int) -> RotatingFileHandler:
    handler = RotatingFileHandler(
        path,
        maxBytes=max_bytes,
        backupCount=backup_count,
        encoding="utf-8",
    )
    handler.setLevel(level)
    return handler


def build_handlers(config: Settings) -> list[logging.Handler]:
    """콘솔 핸들러 + (LOG_TO_FILE 이면) 전체 로그 파일, 에러 전용 파일"""
    log_level = getattr(logging, config.log_level.upper(), logging.INFO)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(log_level)
    handlers = [console_handler]

    if config.log_to_file:
        log_dir = log_directory(config)
        log_dir.mkdir(parents=True, exist_ok=True)
        handlers.append(_rotating_handler(
            log_dir / config.log_file_name, log_level,
            config.log_max_bytes, config.log_backup_count,
        ))
        handlers.append(_rotating_handler(
            log_dir / config.error_log_file_name, logging.ERROR,
            config.log_max_bytes, config.error_log_backup_count,
        ))

    formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)
    for handler in handlers:
        handler.setFormatter(formatter)
    return handlers


def setup_logging(config: Settings = None):
    """애플리케이션 로깅 설정 (루트 로거 핸들러 교체)"""
    config = config or settings
    log_level = getattr(logging, config.log_level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        handler.close()
    for handler in build_handlers(config):
        root_logger.addHandler(handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
