"""
공통 pytest fixture

인메모리 SQLite (StaticPool) 위에서 모델/서비스/API 를 테스트한다.
"""

import json
import os
from pathlib import Path

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("RUN_MIGRATIONS_ON_STARTUP", "false")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from leadtime.core.database import Base, get_db
from leadtime.services.correlator import LifecycleCorrelator
from leadtime.services.ledger import WorkLedger
import leadtime.models  # noqa: F401

TESTDATA = Path(__file__).parent / "testdata"


def load_payload(name: str) -> dict:
    """testdata/<name>.json 로드"""
    with open(TESTDATA / f"{name}.json", encoding="utf-8") as f:
        return json.load(f)


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def ledger(db):
    return WorkLedger(db)


@pytest.fixture
def correlator(ledger):
    return LifecycleCorrelator(ledger, reuse_open_work=True)


@pytest.fixture
def client(session_factory):
    """get_db 를 테스트 DB 로 교체한 TestClient (lifespan 미실행)"""
    from leadtime.main import app

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()
