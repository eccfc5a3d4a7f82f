"""
GitHub 웹훅 재생 스크립트
tests/testdata 의 페이로드를 순서대로 상관기에 넣고 결과 작업과 리드타임을 출력
Usage: python -m scripts.replay_webhooks [push pr_opened pr_closed_rebase ...]
"""

import sys
import os
import json
import logging
from pathlib import Path

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

os.environ["DATABASE_URL"] = "sqlite:///./replay_webhooks.db"

from dotenv import load_dotenv
load_dotenv(override=False)

logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(message)s")
logger = logging.getLogger(__name__)

TESTDATA = Path(__file__).parent.parent / "tests" / "testdata"

DEFAULT_SEQUENCE = [
    ("push", "first_commit_new_branch"),
    ("pull_request", "pr_opened"),
    ("pull_request", "pr_closed_rebase"),
    ("deployment_status", "deployment_status_success"),
]


def _event_type(name: str) -> str:
    if name.startswith("pr_"):
        return "pull_request"
    if name.startswith("deployment_status"):
        return "deployment_status"
    return "push"


def main():
    from leadtime.core.database import engine, Base, SessionLocal
    from leadtime.core.exceptions import LeadTimeError
    from leadtime.schemas.github import PushPayload, PullRequestPayload, DeploymentStatusPayload
    from leadtime.services.aggregator import LeadTimeStage, average_work_lead_time
    from leadtime.services.correlator import get_correlator
    import leadtime.models  # noqa: F401

    Base.metadata.create_all(bind=engine)

    names = sys.argv[1:]
    sequence = [(_event_type(n), n) for n in names] if names else DEFAULT_SEQUENCE

    db = SessionLocal()
    try:
        correlator = get_correlator(db)
        for event, name in sequence:
            with open(TESTDATA / f"{name}.json", encoding="utf-8") as f:
                data = json.load(f)

            try:
                if event == "push":
                    work_id = correlator.submit_push(PushPayload.model_validate(data))
                elif event == "pull_request":
                    work_id = correlator.submit_pull_request(PullRequestPayload.model_validate(data))
                else:
                    work_id = correlator.submit_deployment_status(
                        DeploymentStatusPayload.model_validate(data)
                    )
            except LeadTimeError as e:
                logger.error(f"  [{event}] {name}: {type(e).__name__} - {e}")
                continue

            if work_id is None:
                logger.info(f"  [{event}] {name}: 무시됨")
                continue

            work = correlator.get_work(work_id)
            logger.info(
                f"  [{event}] {name}: #{work.id} {work.branch} {work.status.value} "
                f"(PR {work.pull_request_number}, merge {work.merge_commit})"
            )

        for stage in LeadTimeStage:
            try:
                value = average_work_lead_time(db, stage)
                logger.info(f"  평균 {stage.value}: {value:.2f}")
            except LeadTimeError as e:
                logger.info(f"  평균 {stage.value}: 계산 불가 ({e})")
    finally:
        db.close()


if __name__ == "__main__":
    main()
