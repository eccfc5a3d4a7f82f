"""
GitHub 웹훅 수신 엔드포인트
X-GitHub-Event 헤더로 이벤트 종류를 구분한다
"""

import logging

from fastapi import APIRouter, Body, Depends, Header
from fastapi.responses import JSONResponse
from pydantic import ValidationError as PydanticValidationError

from ....core.exceptions import ValidationError
from ....schemas.github import PushPayload, PullRequestPayload, DeploymentStatusPayload
from ....schemas.work import WorkIdResponse
from ....services.correlator import LifecycleCorrelator
from .work import correlator_dependency

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/webhooks", tags=["webhooks"])

_PAYLOADS = {
    "push": PushPayload,
    "pull_request": PullRequestPayload,
    "deployment_status": DeploymentStatusPayload,
}


@router.post("/github", response_model=WorkIdResponse)
def github_webhook(
    payload: dict = Body(...),
    x_github_event: str = Header(...),
    x_github_delivery: str = Header(default=""),
    correlator: LifecycleCorrelator = Depends(correlator_dependency),
):
    """GitHub 웹훅 (push / pull_request / deployment_status)"""
    if x_github_event == "ping":
        return JSONResponse({"message": "pong"})

    model = _PAYLOADS.get(x_github_event)
    if model is None:
        logger.debug(f"처리하지 않는 웹훅 이벤트: {x_github_event} ({x_github_delivery})")
        return JSONResponse({"id": None, "ignored": True}, status_code=202)

    try:
        event = model.model_validate(payload)
    except PydanticValidationError as e:
        raise ValidationError(
            f"{x_github_event} 페이로드 형식 오류: {e.error_count()}건",
            "github_webhook", x_github_delivery or x_github_event,
        ) from e

    logger.info(f"웹훅 수신: {x_github_event} ({x_github_delivery})")

    if x_github_event == "push":
        work_id = correlator.submit_push(event)
    elif x_github_event == "pull_request":
        work_id = correlator.submit_pull_request(event)
    else:
        work_id = correlator.submit_deployment_status(event)

    return WorkIdResponse(id=work_id, ignored=work_id is None)
