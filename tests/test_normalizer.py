"""Tests for leadtime.services.normalizer."""

from datetime import datetime, timezone

import pytest

from conftest import load_payload
from leadtime.core.exceptions import ValidationError
from leadtime.schemas.events import (
    PullRequestOpened, PullRequestReopened, PullRequestMerged, PullRequestAbandoned,
)
from leadtime.schemas.github import (
    PushPayload, PullRequestPayload, DeploymentPayload, DeploymentStatusPayload,
)
from leadtime.services import normalizer


class TestNormalizePush:

    def test_strips_ref_and_takes_earliest_commit(self):
        event = normalizer.normalize_push(
            PushPayload.model_validate(load_payload("first_commit_new_branch"))
        )
        assert event.branch == "lead-test"
        assert event.started_at == datetime.fromisoformat("2021-05-13T09:09:18+02:00")
        assert event.started_at.tzinfo == timezone.utc

    def test_commit_order_does_not_matter(self):
        payload = PushPayload(
            ref="refs/heads/feature/x",
            commits=[
                {"timestamp": "2021-05-13T10:00:00Z"},
                {"timestamp": "2021-05-13T08:00:00Z"},
                {"timestamp": "2021-05-13T09:00:00Z"},
            ],
        )
        event = normalizer.normalize_push(payload)
        assert event.branch == "feature/x"
        assert event.started_at == datetime(2021, 5, 13, 8, 0, tzinfo=timezone.utc)

    def test_empty_commits_rejected(self):
        """시각을 지어내지 않고 ValidationError"""
        with pytest.raises(ValidationError) as exc_info:
            normalizer.normalize_push(PushPayload(ref="refs/heads/lead-test", commits=[]))
        assert exc_info.value.identifier == "lead-test"
        assert exc_info.value.operation == "normalize_push"

    def test_branch_deletion_rejected(self):
        payload = PushPayload(
            ref="refs/heads/lead-test",
            deleted=True,
            commits=[{"timestamp": "2021-05-13T10:00:00Z"}],
        )
        with pytest.raises(ValidationError):
            normalizer.normalize_push(payload)

    def test_tag_ref_rejected(self):
        payload = PushPayload(
            ref="refs/tags/v1.0.0", commits=[{"timestamp": "2021-05-13T10:00:00Z"}]
        )
        with pytest.raises(ValidationError):
            normalizer.normalize_push(payload)


class TestNormalizePullRequest:

    def test_opened(self):
        event = normalizer.normalize_pull_request(
            PullRequestPayload.model_validate(load_payload("pr_opened"))
        )
        assert isinstance(event, PullRequestOpened)
        assert event.branch == "lead-test"
        assert event.number == 1

    def test_closed_with_rebase_is_merged(self):
        event = normalizer.normalize_pull_request(
            PullRequestPayload.model_validate(load_payload("pr_closed_rebase"))
        )
        assert isinstance(event, PullRequestMerged)
        assert event.merge_commit == "9bd73f28b5ed4597123de1d8ecf509078d99bc84"
        assert event.merged_at == datetime(2021, 5, 13, 7, 26, 12, tzinfo=timezone.utc)

    def test_closed_with_merge_commit_is_merged(self):
        event = normalizer.normalize_pull_request(
            PullRequestPayload.model_validate(load_payload("pr_closed_merged"))
        )
        assert isinstance(event, PullRequestMerged)
        assert event.merge_commit == "ecc81403853a621bea766bad50d1fb907d1b2689"

    def test_closed_without_merge_is_abandoned(self):
        """merged=false 면 테스트 머지 sha 가 있어도 포기"""
        event = normalizer.normalize_pull_request(
            PullRequestPayload.model_validate(load_payload("pr_closed_abandoned"))
        )
        assert isinstance(event, PullRequestAbandoned)
        assert not hasattr(event, "merge_commit")

    def test_closed_with_empty_sha_is_abandoned(self):
        payload = PullRequestPayload(
            action="closed",
            number=7,
            pull_request={"head": {"ref": "spike"}, "merge_commit_sha": "", "merged_at": None},
        )
        assert isinstance(normalizer.normalize_pull_request(payload), PullRequestAbandoned)

    def test_reopened(self):
        payload = PullRequestPayload(
            action="reopened", number=3, pull_request={"head": {"ref": "spike"}}
        )
        assert isinstance(normalizer.normalize_pull_request(payload), PullRequestReopened)

    @pytest.mark.parametrize("action", ["synchronize", "edited", "labeled", "review_requested"])
    def test_other_actions_ignored(self, action):
        payload = PullRequestPayload(
            action=action, number=3, pull_request={"head": {"ref": "spike"}}
        )
        assert normalizer.normalize_pull_request(payload) is None


class TestNormalizeDeployment:

    def test_deployment_notification(self):
        event = normalizer.normalize_deployment(
            DeploymentPayload(commit="9bd73f28", deployed_at="2021-05-13T10:00:00+02:00")
        )
        assert event.merge_commit == "9bd73f28"
        assert event.deployed_at == datetime(2021, 5, 13, 8, 0, tzinfo=timezone.utc)

    def test_blank_commit_rejected(self):
        with pytest.raises(ValidationError):
            normalizer.normalize_deployment(
                DeploymentPayload(commit="  ", deployed_at="2021-05-13T10:00:00Z")
            )

    def test_deployment_status_success(self):
        payload = DeploymentStatusPayload.model_validate(load_payload("deployment_status_success"))
        event = normalizer.normalize_deployment_status(payload, environment="production")
        assert event.merge_commit == "9bd73f28b5ed4597123de1d8ecf509078d99bc84"
        assert event.deployed_at == datetime(2021, 5, 13, 8, 2, 45, tzinfo=timezone.utc)

    def test_deployment_status_other_environment_ignored(self):
        payload = DeploymentStatusPayload.model_validate(load_payload("deployment_status_success"))
        assert normalizer.normalize_deployment_status(payload, environment="staging") is None
        assert normalizer.normalize_deployment_status(payload, environment="") is not None

    @pytest.mark.parametrize("state", ["pending", "in_progress", "failure", "error"])
    def test_deployment_status_not_success_ignored(self, state):
        data = load_payload("deployment_status_success")
        data["deployment_status"]["state"] = state
        payload = DeploymentStatusPayload.model_validate(data)
        assert normalizer.normalize_deployment_status(payload, environment="production") is None
