"""Tests for leadtime.services.aggregator."""

from datetime import datetime, timedelta, timezone

import pytest

from leadtime.core.exceptions import DivisionUndefined, ValidationError
from leadtime.models.task import Task
from leadtime.services.aggregator import (
    LeadTimeStage, mean_duration, average_work_lead_time, average_task_lead_time,
)

T0 = datetime(2021, 5, 13, 7, 0, tzinfo=timezone.utc)


class TestMeanDuration:

    def test_minutes(self):
        pairs = [(T0, T0 + timedelta(minutes=10)), (T0, T0 + timedelta(minutes=20))]
        assert mean_duration(pairs, "minutes") == pytest.approx(15.0)

    def test_units(self):
        pairs = [(T0, T0 + timedelta(hours=12))]
        assert mean_duration(pairs, "seconds") == pytest.approx(43200.0)
        assert mean_duration(pairs, "hours") == pytest.approx(12.0)
        assert mean_duration(pairs, "days") == pytest.approx(0.5)

    def test_accepts_generator(self):
        pairs = ((T0, T0 + timedelta(minutes=m)) for m in (1, 2, 3))
        assert mean_duration(pairs, "minutes") == pytest.approx(2.0)

    def test_empty_set_is_undefined(self):
        with pytest.raises(DivisionUndefined):
            mean_duration([], "minutes")

    def test_unknown_unit(self):
        with pytest.raises(ValidationError):
            mean_duration([(T0, T0)], "fortnights")


def _merged_and_deployed(ledger, branch, start, merge_after, deploy_after=None):
    work_id = ledger.create_started(branch, start)
    ledger.record_merge(work_id, f"{branch}-sha", start + merge_after)
    if deploy_after is not None:
        ledger.record_deployment(work_id, start + merge_after + deploy_after)
    return work_id


class TestAverageWorkLeadTime:

    @pytest.fixture
    def history(self, ledger):
        _merged_and_deployed(ledger, "a", T0, timedelta(minutes=30), timedelta(minutes=30))
        _merged_and_deployed(ledger, "b", T0 + timedelta(days=1), timedelta(minutes=90), timedelta(minutes=90))
        _merged_and_deployed(ledger, "c", T0 + timedelta(days=2), timedelta(minutes=60))
        ledger.create_started("d", T0 + timedelta(days=3))

    def test_start_to_deploy(self, db, history):
        # a: 60분, b: 180분 (c, d 는 배포 전)
        value = average_work_lead_time(db, LeadTimeStage.START_TO_DEPLOY, unit="minutes")
        assert value == pytest.approx(120.0)

    def test_start_to_merge(self, db, history):
        value = average_work_lead_time(db, LeadTimeStage.START_TO_MERGE, unit="minutes")
        assert value == pytest.approx(60.0)

    def test_merge_to_deploy(self, db, history):
        value = average_work_lead_time(db, "merge_to_deploy", unit="hours")
        assert value == pytest.approx(1.0)

    def test_since_until_branch_filters(self, db, history):
        since = T0 + timedelta(hours=12)
        assert average_work_lead_time(db, since=since, unit="minutes") == pytest.approx(180.0)
        assert average_work_lead_time(
            db, until=since, unit="minutes"
        ) == pytest.approx(60.0)
        assert average_work_lead_time(
            db, LeadTimeStage.START_TO_MERGE, branch="c", unit="minutes"
        ) == pytest.approx(60.0)

    def test_empty_set_is_undefined(self, db, ledger):
        ledger.create_started("only-started", T0)
        with pytest.raises(DivisionUndefined) as exc_info:
            average_work_lead_time(db, unit="minutes")
        assert exc_info.value.operation == "average_work_lead_time"


class TestAverageTaskLeadTime:

    def test_ignores_open_tasks(self, db):
        db.add_all([
            Task(name="done", start_time=T0, end_time=T0 + timedelta(minutes=6)),
            Task(name="open", start_time=T0),
        ])
        db.commit()
        assert average_task_lead_time(db, unit="minutes") == pytest.approx(6.0)

    def test_since(self, db):
        db.add_all([
            Task(name="old", start_time=T0, end_time=T0 + timedelta(minutes=100)),
            Task(name="new", start_time=T0 + timedelta(days=1), end_time=T0 + timedelta(days=1, minutes=4)),
        ])
        db.commit()
        assert average_task_lead_time(
            db, since=T0 + timedelta(hours=1), unit="minutes"
        ) == pytest.approx(4.0)

    def test_no_tasks_is_undefined_not_nan(self, db):
        with pytest.raises(DivisionUndefined):
            average_task_lead_time(db, unit="minutes")
