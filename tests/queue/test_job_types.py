import pytest

from ziron.queue import JobHandle, JobState, JobType


def test_canonical_names_parse_to_themselves():
    for job_type in JobType:
        assert JobType.parse(job_type.value) is job_type
        assert JobType.parse(job_type) is job_type


@pytest.mark.parametrize("legacy", ["Notification", "Notifications", "send"])
def test_legacy_notification_names_are_accepted(legacy, caplog):
    with caplog.at_level("WARNING"):
        assert JobType.parse(legacy) is JobType.NOTIFICATION
    assert "Legacy job name" in caplog.text


def test_unknown_name_raises():
    with pytest.raises(ValueError, match="Unknown job type bogus"):
        JobType.parse("bogus")


def test_job_handle_lifecycle():
    job = JobHandle(name=JobType.NOTIFICATION.value, data={"a": 1})
    assert job.id
    assert job.state is JobState.QUEUED
    assert not job.is_finished

    job.mark_active()
    assert job.state is JobState.ACTIVE
    assert job.attempts_made == 1

    job.mark_failed("boom")
    assert job.is_failed
    assert job.is_finished
    assert job.failed_reason == "boom"
    assert job.finished_at is not None


def test_job_handle_survives_redis_hash_encoding():
    job = JobHandle(name="notification", data={"userId": "u1"})
    job.mark_active()
    job.mark_completed({"notificationId": "n1"})

    restored = JobHandle.from_redis(job.to_redis())

    assert restored.to_dict() == job.to_dict()
    assert restored.entry_id is None


def test_client_representation_uses_camel_case():
    job = JobHandle(name="notification", data={})
    body = job.to_dict()
    assert set(body) == {
        "jobId", "type", "state", "data", "result", "failedReason", "createdAt", "finishedAt", "attemptsMade",
    }
    assert body["state"] == "queued"
