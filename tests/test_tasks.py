import uuid
from unittest.mock import patch

import pytest
from celery.exceptions import SoftTimeLimitExceeded

from media_jobs import services, store
from media_jobs.exceptions import SynthesisError, TranscriptionError
from media_jobs.models import MediaJob
from media_jobs.synthesis import NO_CONTENT_NOTES
from media_jobs.tasks import process_media_job, run_media_job, submit_media_job

from .fakes import make_pdf

pytestmark = pytest.mark.django_db

Status = MediaJob.Status


def test_submit_returns_pending_job_and_schedules_one_run(fake_services, django_capture_on_commit_callbacks):
    with patch("media_jobs.tasks.process_media_job.delay") as delay:
        with django_capture_on_commit_callbacks(execute=True):
            job = submit_media_job(
                owner_id="user-1", kind="file", source_reference="uploads/a.pdf", display_name="a.pdf"
            )

    delay.assert_called_once_with(str(job.id))
    job.refresh_from_db()
    assert job.status == Status.PENDING
    assert fake_services.blobs.fetched == []


def test_submit_defaults_display_name_to_source(fake_services, django_capture_on_commit_callbacks):
    with patch("media_jobs.tasks.process_media_job.delay"):
        with django_capture_on_commit_callbacks(execute=True):
            job = submit_media_job(owner_id="user-1", kind="remoteVideo", source_reference=" https://youtu.be/dQw4w9WgXcQ ")

    assert job.source_reference == "https://youtu.be/dQw4w9WgXcQ"
    assert job.display_name == "https://youtu.be/dQw4w9WgXcQ"


@pytest.mark.parametrize(
    "kwargs",
    [
        {"owner_id": "user-1", "kind": "file", "source_reference": ""},
        {"owner_id": "user-1", "kind": "podcast", "source_reference": "uploads/a.pdf"},
        {"owner_id": "", "kind": "file", "source_reference": "uploads/a.pdf"},
    ],
)
def test_submit_rejects_invalid_input_without_persisting(kwargs):
    with patch("media_jobs.tasks.process_media_job.delay") as delay:
        with pytest.raises(ValueError):
            submit_media_job(**kwargs)
    delay.assert_not_called()
    assert MediaJob.objects.count() == 0


def test_pdf_job_completes_with_notes(fake_services, make_job):
    key = fake_services.blobs.put("uploads/a_sets.pdf", make_pdf("Chapter 1: Sets"), "application/pdf")
    job = make_job(source_reference=key)
    seen = []
    fake_services.generator.generate = _recording(fake_services.generator.generate, job.id, seen)

    run_media_job(str(job.id), services=fake_services)

    job.refresh_from_db()
    assert seen == [Status.PROCESSING]
    assert job.status == Status.COMPLETED
    assert "Chapter 1: Sets" in job.extracted_text
    assert job.extraction_method == "document-parse"
    assert job.derived_content == {"notes": "# Notes\n...", "quizQuestions": [], "flashcards": []}
    assert job.error == ""


def _recording(fn, job_id, seen):
    def wrapper(*args, **kwargs):
        seen.append(MediaJob.objects.get(pk=job_id).status)
        return fn(*args, **kwargs)
    return wrapper


def test_completed_file_job_deletes_upload(fake_services, make_job):
    key = fake_services.blobs.put("uploads/a_talk.mp3", b"ID3", "audio/mpeg")
    job = make_job(source_reference=key)

    run_media_job(str(job.id), services=fake_services)

    assert fake_services.blobs.deleted == [key]


def test_cleanup_failure_keeps_job_completed(fake_services, make_job):
    key = fake_services.blobs.put("uploads/a_talk.mp3", b"ID3", "audio/mpeg")
    fake_services.blobs.delete_error = RuntimeError("storage offline")
    job = make_job(source_reference=key)

    run_media_job(str(job.id), services=fake_services)

    job.refresh_from_db()
    assert job.status == Status.COMPLETED
    assert job.derived_content["notes"] == "# Notes\n..."


def test_extraction_failure_fails_job_without_content(fake_services, make_job):
    key = fake_services.blobs.put("uploads/a_talk.mp3", b"ID3", "audio/mpeg")
    fake_services.transcriber.error = TranscriptionError("quota exceeded")
    job = make_job(source_reference=key)

    run_media_job(str(job.id), services=fake_services)

    job.refresh_from_db()
    assert job.status == Status.FAILED
    assert job.extracted_text is None
    assert job.derived_content == {"notes": None, "quizQuestions": [], "flashcards": []}
    assert "quota exceeded" in job.error
    assert fake_services.blobs.deleted == []


def test_synthesis_failure_keeps_extracted_text(fake_services, make_job):
    key = fake_services.blobs.put("uploads/a_sets.pdf", make_pdf("Chapter 1: Sets"), "application/pdf")
    fake_services.generator.error = SynthesisError("malformed response")
    job = make_job(source_reference=key)

    run_media_job(str(job.id), services=fake_services)

    job.refresh_from_db()
    assert job.status == Status.FAILED
    assert "Chapter 1: Sets" in job.extracted_text
    assert job.derived_content["notes"] is None
    assert fake_services.blobs.deleted == []


def test_invalid_remote_video_url_fails_without_fetch(fake_services, make_job):
    job = make_job(kind=MediaJob.Kind.REMOTE_VIDEO, source_reference="not-a-url", display_name="video")

    run_media_job(str(job.id), services=fake_services)

    job.refresh_from_db()
    assert job.status == Status.FAILED
    assert fake_services.video.fetched == []
    assert fake_services.transcriber.calls == []


def test_remote_video_job_completes_without_cleanup(fake_services, make_job):
    url = "https://www.youtube.com/watch?v=dQw4w9WgXcQ"
    job = make_job(kind=MediaJob.Kind.REMOTE_VIDEO, source_reference=url)

    run_media_job(str(job.id), services=fake_services)

    job.refresh_from_db()
    assert job.status == Status.COMPLETED
    assert job.extraction_method == "video-transcription"
    assert job.extracted_text == "transcribed lecture"
    assert fake_services.blobs.deleted == []


def test_unsupported_file_completes_with_placeholder_notes(fake_services, make_job):
    key = fake_services.blobs.put("uploads/a_photo.png", b"\x89PNG", "image/png")
    job = make_job(source_reference=key)

    run_media_job(str(job.id), services=fake_services)

    job.refresh_from_db()
    assert job.status == Status.COMPLETED
    assert job.extraction_method == "unsupported"
    assert job.derived_content["notes"] == NO_CONTENT_NOTES
    assert fake_services.generator.prompts == []


def test_empty_transcript_completes_with_placeholder_notes(fake_services, make_job):
    key = fake_services.blobs.put("uploads/a_silence.mp3", b"ID3", "audio/mpeg")
    fake_services.transcriber.text = ""
    job = make_job(source_reference=key)

    run_media_job(str(job.id), services=fake_services)

    job.refresh_from_db()
    assert job.status == Status.COMPLETED
    assert job.derived_content["notes"] == NO_CONTENT_NOTES


def test_missing_job_is_ignored(fake_services):
    run_media_job(str(uuid.uuid4()), services=fake_services)

    assert fake_services.blobs.fetched == []


@pytest.mark.parametrize("status", [Status.PROCESSING, Status.COMPLETED, Status.FAILED])
def test_non_pending_job_is_not_run_again(fake_services, make_job, status):
    job = make_job(status=status)

    run_media_job(str(job.id), services=fake_services)

    job.refresh_from_db()
    assert job.status == status
    assert fake_services.blobs.fetched == []


def test_missing_services_fail_the_job(make_job):
    services.install(None)
    job = make_job()

    run_media_job(str(job.id))

    job.refresh_from_db()
    assert job.status == Status.FAILED
    assert "ImproperlyConfigured" in job.error


def test_celery_task_runs_with_installed_services(fake_services, make_job):
    key = fake_services.blobs.put("uploads/a_talk.mp3", b"ID3", "audio/mpeg")
    job = make_job(source_reference=key)

    process_media_job(str(job.id))

    assert store.get(job.id).status == Status.COMPLETED


def test_store_outage_while_failing_is_swallowed(fake_services, make_job):
    from django.db import DatabaseError

    key = fake_services.blobs.put("uploads/a_talk.mp3", b"ID3", "audio/mpeg")
    fake_services.transcriber.error = TranscriptionError("boom")
    job = make_job(source_reference=key)

    with patch("media_jobs.tasks.store.mark_failed", side_effect=DatabaseError("db down")):
        run_media_job(str(job.id), services=fake_services)

    # Left in processing for manual inspection.
    assert store.get(job.id).status == Status.PROCESSING


def test_soft_time_limit_fails_the_job(fake_services, make_job):
    key = fake_services.blobs.put("uploads/a_talk.mp3", b"ID3", "audio/mpeg")
    fake_services.transcriber.error = SoftTimeLimitExceeded()
    job = make_job(source_reference=key)

    run_media_job(str(job.id), services=fake_services)

    job.refresh_from_db()
    assert job.status == Status.FAILED
    assert "SoftTimeLimitExceeded" in job.error


def test_soft_time_limit_fires_before_hard_kill(settings):
    assert settings.CELERY_TASK_SOFT_TIME_LIMIT < settings.CELERY_TASK_TIME_LIMIT


def test_broker_outage_fails_submitted_job(django_capture_on_commit_callbacks):
    with patch("media_jobs.tasks.process_media_job.delay", side_effect=ConnectionError("broker down")):
        with pytest.raises(ConnectionError):
            with django_capture_on_commit_callbacks(execute=True):
                submit_media_job(owner_id="user-1", kind="file", source_reference="uploads/a.pdf")

    job = MediaJob.objects.get()
    assert job.status == Status.FAILED
    assert "broker down" in job.error
