"""
Media job orchestration.

    pending --claim--> processing --extract--> --synthesize--> completed
                           |
                           +--- any error, including a soft time limit ---> failed

A job is submitted once and handed to exactly one Celery task. The task
claims it with a conditional pending -> processing update, so a redelivered
message can never start a second run.
"""

import logging

from celery import shared_task
from django.db import DatabaseError, transaction

from . import services as pipeline_services
from . import store
from .exceptions import JobNotFound
from .extraction import extract
from .models import MediaJob, empty_derived_content
from .services import PipelineServices
from .synthesis import synthesize_notes

logger = logging.getLogger(__name__)


def submit_media_job(*, owner_id: str, kind: str, source_reference: str, display_name: str | None = None) -> MediaJob:
    """Persist a pending job and schedule its single run once the row is committed."""
    if not owner_id:
        raise ValueError("owner_id is required")
    if kind not in MediaJob.Kind.values:
        raise ValueError(f"Unsupported kind: {kind!r}")
    source_reference = (source_reference or "").strip()
    if not source_reference:
        raise ValueError("source_reference is required")

    with transaction.atomic():
        job = store.create(
            owner_id=owner_id,
            kind=kind,
            source_reference=source_reference,
            display_name=display_name or source_reference,
        )
        job_id = str(job.id)
        transaction.on_commit(lambda: _enqueue(job_id))

    logger.info("Media job %s created (%s) for %s", job_id, kind, owner_id)
    return job


def _enqueue(job_id: str) -> None:
    try:
        process_media_job.delay(job_id)
    except Exception as e:
        logger.exception("Could not queue media job %s", job_id)
        try:
            store.mark_failed(job_id, f"Could not queue job: {type(e).__name__}: {e}")
        except DatabaseError:
            logger.exception("Error saving failed status for media job %s", job_id)
        raise


def run_media_job(job_id: str, services: PipelineServices | None = None) -> None:
    """
    Drive one job to a terminal state. Never raises: failures are recorded on
    the job and logged, since no caller is waiting on this run.
    """
    try:
        job = store.get(job_id)
    except JobNotFound:
        logger.error("Media job not found: %s", job_id)
        return
    except DatabaseError:
        logger.exception("Could not load media job %s", job_id)
        return

    try:
        if not store.claim(job_id):
            logger.warning("Media job %s is no longer pending; skipping run", job_id)
            return

        svc = services or pipeline_services.current()

        result = extract(job.kind, job.source_reference, svc)
        store.update_fields(
            job_id,
            extracted_text=result.text,
            extraction_method=result.method,
            content_type=result.content_type,
        )
        logger.info("[Job %s] text extracted via %s (%d chars)", job_id, result.method, len(result.text or ""))

        # An unsupported file's explanatory text is not study material.
        source_text = None if result.method == MediaJob.ExtractionMethod.UNSUPPORTED else result.text
        notes = synthesize_notes(source_text, svc.generator)
        # Quiz questions and flashcards are generated later, on demand.
        derived = empty_derived_content()
        derived["notes"] = notes
        store.complete(job_id, derived)
        logger.info("Media job completed: %s", job_id)

    except Exception as e:
        logger.exception("Error processing media job %s", job_id)
        try:
            store.mark_failed(job_id, f"{type(e).__name__}: {e}")
        except DatabaseError:
            logger.exception("Error saving failed status for media job %s", job_id)
        return

    if job.kind == MediaJob.Kind.FILE:
        _cleanup_upload(job_id, job.source_reference, svc)


def _cleanup_upload(job_id: str, key: str, svc: PipelineServices) -> None:
    # Completion is the durability boundary; a leftover upload is only logged.
    try:
        svc.blobs.delete(key)
        logger.info("[Job %s] upload deleted: %s", job_id, key)
    except Exception:
        logger.exception("[Job %s] error deleting upload %s", job_id, key)


@shared_task(bind=True, acks_late=True, ignore_result=True)
def process_media_job(self, job_id: str):
    run_media_job(job_id)
