"""
Persistence for MediaJob records.

Every status write is a conditional UPDATE filtered on the legal predecessor
statuses, so a job can never move backwards even if two writers race.
Database errors (store unavailable) propagate to the caller untouched.
"""

from django.db import transaction
from django.utils import timezone

from .exceptions import InvalidTransition, JobNotFound
from .models import MediaJob, empty_derived_content

ERROR_MAX_CHARS = 4000


def create(*, owner_id: str, kind: str, source_reference: str, display_name: str) -> MediaJob:
    return MediaJob.objects.create(
        owner_id=owner_id,
        kind=kind,
        source_reference=source_reference,
        display_name=display_name,
        status=MediaJob.Status.PENDING,
    )


def get(job_id) -> MediaJob:
    try:
        return MediaJob.objects.get(pk=job_id)
    except MediaJob.DoesNotExist:
        raise JobNotFound(job_id) from None


def _conditional_update(job_id, allowed_from, **fields) -> bool:
    fields["updated_at"] = timezone.now()
    rows = MediaJob.objects.filter(pk=job_id, status__in=allowed_from).update(**fields)
    return rows == 1


def claim(job_id) -> bool:
    """Move a job from pending to processing; False if someone else got there first."""
    return _conditional_update(
        job_id, (MediaJob.Status.PENDING,), status=MediaJob.Status.PROCESSING
    )


def update_status(job_id, status: str) -> None:
    allowed_from = MediaJob.TRANSITIONS.get(status)
    if not allowed_from or not _conditional_update(job_id, allowed_from, status=status):
        if not MediaJob.objects.filter(pk=job_id).exists():
            raise JobNotFound(job_id)
        raise InvalidTransition(job_id, status)


def update_fields(job_id, **fields) -> None:
    """Last-writer-wins write of non-status fields."""
    if "status" in fields:
        raise ValueError("use update_status() to change a job's status")
    fields["updated_at"] = timezone.now()
    if MediaJob.objects.filter(pk=job_id).update(**fields) != 1:
        raise JobNotFound(job_id)


def complete(job_id, derived_content: dict) -> None:
    """processing -> completed, writing the derived content in the same UPDATE."""
    if not _conditional_update(
        job_id,
        MediaJob.TRANSITIONS[MediaJob.Status.COMPLETED],
        status=MediaJob.Status.COMPLETED,
        derived_content=derived_content,
    ):
        raise InvalidTransition(job_id, MediaJob.Status.COMPLETED)


def mark_failed(job_id, error: str = "") -> bool:
    """Fail a non-terminal job. Returns False when the job was already terminal or missing."""
    return _conditional_update(
        job_id,
        MediaJob.TRANSITIONS[MediaJob.Status.FAILED],
        status=MediaJob.Status.FAILED,
        error=(error or "")[:ERROR_MAX_CHARS],
    )


def merge_derived_content(job_id, *, append: dict | None = None, **values) -> dict:
    """
    Read-modify-write of derived_content under a row lock.

    ``append`` maps list keys (quizQuestions, flashcards) to items added after
    whatever is stored now; ``values`` replace scalar keys such as notes.
    Returns the content as written.
    """
    with transaction.atomic():
        try:
            job = MediaJob.objects.select_for_update().get(pk=job_id)
        except MediaJob.DoesNotExist:
            raise JobNotFound(job_id) from None
        content = {**empty_derived_content(), **(job.derived_content or {})}
        for key, items in (append or {}).items():
            content[key] = list(content.get(key) or []) + list(items)
        content.update(values)
        job.derived_content = content
        job.save(update_fields=["derived_content", "updated_at"])
    return content


def has_content(job: MediaJob) -> bool:
    content = job.derived_content or {}
    return bool(content.get("notes") or content.get("quizQuestions") or content.get("flashcards"))


def list_for_owner(owner_id: str, *, completed_only: bool = True) -> list[MediaJob]:
    """Owner's jobs, newest first; by default only completed ones carrying content."""
    qs = MediaJob.objects.filter(owner_id=owner_id).order_by("-created_at")
    if not completed_only:
        return list(qs)
    return [job for job in qs.filter(status=MediaJob.Status.COMPLETED) if has_content(job)]
