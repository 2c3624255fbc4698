import logging

from django.conf import settings
from django.core.exceptions import ImproperlyConfigured
from rest_framework import status, views
from rest_framework.exceptions import NotFound, PermissionDenied
from rest_framework.response import Response

from . import services as pipeline_services
from . import store
from .exceptions import BadGateway, Conflict, JobNotFound, ServiceUnavailable, SynthesisError
from .models import MediaJob
from .s3 import create_presigned_put
from .serializers import (
    CreateJobRequestSerializer,
    JobStatusSerializer,
    MediaJobSerializer,
    MediaJobSummarySerializer,
    NotesUpdateSerializer,
    PresignRequestSerializer,
    PresignResponseSerializer,
    QuizRequestSerializer,
)
from .study_tools import generate_categories, generate_flashcards, generate_quiz_questions
from .tasks import submit_media_job
from .utils import upload_key

logger = logging.getLogger(__name__)


def get_owned_job(request, job_id) -> MediaJob:
    """Load a job for the caller: 404 when missing, 403 when someone else owns it."""
    try:
        job = store.get(job_id)
    except JobNotFound:
        raise NotFound("Job not found.")
    if job.owner_id != request.user.uid:
        raise PermissionDenied("Forbidden")
    return job


def get_completed_text(job: MediaJob) -> str:
    if job.status != MediaJob.Status.COMPLETED:
        raise Conflict("Study material can only be generated for completed jobs.")
    if not (job.extracted_text or "").strip():
        raise Conflict("The job has no extracted text to work from.")
    return job.extracted_text


def get_generator():
    try:
        return pipeline_services.current().generator
    except ImproperlyConfigured:
        logger.error("Text generation requested but pipeline services are not configured")
        raise ServiceUnavailable("Text generation is not configured.")


class JobListCreateView(views.APIView):
    """
    POST: create a media job and queue its processing; returns immediately.
    GET: the caller's completed jobs that carry study content.
    """

    def post(self, request):
        ser = CreateJobRequestSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        data = ser.validated_data

        try:
            job = submit_media_job(
                owner_id=request.user.uid,
                kind=data["kind"],
                source_reference=data["sourceReference"],
                display_name=data.get("displayName") or None,
            )
        except Exception:
            logger.exception("Error creating media job")
            return Response({"detail": "Internal server error"}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

        return Response({"jobId": str(job.id)}, status=status.HTTP_202_ACCEPTED)

    def get(self, request):
        jobs = store.list_for_owner(request.user.uid)
        return Response(MediaJobSummarySerializer(jobs, many=True).data)


class JobDetailView(views.APIView):
    def get(self, request, job_id):
        job = get_owned_job(request, job_id)
        return Response(MediaJobSerializer(job).data)


class JobStatusView(views.APIView):
    """Polling endpoint: {status, data}; data is only set once the job completed."""

    def get(self, request, job_id):
        job = get_owned_job(request, job_id)
        data = job.derived_content if job.status == MediaJob.Status.COMPLETED else None
        return Response(JobStatusSerializer({"status": job.status, "data": data}).data)


class JobNotesView(views.APIView):
    def patch(self, request, job_id):
        job = get_owned_job(request, job_id)
        if job.status != MediaJob.Status.COMPLETED:
            raise Conflict("Notes can only be edited on completed jobs.")
        ser = NotesUpdateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        content = store.merge_derived_content(job.id, notes=ser.validated_data["notes"])
        return Response({"notes": content["notes"]})


class JobCategoriesView(views.APIView):
    def post(self, request, job_id):
        text = get_completed_text(get_owned_job(request, job_id))
        try:
            categories = generate_categories(text, get_generator())
        except SynthesisError as e:
            logger.warning("Category generation failed for job %s: %s", job_id, e)
            raise BadGateway()
        return Response({"categories": categories})


class JobQuizQuestionsView(views.APIView):
    def post(self, request, job_id):
        job = get_owned_job(request, job_id)
        text = get_completed_text(job)
        ser = QuizRequestSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        params = ser.validated_data

        try:
            questions = generate_quiz_questions(
                text, params["category"], params["difficulty"], params["count"], get_generator()
            )
        except SynthesisError as e:
            logger.warning("Quiz generation failed for job %s: %s", job_id, e)
            raise BadGateway()

        store.merge_derived_content(job.id, append={"quizQuestions": questions})
        return Response({"quizQuestions": questions}, status=status.HTTP_201_CREATED)


class JobFlashcardsView(views.APIView):
    def post(self, request, job_id):
        job = get_owned_job(request, job_id)
        text = get_completed_text(job)

        batch = generate_flashcards(
            text,
            get_generator(),
            chunk_size=settings.FLASHCARD_CHUNK_WORDS,
            max_failed_chunks=settings.FLASHCARD_MAX_FAILED_CHUNKS,
        )
        if not batch.flashcards and batch.failed_chunks:
            raise BadGateway("Flashcard generation failed for every attempted chunk.")

        store.merge_derived_content(job.id, append={"flashcards": batch.flashcards})
        logger.info(
            "[Job %s] %d flashcards from %d chunks (%d failed)",
            job.id, len(batch.flashcards), batch.chunks, batch.failed_chunks,
        )
        return Response(
            {
                "flashcards": batch.flashcards,
                "chunks": batch.chunks,
                "failedChunks": batch.failed_chunks,
                "partial": batch.partial,
            },
            status=status.HTTP_201_CREATED,
        )


class PresignUploadView(views.APIView):
    """
    Returns a presigned PUT URL + key so the client can upload directly to
    S3/MinIO. The key is then submitted as a ``file`` job's sourceReference.
    """

    def post(self, request):
        ser = PresignRequestSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        content_type = ser.validated_data["content_type"]
        key = upload_key(ser.validated_data["filename"])

        signed = create_presigned_put(key, content_type=content_type)
        resp = {"key": key, "url": signed["url"], "headers": signed.get("headers", {})}
        return Response(PresignResponseSerializer(resp).data, status=status.HTTP_201_CREATED)
