import uuid
from django.db import models


def empty_derived_content() -> dict:
    return {"notes": None, "quizQuestions": [], "flashcards": []}


class MediaJob(models.Model):
    class Kind(models.TextChoices):
        FILE = "file"
        REMOTE_VIDEO = "remoteVideo"

    class Status(models.TextChoices):
        PENDING = "pending"
        PROCESSING = "processing"
        COMPLETED = "completed"
        FAILED = "failed"

    class ExtractionMethod(models.TextChoices):
        DOCUMENT_PARSE = "document-parse"
        AUDIO_TRANSCRIPTION = "audio-transcription"
        VIDEO_TRANSCRIPTION = "video-transcription"
        UNSUPPORTED = "unsupported"

    # Legal predecessors for each status; anything else is a regression.
    TRANSITIONS = {
        Status.PROCESSING: (Status.PENDING,),
        Status.COMPLETED: (Status.PROCESSING,),
        Status.FAILED: (Status.PENDING, Status.PROCESSING),
    }
    TERMINAL = (Status.COMPLETED, Status.FAILED)

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    owner_id = models.CharField(max_length=128, db_index=True)
    kind = models.CharField(max_length=16, choices=Kind.choices)
    source_reference = models.CharField(max_length=2048)   # S3 key for files, video URL otherwise
    display_name = models.CharField(max_length=512)
    status = models.CharField(max_length=16, choices=Status.choices, default=Status.PENDING)

    extracted_text = models.TextField(null=True, blank=True)
    extraction_method = models.CharField(
        max_length=32, choices=ExtractionMethod.choices, null=True, blank=True
    )
    content_type = models.CharField(max_length=255, blank=True, default="")
    # {"notes": str | None, "quizQuestions": [...], "flashcards": [...]}
    derived_content = models.JSONField(default=empty_derived_content, blank=True)
    error = models.TextField(blank=True, default="")   # server-side only

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]

    def __str__(self):
        return f"MediaJob({self.id}, {self.kind}, {self.status})"

    @property
    def is_terminal(self) -> bool:
        return self.status in self.TERMINAL
