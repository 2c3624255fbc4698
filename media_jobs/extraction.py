import logging
from dataclasses import dataclass

import fitz  # PyMuPDF

from .exceptions import DocumentParseError, InvalidSourceURL
from .models import MediaJob
from .services import PipelineServices
from .utils import guess_kind, resolve_content_type

logger = logging.getLogger(__name__)

Method = MediaJob.ExtractionMethod


@dataclass
class ExtractionResult:
    text: str
    method: str
    content_type: str = ""


def parse_pdf(data: bytes) -> str:
    """Text layer of every page, in page order."""
    try:
        with fitz.open(stream=data, filetype="pdf") as document:
            return "\n".join(page.get_text() for page in document)
    except (RuntimeError, ValueError) as e:  # FileDataError subclasses RuntimeError
        raise DocumentParseError(f"Could not parse PDF: {e}") from e


def extract_file(key: str, services: PipelineServices) -> ExtractionResult:
    blob = services.blobs.fetch(key)
    content_type = resolve_content_type(blob.content_type, key)
    kind = guess_kind(content_type)

    if kind == "document":
        return ExtractionResult(parse_pdf(blob.data), Method.DOCUMENT_PARSE, content_type)
    if kind == "audio":
        text = services.transcriber.transcribe(blob.data, content_type)
        return ExtractionResult(text, Method.AUDIO_TRANSCRIPTION, content_type)
    if kind == "video":
        text = services.transcriber.transcribe(blob.data, content_type)
        return ExtractionResult(text, Method.VIDEO_TRANSCRIPTION, content_type)

    # Degrade instead of failing: downstream stages still produce a completed job.
    logger.warning("Unsupported file type for text extraction: %s (%s)", content_type, key)
    return ExtractionResult(
        f"Could not extract text from file type: {content_type}.",
        Method.UNSUPPORTED,
        content_type,
    )


def extract_remote_video(url: str, services: PipelineServices) -> ExtractionResult:
    if not services.video.validate_url(url):
        raise InvalidSourceURL(url)
    stream = services.video.fetch_audio_stream(url)
    text = services.transcriber.transcribe(stream.data, stream.mime_type)
    return ExtractionResult(text, Method.VIDEO_TRANSCRIPTION, stream.mime_type)


def extract(kind: str, source_reference: str, services: PipelineServices) -> ExtractionResult:
    """One-shot extraction; every failure surfaces as an ExtractionError subclass."""
    if kind == MediaJob.Kind.FILE:
        return extract_file(source_reference, services)
    if kind == MediaJob.Kind.REMOTE_VIDEO:
        return extract_remote_video(source_reference, services)
    raise ValueError(f"Unknown media job kind: {kind!r}")
