"""
External collaborators of the pipeline, built once per process and injected.
"""

from dataclasses import dataclass
from typing import Protocol

from django.conf import settings
from django.core.exceptions import ImproperlyConfigured

from .s3 import Blob


class BlobStorage(Protocol):
    def fetch(self, key: str) -> Blob: ...
    def delete(self, key: str) -> None: ...


class Transcriber(Protocol):
    def transcribe(self, data: bytes, mime_type: str) -> str: ...


class TextGenerator(Protocol):
    def generate(self, prompt: str) -> str: ...
    def generate_json(self, prompt: str, schema: dict | None = None): ...


class VideoSource(Protocol):
    def validate_url(self, url: str) -> bool: ...
    def fetch_audio_stream(self, url: str): ...


@dataclass
class PipelineServices:
    blobs: BlobStorage
    transcriber: Transcriber
    generator: TextGenerator
    video: VideoSource


_installed: PipelineServices | None = None


def build_services() -> PipelineServices:
    from . import gemini
    from .s3 import S3BlobStorage
    from .video import YouTubeAudioFetcher

    if not settings.GEMINI_API_KEY:
        raise ImproperlyConfigured("GEMINI_API_KEY is not set")
    client = gemini.build_client(settings.GEMINI_API_KEY)
    return PipelineServices(
        blobs=S3BlobStorage(),
        transcriber=gemini.GeminiTranscriber(client, settings.GEMINI_TRANSCRIPTION_MODEL),
        generator=gemini.GeminiGenerator(client, settings.GEMINI_MODEL),
        video=YouTubeAudioFetcher(),
    )


def install(services: PipelineServices | None) -> None:
    global _installed
    _installed = services


def current() -> PipelineServices:
    if _installed is None:
        raise ImproperlyConfigured("Pipeline services were not configured at startup")
    return _installed
