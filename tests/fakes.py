from __future__ import annotations

import fitz

from media_jobs.exceptions import BlobFetchError, SynthesisError
from media_jobs.s3 import Blob
from media_jobs.video import AudioStream, extract_video_id


class FakeBlobStorage:
    def __init__(self):
        self.objects: dict[str, Blob] = {}
        self.fetched: list[str] = []
        self.deleted: list[str] = []
        self.delete_error: Exception | None = None

    def put(self, key: str, data: bytes, content_type: str) -> str:
        self.objects[key] = Blob(data=data, content_type=content_type)
        return key

    def fetch(self, key: str) -> Blob:
        self.fetched.append(key)
        if key not in self.objects:
            raise BlobFetchError(f"Failed to fetch upload {key}")
        return self.objects[key]

    def delete(self, key: str) -> None:
        if self.delete_error is not None:
            raise self.delete_error
        self.deleted.append(key)
        self.objects.pop(key, None)


class FakeTranscriber:
    def __init__(self, text: str = "transcribed lecture"):
        self.text = text
        self.error: Exception | None = None
        self.calls: list[tuple[bytes, str]] = []
        self.on_call = None

    def transcribe(self, data: bytes, mime_type: str) -> str:
        self.calls.append((data, mime_type))
        if self.on_call:
            self.on_call()
        if self.error is not None:
            raise self.error
        return self.text


class FakeGenerator:
    def __init__(self, text: str = "# Notes\n..."):
        self.text = text
        self.error: Exception | None = None
        self.prompts: list[str] = []
        self.json_responses: list = []
        self.json_prompts: list[str] = []

    def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.text

    def generate_json(self, prompt: str, schema: dict | None = None):
        self.json_prompts.append(prompt)
        if not self.json_responses:
            raise SynthesisError("no scripted response")
        item = self.json_responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return item


class FakeVideoSource:
    def __init__(self, data: bytes = b"audio-bytes", mime_type: str = "audio/mp4"):
        self.stream = AudioStream(data=data, mime_type=mime_type)
        self.validated: list[str] = []
        self.fetched: list[str] = []

    def validate_url(self, url: str) -> bool:
        self.validated.append(url)
        return extract_video_id(url) is not None

    def fetch_audio_stream(self, url: str) -> AudioStream:
        self.fetched.append(url)
        return self.stream


def make_pdf(text: str) -> bytes:
    document = fitz.open()
    page = document.new_page()
    page.insert_text((72, 72), text)
    data = document.tobytes()
    document.close()
    return data
