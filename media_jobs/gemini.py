"""
Gemini-backed transcription and text generation (google-genai SDK).

One ``genai.Client`` is built at process start and shared by both
capabilities; see ``services.build_services``.
"""

import io
import json
import logging
import time
from typing import Any

import httpx
from google import genai
from google.genai import errors as genai_errors
from google.genai import types

from .exceptions import SynthesisError, TranscriptionError

logger = logging.getLogger(__name__)

# Requests above ~20MB must go through the File API instead of inline bytes.
INLINE_MAX_BYTES = 18 * 1024 * 1024

# Uploaded media is processed by the service before it can be referenced.
FILE_POLL_INTERVAL_SECONDS = 5
FILE_ACTIVE_TIMEOUT_SECONDS = 300

# API responses and transport faults (connect errors, timeouts).
GEMINI_ERRORS = (genai_errors.APIError, httpx.HTTPError)

TRANSCRIBE_PROMPT = "Please transcribe this audio/video. Return only the transcript text."


def build_client(api_key: str) -> genai.Client:
    return genai.Client(api_key=api_key)


def strip_json_fences(text: str) -> str:
    text = text.strip()
    if text.startswith("```"):
        text = text.split("\n", 1)[1] if "\n" in text else ""
        if text.rstrip().endswith("```"):
            text = text.rstrip()[:-3]
    return text.strip()


class GeminiGenerator:
    def __init__(self, client: genai.Client, model: str):
        self._client = client
        self.model = model

    def generate(self, prompt: str) -> str:
        try:
            response = self._client.models.generate_content(model=self.model, contents=prompt)
        except GEMINI_ERRORS as e:
            raise SynthesisError(f"Gemini generation failed: {e}") from e
        text = response.text
        if not text or not text.strip():
            raise SynthesisError("Gemini returned an empty response")
        return text

    def generate_json(self, prompt: str, schema: dict | None = None) -> Any:
        config: dict[str, Any] = {"response_mime_type": "application/json"}
        if schema is not None:
            config["response_schema"] = schema
        try:
            response = self._client.models.generate_content(
                model=self.model, contents=prompt, config=config
            )
        except GEMINI_ERRORS as e:
            raise SynthesisError(f"Gemini generation failed: {e}") from e
        raw = response.text or ""
        try:
            return json.loads(strip_json_fences(raw))
        except json.JSONDecodeError as e:
            logger.warning("Gemini returned invalid JSON: %s", raw[:500])
            raise SynthesisError("Gemini did not return valid JSON") from e


class GeminiTranscriber:
    def __init__(self, client: genai.Client, model: str):
        self._client = client
        self.model = model

    def _wait_until_active(self, uploaded):
        deadline = time.monotonic() + FILE_ACTIVE_TIMEOUT_SECONDS
        file_info = uploaded
        while True:
            state = file_info.state.name if file_info.state else None
            if state == "ACTIVE":
                return file_info
            if state == "FAILED":
                raise TranscriptionError(f"Gemini could not process uploaded file {uploaded.name}")
            if time.monotonic() >= deadline:
                raise TranscriptionError(
                    f"Uploaded file {uploaded.name} not ready after {FILE_ACTIVE_TIMEOUT_SECONDS}s"
                )
            time.sleep(FILE_POLL_INTERVAL_SECONDS)
            file_info = self._client.files.get(name=uploaded.name)

    def _delete_upload(self, uploaded) -> None:
        try:
            self._client.files.delete(name=uploaded.name)
        except Exception:
            logger.warning("Could not delete Gemini file %s", uploaded.name, exc_info=True)

    def transcribe(self, data: bytes, mime_type: str) -> str:
        uploaded = None
        try:
            if len(data) <= INLINE_MAX_BYTES:
                part = types.Part.from_bytes(data=data, mime_type=mime_type)
            else:
                uploaded = self._client.files.upload(
                    file=io.BytesIO(data), config={"mime_type": mime_type}
                )
                active = self._wait_until_active(uploaded)
                part = types.Part.from_uri(file_uri=active.uri, mime_type=mime_type)
            response = self._client.models.generate_content(
                model=self.model, contents=[TRANSCRIBE_PROMPT, part]
            )
        except GEMINI_ERRORS as e:
            raise TranscriptionError(f"Gemini transcription failed: {e}") from e
        finally:
            if uploaded is not None:
                self._delete_upload(uploaded)
        text = response.text
        if text is None:
            raise TranscriptionError("Gemini returned no transcript")
        return text
