import mimetypes
import os
from uuid import uuid4

GENERIC_CONTENT_TYPES = {"", "application/octet-stream", "binary/octet-stream"}
DOCUMENT_CONTENT_TYPES = {"application/pdf", "application/x-pdf"}


def upload_key(filename: str) -> str:
    """Namespaced key for a temporary upload: uploads/<uuid>_<name>."""
    return f"uploads/{uuid4().hex}_{os.path.basename(filename)}"


def resolve_content_type(declared: str | None, key: str) -> str:
    """Declared type without parameters; falls back to the key's extension when generic."""
    ctype = (declared or "").split(";", 1)[0].strip().lower()
    if ctype in GENERIC_CONTENT_TYPES:
        guessed, _ = mimetypes.guess_type(key)
        ctype = guessed or ctype or "application/octet-stream"
    return ctype


def guess_kind(content_type: str) -> str:
    """Return 'document' | 'audio' | 'video' | 'other' for a content type."""
    if content_type in DOCUMENT_CONTENT_TYPES:
        return "document"
    if content_type.startswith("audio/"):
        return "audio"
    if content_type.startswith("video/"):
        return "video"
    return "other"
