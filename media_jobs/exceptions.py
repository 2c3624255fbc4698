"""
Exceptions raised by the media job pipeline.

Everything under ExtractionError or SynthesisError is caught at the top of a
job run and turns the job into ``failed``; none of it reaches an HTTP client.
"""

from rest_framework import status
from rest_framework.exceptions import APIException


class MediaJobError(Exception):
    """Base class for pipeline errors."""


class JobNotFound(MediaJobError):
    def __init__(self, job_id):
        super().__init__(f"Media job not found: {job_id}")
        self.job_id = job_id


class InvalidTransition(MediaJobError):
    def __init__(self, job_id, target):
        super().__init__(f"Illegal status transition to {target!r} for job {job_id}")
        self.job_id = job_id
        self.target = target


# --- extraction ---

class ExtractionError(MediaJobError):
    pass


class BlobFetchError(ExtractionError):
    pass


class InvalidSourceURL(ExtractionError):
    def __init__(self, url: str):
        super().__init__("Invalid source URL")
        self.url = url


class VideoFetchError(ExtractionError):
    pass


class DocumentParseError(ExtractionError):
    pass


class TranscriptionError(ExtractionError):
    pass


# --- generation ---

class SynthesisError(MediaJobError):
    """Text generation failed or returned something unusable."""


# --- HTTP ---

class Conflict(APIException):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "The job is not in a state that allows this operation."
    default_code = "conflict"


class BadGateway(APIException):
    status_code = status.HTTP_502_BAD_GATEWAY
    default_detail = "The generation service failed."
    default_code = "bad_gateway"


class ServiceUnavailable(APIException):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_detail = "The generation service is not configured."
    default_code = "service_unavailable"
