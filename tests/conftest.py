from __future__ import annotations

from unittest.mock import patch

import pytest
from rest_framework.test import APIClient

from media_jobs import services
from media_jobs.models import MediaJob
from media_jobs.services import PipelineServices

from .fakes import FakeBlobStorage, FakeGenerator, FakeTranscriber, FakeVideoSource


@pytest.fixture()
def fake_services():
    svc = PipelineServices(
        blobs=FakeBlobStorage(),
        transcriber=FakeTranscriber(),
        generator=FakeGenerator(),
        video=FakeVideoSource(),
    )
    services.install(svc)
    yield svc
    services.install(None)


def _decode_test_token(token: str) -> dict:
    # "token-<uid>" is the only shape the tests hand out.
    if not token.startswith("token-"):
        raise ValueError("malformed token")
    return {"uid": token[len("token-"):]}


@pytest.fixture()
def verify_token():
    with patch("media_jobs.firebase.verify_id_token", side_effect=_decode_test_token) as mocked:
        yield mocked


@pytest.fixture()
def client_for(verify_token):
    def make(uid: str | None) -> APIClient:
        client = APIClient()
        if uid is not None:
            client.credentials(HTTP_AUTHORIZATION=f"Bearer token-{uid}")
        return client
    return make


@pytest.fixture()
def make_job(db):
    def make(**overrides) -> MediaJob:
        fields = {
            "owner_id": "user-1",
            "kind": MediaJob.Kind.FILE,
            "source_reference": "uploads/abc_lecture.pdf",
            "display_name": "lecture.pdf",
        }
        fields.update(overrides)
        return MediaJob.objects.create(**fields)
    return make
