import os
from dataclasses import dataclass

import boto3
from botocore.config import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError
from django.conf import settings

from .exceptions import BlobFetchError


def _session():
    return boto3.session.Session(
        aws_access_key_id=settings.S3_ACCESS_KEY,
        aws_secret_access_key=settings.S3_SECRET_KEY,
        region_name=settings.S3_REGION,
    )


def get_s3_client():
    """
    SDK client for server-side download/delete.
    """
    return _session().client(
        "s3",
        endpoint_url=settings.S3_ENDPOINT_URL,  # e.g. http://127.0.0.1:9000
        config=BotoConfig(
            s3={"addressing_style": "path"},
            signature_version="s3v4",
        ),
    )


def get_presign_client():
    """
    Separate client for generating presigned URLs that the browser will call.
    Uses S3_PUBLIC_ENDPOINT so the URL host matches what the client reaches.
    """
    public_endpoint = os.getenv("S3_PUBLIC_ENDPOINT", settings.S3_ENDPOINT_URL)
    return _session().client(
        "s3",
        endpoint_url=public_endpoint,
        config=BotoConfig(
            s3={"addressing_style": "path"},
            signature_version="s3v4",  # ensures AWS4 signing
        ),
    )


def create_presigned_put(key: str, content_type: str | None = None, expires: int | None = None) -> dict:
    """
    Create a presigned PUT URL to upload a single object directly to S3/MinIO.

    ContentType is deliberately left out of the signed params so clients that
    omit or alter the header do not hit signature mismatches. The header is
    still suggested back to the caller.
    """
    s3 = get_presign_client()
    url = s3.generate_presigned_url(
        ClientMethod="put_object",
        Params={"Bucket": settings.S3_BUCKET, "Key": key},
        ExpiresIn=expires or settings.S3_PRESIGN_EXPIRE_SECONDS,
        HttpMethod="PUT",
    )
    headers = {"Content-Type": content_type} if content_type else {}
    return {"url": url, "headers": headers}


@dataclass
class Blob:
    data: bytes
    content_type: str


class S3BlobStorage:
    """
    Temporary upload storage. A ``file`` job's source reference is the
    object key; the object belongs to that job until it is deleted.
    """

    def __init__(self, client=None, bucket: str | None = None):
        self._client = client or get_s3_client()
        self._bucket = bucket or settings.S3_BUCKET

    def fetch(self, key: str) -> Blob:
        try:
            obj = self._client.get_object(Bucket=self._bucket, Key=key)
            data = obj["Body"].read()
        except (BotoCoreError, ClientError) as e:
            raise BlobFetchError(f"Failed to fetch upload {key}: {e}") from e
        return Blob(data=data, content_type=obj.get("ContentType") or "")

    def delete(self, key: str) -> None:
        self._client.delete_object(Bucket=self._bucket, Key=key)
