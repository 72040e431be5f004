"""Object storage for standardized recordings."""

from threading import Lock
from typing import Any, Dict, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from recording_service.config import S3Config, settings
from recording_service.domain.errors import UploadFailed
from recording_service.domain.interfaces import ObjectStore


def create_s3_client(config: S3Config):
    """Instantiate a boto3 S3 client using configured credentials if available."""
    client_kwargs: Dict[str, Any] = {"region_name": config.region}
    if config.access_key and config.secret_key:
        client_kwargs["aws_access_key_id"] = config.access_key
        client_kwargs["aws_secret_access_key"] = config.secret_key
    return boto3.client("s3", **client_kwargs)


class S3ObjectStore(ObjectStore):
    def __init__(self, config: Optional[S3Config] = None, client=None) -> None:
        self.config = config or settings.s3
        self._client = client or create_s3_client(self.config)

    def _object_url(self, key: str) -> str:
        bucket = self.config.bucket_name
        if self.config.region == "us-east-1":
            return f"https://{bucket}.s3.amazonaws.com/{key}"
        return f"https://{bucket}.s3.{self.config.region}.amazonaws.com/{key}"

    def put(self, key: str, data: bytes, content_type: str) -> str:
        if not data:
            raise UploadFailed("Audio payload for upload was empty.")
        if not self.config.bucket_name:
            raise UploadFailed("S3 bucket name is not configured.")
        try:
            self._client.put_object(
                Bucket=self.config.bucket_name,
                Key=key,
                Body=data,
                ContentType=content_type,
            )
        except (BotoCoreError, ClientError) as exc:
            raise UploadFailed(f"Failed to upload recording audio: {exc}") from exc
        return self._object_url(key)


class InMemoryObjectStore(ObjectStore):
    """Keeps uploads in process memory; for local development and tests."""

    def __init__(self) -> None:
        self.objects: Dict[str, bytes] = {}
        self.content_types: Dict[str, str] = {}
        self._lock = Lock()

    def put(self, key: str, data: bytes, content_type: str) -> str:
        with self._lock:
            self.objects[key] = bytes(data)
            self.content_types[key] = content_type
        return f"memory://{key}"


def create_object_store() -> ObjectStore:
    if settings.storage_backend == "s3":
        return S3ObjectStore()
    return InMemoryObjectStore()
