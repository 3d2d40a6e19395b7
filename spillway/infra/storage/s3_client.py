"""S3-compatible object store client implementation.

This module provides an S3-compatible client that works with AWS S3, MinIO,
and other S3-compatible object storage services (OpenStack Swift included,
through its S3 middleware).

Numbered parts map onto an S3 multipart upload that is started lazily with
the first part of a key; the manifest is the multipart completion.

Dependencies:
    - boto3
    - botocore
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, BinaryIO

from spillway.infra.storage.client import CompletedPart, StorageError

if TYPE_CHECKING:
    from spillway.common.config import Settings

logger = logging.getLogger("spillway.storage")

# Maximum part number allowed by S3
MAX_PART_NUMBER = 10000


@dataclass(slots=True)
class _PendingUpload:
    upload_id: str
    parts: list[CompletedPart] = field(default_factory=list)


class S3ObjectStoreClient:
    """S3-compatible object store client bound to a single bucket.

    Uses boto3 for all storage operations. Multipart state is kept per
    object key for the lifetime of the client instance.
    """

    def __init__(self, *, settings: "Settings", bucket: str | None = None) -> None:
        """Initialize the S3 client with configuration from settings.

        Args:
            settings: Application settings containing S3 configuration.
            bucket: Target bucket; defaults to ``settings.S3_BUCKET``.

        Raises:
            StorageError: If boto3 is not installed or no bucket is configured.
        """
        self._settings = settings
        self._bucket = bucket or settings.S3_BUCKET
        if not self._bucket:
            raise StorageError("S3_BUCKET is required")
        self._client = self._build_client(settings)
        self._pending: dict[str, _PendingUpload] = {}

    @property
    def bucket(self) -> str:
        return self._bucket

    @staticmethod
    def _build_client(settings: "Settings") -> Any:
        """Create a boto3 S3 client from settings."""
        try:
            import boto3
            from botocore.config import Config
        except ImportError as exc:
            raise StorageError(
                "boto3 and botocore are required for S3 storage backend. "
                "Install with: pip install boto3"
            ) from exc

        addressing_style = (settings.S3_ADDRESSING_STYLE or "path").strip().lower()
        config = Config(s3={"addressing_style": addressing_style})

        return boto3.client(
            "s3",
            endpoint_url=settings.S3_ENDPOINT_URL,
            region_name=settings.S3_REGION,
            aws_access_key_id=settings.S3_ACCESS_KEY_ID,
            aws_secret_access_key=settings.S3_SECRET_ACCESS_KEY,
            use_ssl=bool(settings.S3_USE_SSL),
            config=config,
        )

    def upload_object(
        self,
        *,
        object_key: str,
        body: BinaryIO,
        length: int,
    ) -> None:
        """Upload the whole content of an object in one request."""
        try:
            self._client.put_object(
                Bucket=self._bucket,
                Key=object_key,
                Body=body,
                ContentLength=int(length),
            )
        except Exception as exc:
            raise StorageError(f"Failed to upload object: {exc}") from exc

    def upload_object_part(
        self,
        *,
        object_key: str,
        part_number: int,
        body: BinaryIO,
        length: int,
    ) -> CompletedPart:
        """Upload one numbered part, starting the multipart upload if needed."""
        if not 1 <= part_number <= MAX_PART_NUMBER:
            raise StorageError(
                f"Part number {part_number} is outside 1..{MAX_PART_NUMBER}"
            )

        pending = self._pending.get(object_key)
        if pending is None:
            pending = self._init_multipart_upload(object_key)

        try:
            response = self._client.upload_part(
                Bucket=self._bucket,
                Key=object_key,
                UploadId=pending.upload_id,
                PartNumber=int(part_number),
                Body=body,
                ContentLength=int(length),
            )
        except Exception as exc:
            raise StorageError(f"Failed to upload part: {exc}") from exc

        etag = response.get("ETag")
        if not etag:
            raise StorageError("S3 response missing ETag")

        part = CompletedPart(part_number=int(part_number), etag=str(etag))
        pending.parts.append(part)
        return part

    def create_manifest(self, *, object_key: str) -> None:
        """Complete the multipart upload by combining all parts."""
        pending = self._pending.get(object_key)
        if pending is None or not pending.parts:
            raise StorageError(f"No uploaded parts for object: {object_key}")

        multipart_payload = {
            "Parts": [
                {"ETag": part.etag, "PartNumber": int(part.part_number)}
                for part in sorted(pending.parts, key=lambda p: p.part_number)
            ]
        }

        try:
            self._client.complete_multipart_upload(
                Bucket=self._bucket,
                Key=object_key,
                UploadId=pending.upload_id,
                MultipartUpload=multipart_payload,
            )
        except Exception as exc:
            raise StorageError(f"Failed to complete multipart upload: {exc}") from exc

        del self._pending[object_key]

    def abort_parts(self, *, object_key: str) -> None:
        """Abort a multipart upload and clean up uploaded parts."""
        pending = self._pending.pop(object_key, None)
        if pending is None:
            return

        try:
            self._client.abort_multipart_upload(
                Bucket=self._bucket,
                Key=object_key,
                UploadId=pending.upload_id,
            )
        except Exception as exc:
            raise StorageError(f"Failed to abort multipart upload: {exc}") from exc

    def _init_multipart_upload(self, object_key: str) -> _PendingUpload:
        try:
            response = self._client.create_multipart_upload(
                Bucket=self._bucket, Key=object_key
            )
        except Exception as exc:
            raise StorageError(f"Failed to create multipart upload: {exc}") from exc

        upload_id = response.get("UploadId")
        if not upload_id:
            raise StorageError("S3 response missing UploadId")

        logger.debug(
            "multipart upload started [event=multipart_started] key=%s upload_id=%s",
            object_key,
            upload_id,
        )
        pending = _PendingUpload(upload_id=str(upload_id))
        self._pending[object_key] = pending
        return pending
