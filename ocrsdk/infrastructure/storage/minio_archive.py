"""MinIO/S3 archive adapter for the source documents."""

from __future__ import annotations

import asyncio
import logging
import ssl
from pathlib import Path

import urllib3
from minio import Minio
from minio.error import MinioException

from ocrsdk.core.config import S3Settings
from ocrsdk.domain.errors import StorageError
from ocrsdk.domain.ports.archive_port import ArchivePort

logger = logging.getLogger(__name__)


class MinioArchive(ArchivePort):
    """Uploads the source file to one bucket.

    The blocking MinIO call runs in a worker thread so polling of other
    tasks on the same event loop is not held up.
    """

    def __init__(self, client: Minio, bucket: str):
        self.client = client
        self.bucket = bucket

    @classmethod
    def from_settings(cls, settings: S3Settings, bucket: str) -> "MinioArchive":
        http_client = None
        if not settings.S3_VERIFY_SSL:
            http_client = urllib3.PoolManager(cert_reqs=ssl.CERT_NONE, assert_hostname=False)

        client = Minio(
            settings.S3_ENDPOINT,
            access_key=settings.S3_ACCESS_KEY,
            secret_key=settings.S3_SECRET_KEY.get_secret_value(),
            secure=settings.S3_SECURE,
            region=settings.S3_REGION,
            http_client=http_client,
        )
        logger.info("archive_client_initialized", extra={"bucket": bucket})
        return cls(client, bucket)

    def _upload(self, local_path: Path, destination_key: str) -> None:
        try:
            self.client.fput_object(self.bucket, destination_key, str(local_path))
        except (MinioException, urllib3.exceptions.HTTPError, OSError, ValueError) as exc:
            raise StorageError(
                f"Upload of {local_path.name} to {self.bucket}/{destination_key} failed: {exc}",
                bucket=self.bucket,
                key=destination_key,
            ) from exc
        logger.info(
            "archive_uploaded",
            extra={"bucket": self.bucket, "key": destination_key, "path": str(local_path)},
        )

    async def store(self, local_path: Path, destination_key: str) -> None:
        await asyncio.to_thread(self._upload, local_path, destination_key)
