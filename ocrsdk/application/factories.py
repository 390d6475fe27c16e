from __future__ import annotations

from typing import Any, Mapping, Optional

import httpx

from ocrsdk.application.orchestrator import TaskOrchestrator
from ocrsdk.core.config import OcrSdkSettings, ProcessingSettings, get_s3_settings, get_settings
from ocrsdk.domain.ports.archive_port import ArchivePort
from ocrsdk.infrastructure.clients.ocrsdk_http import OcrSdkHttpClient
from ocrsdk.infrastructure.storage.minio_archive import MinioArchive
from ocrsdk.infrastructure.xml_decoder import XmlResponseDecoder


def build_processing_settings(configuration: ProcessingSettings | Mapping[str, Any] | None) -> ProcessingSettings:
    if configuration is None:
        return ProcessingSettings()
    if isinstance(configuration, ProcessingSettings):
        return configuration
    return ProcessingSettings.model_validate(dict(configuration))


def build_transport(
    application_id: str,
    password: str,
    settings: OcrSdkSettings,
    transport: httpx.AsyncBaseTransport | None = None,
) -> OcrSdkHttpClient:
    return OcrSdkHttpClient(
        base_url=settings.SERVER_URL,
        application_id=application_id,
        password=password,
        user_agent=settings.USER_AGENT,
        timeout_seconds=settings.REQUEST_TIMEOUT_SECONDS,
        verify_ssl=settings.VERIFY_SSL,
        transport=transport,
    )


def build_archive(processing: ProcessingSettings) -> Optional[ArchivePort]:
    if not processing.archival_enabled:
        return None
    return MinioArchive.from_settings(get_s3_settings(), processing.archive.bucket)


def create(
    application_id: str,
    password: str,
    configuration: ProcessingSettings | Mapping[str, Any] | None = None,
    *,
    settings: OcrSdkSettings | None = None,
    archive: ArchivePort | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> TaskOrchestrator:
    """Build a ready-to-use orchestrator.

    ``configuration`` accepts ``uploadToArchive``, ``archive: {bucket}`` and
    ``urlParams`` (camelCase or snake_case). Polling and connection options
    come from ``settings`` (environment by default).
    """
    s = settings or get_settings()
    processing = build_processing_settings(configuration)
    return TaskOrchestrator(
        transport=build_transport(application_id, password, s, transport),
        decoder=XmlResponseDecoder(),
        settings=processing,
        archive=archive if archive is not None else build_archive(processing),
        poll_interval=s.POLL_INTERVAL_SECONDS,
        first_poll_delay=s.first_poll_delay,
        poll_timeout=s.POLL_TIMEOUT_SECONDS,
    )
