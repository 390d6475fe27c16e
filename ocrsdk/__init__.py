"""Async client for a cloud OCR service: submit a document, poll, download the result."""

from ocrsdk.application.factories import create
from ocrsdk.application.orchestrator import TaskOrchestrator
from ocrsdk.core.config import ArchiveSettings, OcrSdkSettings, ProcessingSettings
from ocrsdk.domain.errors import (
    DecodeError,
    DeletedTaskError,
    DownloadError,
    InputError,
    InvalidTaskIdError,
    NotEnoughCreditsError,
    OcrSdkError,
    PollingTimeoutError,
    ProcessingFailedError,
    ServiceError,
    StorageError,
    TaskCancelledError,
    TaskFailedError,
    TransportError,
    UnexpectedStatusError,
    UnknownResponseError,
)
from ocrsdk.domain.models import ProcessingVariant, TaskRecord, TaskResult, TaskStatus

__all__ = [
    "create",
    "TaskOrchestrator",
    "ArchiveSettings",
    "OcrSdkSettings",
    "ProcessingSettings",
    "ProcessingVariant",
    "TaskRecord",
    "TaskResult",
    "TaskStatus",
    "OcrSdkError",
    "InputError",
    "TransportError",
    "DownloadError",
    "DecodeError",
    "UnknownResponseError",
    "ServiceError",
    "InvalidTaskIdError",
    "TaskFailedError",
    "ProcessingFailedError",
    "NotEnoughCreditsError",
    "DeletedTaskError",
    "UnexpectedStatusError",
    "PollingTimeoutError",
    "TaskCancelledError",
    "StorageError",
]
