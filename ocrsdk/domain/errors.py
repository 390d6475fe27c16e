"""Exception hierarchy for the OCR SDK client.

Every failure of a ``process`` call surfaces as exactly one of these types.
The only error that is downgraded instead of raised is ``StorageError`` from
the best-effort archival upload.
"""

from __future__ import annotations

from typing import Any, Optional


class OcrSdkError(Exception):
    """Base exception for all client errors.

    Attributes:
        message: Human-readable error message
        error_code: Stable machine-readable code
        details: Additional context (dict)
        retryable: Whether repeating the whole operation may succeed
    """

    error_code: str = "OCRSDK_ERROR"

    def __init__(
        self,
        message: str,
        *,
        details: Optional[dict[str, Any]] = None,
        retryable: bool = False,
    ):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.retryable = retryable

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.error_code,
            "message": self.message,
            "details": self.details,
            "retryable": self.retryable,
        }


class InputError(OcrSdkError):
    """Local source file is missing or not a regular file. Never sent remotely."""

    error_code = "INPUT_ERROR"

    def __init__(self, path: str, reason: str = "does not exist or is not a regular file"):
        super().__init__(f"file {path} {reason}", details={"path": path})
        self.path = path


class TransportError(OcrSdkError):
    """Network, DNS or HTTP-level failure talking to the service.

    The underlying exception is kept as ``__cause__``.
    """

    error_code = "TRANSPORT_ERROR"

    def __init__(self, message: str, *, status_code: int | None = None, url: str | None = None):
        details: dict[str, Any] = {}
        if status_code is not None:
            details["http_status"] = status_code
        if url is not None:
            details["url"] = url
        super().__init__(message, details=details, retryable=True)
        self.status_code = status_code
        self.url = url


class DownloadError(TransportError):
    """The result artifact could not be fetched from ``resultUrl``."""

    error_code = "DOWNLOAD_ERROR"


class DecodeError(OcrSdkError):
    """Response body is malformed or lacks required fields."""

    error_code = "DECODE_ERROR"


class UnknownResponseError(DecodeError):
    """Well-formed body that holds neither a task nor an error element."""

    error_code = "UNKNOWN_RESPONSE"

    def __init__(self, message: str = "Unknown server response"):
        super().__init__(message)


class ServiceError(OcrSdkError):
    """Error response returned by the service; message is passed through verbatim."""

    error_code = "SERVICE_ERROR"

    def __init__(self, message: str, *, status_code: int | None = None):
        details = {"http_status": status_code} if status_code is not None else None
        super().__init__(message, details=details)
        self.status_code = status_code


class InvalidTaskIdError(OcrSdkError):
    """All-zero task id: a logic error in request construction, never polled."""

    error_code = "INVALID_TASK_ID"

    def __init__(self, task_id: str):
        super().__init__("Null id passed", details={"task_id": task_id})
        self.task_id = task_id


class TaskFailedError(OcrSdkError):
    """Base for terminal task statuses other than Completed."""

    error_code = "TASK_FAILED"

    def __init__(self, message: str, *, task_id: str, status: str):
        super().__init__(message, details={"task_id": task_id, "status": status})
        self.task_id = task_id
        self.status = status


class ProcessingFailedError(TaskFailedError):
    error_code = "PROCESSING_FAILED"

    def __init__(self, task_id: str, error_message: str | None):
        super().__init__(
            error_message or "Processing failed",
            task_id=task_id,
            status="ProcessingFailed",
        )
        self.error_message = error_message


class NotEnoughCreditsError(TaskFailedError):
    error_code = "NOT_ENOUGH_CREDITS"

    def __init__(self, task_id: str):
        super().__init__("Not enough credits to process the task", task_id=task_id, status="NotEnoughCredits")


class DeletedTaskError(TaskFailedError):
    error_code = "TASK_DELETED"

    def __init__(self, task_id: str):
        super().__init__("Task was deleted", task_id=task_id, status="Deleted")


class UnexpectedStatusError(TaskFailedError):
    """Status the client does not recognize; treated as terminal."""

    error_code = "UNEXPECTED_STATUS"

    def __init__(self, task_id: str, status: str):
        super().__init__(f"Unexpected task status: {status}", task_id=task_id, status=status)


class PollingTimeoutError(OcrSdkError):
    """Configured wall-clock bound on polling was exceeded."""

    error_code = "POLLING_TIMEOUT"

    def __init__(self, task_id: str, timeout_seconds: float, attempts: int):
        super().__init__(
            f"Task {task_id} not finished after {timeout_seconds:.1f}s ({attempts} status checks)",
            details={"task_id": task_id, "timeout_seconds": timeout_seconds, "attempts": attempts},
            retryable=True,
        )
        self.task_id = task_id


class TaskCancelledError(OcrSdkError):
    """Caller cancelled an in-flight ``process`` call."""

    error_code = "CANCELLED"

    def __init__(self, task_id: str | None = None):
        super().__init__("Processing cancelled", details={"task_id": task_id})
        self.task_id = task_id


class StorageError(OcrSdkError):
    """Archival upload to object storage failed."""

    error_code = "STORAGE_ERROR"

    def __init__(self, message: str, *, bucket: str | None = None, key: str | None = None):
        super().__init__(message, details={"bucket": bucket, "key": key}, retryable=True)
        self.bucket = bucket
        self.key = key
