"""Task orchestrator: submit -> poll until terminal -> download.

Each ``process`` call owns its task state; the orchestrator itself only holds
read-only collaborators, so concurrent calls need no coordination.
"""

from __future__ import annotations

import asyncio
import logging
import time
from pathlib import Path
from typing import Mapping, Optional
from urllib.parse import quote

from pydantic import ValidationError

from ocrsdk.core.config import ProcessingSettings
from ocrsdk.core.logging import bind_task_id, reset_task_id
from ocrsdk.domain.errors import (
    DecodeError,
    DownloadError,
    InputError,
    InvalidTaskIdError,
    OcrSdkError,
    PollingTimeoutError,
    StorageError,
    TaskCancelledError,
    TransportError,
)
from ocrsdk.domain.models import (
    ProcessingRequest,
    ProcessingVariant,
    TaskRecord,
    TaskResult,
    TaskStatus,
)
from ocrsdk.domain.ports.archive_port import ArchivePort
from ocrsdk.domain.ports.decoder_port import DecoderPort
from ocrsdk.domain.ports.transport_port import RawResponse, TransportPort
from ocrsdk.domain.state_machine import ActionKind, TaskPhase, is_sentinel_id, next_action
from ocrsdk.observability import metrics
from ocrsdk.observability.retries import async_retry

logger = logging.getLogger(__name__)


class TaskOrchestrator:
    """Drives one recognition task per ``process`` call.

    Args:
        transport: Authenticated HTTP access to the service
        decoder: Response body -> TaskRecord
        settings: Archival and extra URL parameter options
        archive: Object storage used when archival is enabled
        poll_interval: Seconds between status requests
        first_poll_delay: Seconds between submission and the first status request
            (defaults to ``poll_interval``)
        poll_timeout: Optional bound on total polling time in seconds
        archive_retries: Extra attempts for a failed archival upload
        archive_backoff: First delay before an archival retry, doubled per attempt
    """

    def __init__(
        self,
        transport: TransportPort,
        decoder: DecoderPort,
        *,
        settings: Optional[ProcessingSettings] = None,
        archive: Optional[ArchivePort] = None,
        poll_interval: float = 5.0,
        first_poll_delay: Optional[float] = None,
        poll_timeout: Optional[float] = None,
        archive_retries: int = 2,
        archive_backoff: float = 0.5,
    ) -> None:
        if poll_interval <= 0:
            raise ValueError("poll_interval must be positive")
        if first_poll_delay is not None and first_poll_delay <= 0:
            raise ValueError("first_poll_delay must be positive")
        if poll_timeout is not None and poll_timeout <= 0:
            raise ValueError("poll_timeout must be positive")
        self._transport = transport
        self._decoder = decoder
        self._settings = settings or ProcessingSettings()
        self._archive = archive
        self._poll_interval = poll_interval
        self._first_poll_delay = first_poll_delay if first_poll_delay is not None else poll_interval
        self._poll_timeout = poll_timeout
        self._archive_retries = archive_retries
        self._archive_backoff = archive_backoff

    @property
    def settings(self) -> ProcessingSettings:
        return self._settings

    async def process(
        self,
        file_path: str | Path,
        variant: str | ProcessingVariant | None = ProcessingVariant.IMAGE,
        *,
        params: Optional[Mapping[str, str]] = None,
        output_path: str | Path | None = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> TaskResult:
        """Recognize one document and return the downloaded artifact.

        Raises exactly one ``OcrSdkError`` subclass on failure. A failed
        archival upload is reported in ``TaskResult.warnings`` instead.
        """
        started = time.perf_counter()
        archive_job = None
        try:
            request = _build_request(file_path, variant, params)
            source = _check_input(request.file_path)
            if cancel_event is not None and cancel_event.is_set():
                raise TaskCancelledError()

            archive_job = self._start_archive(source)
            task = await self.submit(request)
            token = bind_task_id(task.id)
            try:
                task, polls = await self._poll_until_terminal(task, cancel_event)
                response = await self.download_result(task, output_path=output_path)
            finally:
                reset_task_id(token)
            warnings = []
            if archive_job is not None:
                warning = await archive_job
                if warning:
                    warnings.append(warning)
        except OcrSdkError as exc:
            metrics.inc_task_failed(exc.error_code)
            logger.error("process_failed", extra={"error_code": exc.error_code, "path": str(file_path)})
            raise
        finally:
            if archive_job is not None and not archive_job.done():
                archive_job.cancel()
            metrics.record_process_duration(time.perf_counter() - started)

        metrics.inc_task_completed()
        logger.info(
            "process_done",
            extra={
                "task_id": task.id,
                "status": TaskPhase.DONE.value,
                "size": len(response.content),
                "duration_ms": int((time.perf_counter() - started) * 1000),
            },
        )
        return TaskResult(
            task=task,
            artifact=response.content,
            content_type=response.content_type,
            output_path=Path(output_path) if output_path is not None else None,
            polls=polls,
            warnings=warnings,
        )

    async def submit(self, request: ProcessingRequest) -> TaskRecord:
        """POST the file to ``/process{Variant}`` and decode the created task."""
        source = _check_input(request.file_path)
        query = self._settings.as_url_params(request.params)
        path = request.variant.path + (f"?{query}" if query else "")
        try:
            body = source.read_bytes()
        except OSError as exc:
            raise InputError(str(source), reason=f"cannot be read: {exc}") from exc

        logger.debug("phase", extra={"status": TaskPhase.SUBMITTING.value, "path": str(source)})
        raw = await self._transport.request("POST", path, body)
        task = self._decode(raw)
        metrics.inc_task_submitted()
        logger.info(
            "task_submitted",
            extra={"task_id": task.id, "status": task.raw_status, "variant": request.variant.value},
        )
        return task

    async def get_task_status(self, task_id: str) -> TaskRecord:
        if is_sentinel_id(task_id):
            raise InvalidTaskIdError(task_id)
        raw = await self._transport.request("GET", f"/getTaskStatus?taskId={quote(task_id, safe='')}")
        metrics.inc_status_poll()
        task = self._decode(raw)
        if task.id != task_id:
            raise DecodeError(f"Status response for task {task.id}, expected {task_id}")
        return task

    async def wait_for_completion(
        self, task: TaskRecord, *, cancel_event: Optional[asyncio.Event] = None
    ) -> TaskRecord:
        """Poll until the task is Completed; raise the typed error for any other terminal status."""
        task, _ = await self._poll_until_terminal(task, cancel_event)
        return task

    async def download_result(self, task: TaskRecord, *, output_path: str | Path | None = None) -> RawResponse:
        if task.status is not TaskStatus.COMPLETED or not task.result_url:
            raise DownloadError(f"Task {task.id} has no result to download (status {task.raw_status})")

        logger.debug("phase", extra={"status": TaskPhase.DOWNLOADING.value})
        try:
            response = await self._transport.request("GET", task.result_url)
        except TransportError as exc:
            raise DownloadError(
                f"Result download for task {task.id} failed: {exc.message}",
                status_code=exc.status_code,
                url=task.result_url,
            ) from exc
        if not response.ok:
            raise DownloadError(
                f"Result download for task {task.id} returned HTTP {response.status_code}",
                status_code=response.status_code,
                url=task.result_url,
            )

        if output_path is not None:
            target = Path(output_path)
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(response.content)
            logger.info("result_saved", extra={"path": str(target), "size": len(response.content)})
        return response

    async def _poll_until_terminal(
        self, task: TaskRecord, cancel_event: Optional[asyncio.Event]
    ) -> tuple[TaskRecord, int]:
        if is_sentinel_id(task.id):
            raise InvalidTaskIdError(task.id)

        loop = asyncio.get_running_loop()
        deadline = loop.time() + self._poll_timeout if self._poll_timeout is not None else None
        delay = self._first_poll_delay
        attempts = 0
        while True:
            action = next_action(task)
            if action.kind is ActionKind.DOWNLOAD:
                return task, attempts
            if action.kind is ActionKind.FAIL:
                logger.warning(
                    "task_failed",
                    extra={"status": task.raw_status, "error_code": action.error.error_code},
                )
                raise action.error

            if deadline is not None and loop.time() + delay > deadline:
                raise PollingTimeoutError(task.id, self._poll_timeout, attempts)
            await _wait(delay, cancel_event, task.id)
            attempts += 1
            task = await self.get_task_status(task.id)
            logger.info("task_status", extra={"status": task.raw_status, "attempt": attempts})
            if cancel_event is not None and cancel_event.is_set():
                raise TaskCancelledError(task.id)
            delay = self._poll_interval

    def _decode(self, raw: RawResponse) -> TaskRecord:
        try:
            task = self._decoder.decode(raw.content, status_code=raw.status_code)
        except DecodeError as exc:
            if raw.ok:
                raise
            raise TransportError(
                f"HTTP {raw.status_code} without a readable body",
                status_code=raw.status_code,
                url=raw.url,
            ) from exc
        if not raw.ok:
            raise TransportError(
                f"HTTP {raw.status_code} for task {task.id}",
                status_code=raw.status_code,
                url=raw.url,
            )
        return task

    def _start_archive(self, source: Path) -> Optional[asyncio.Task[Optional[str]]]:
        if not self._settings.archival_enabled:
            return None
        if self._archive is None:
            logger.warning("archive_skipped_no_storage", extra={"path": str(source)})
            return None
        key = self._settings.archive.object_key(source.stem)
        return asyncio.create_task(self._store(source, key))

    async def _store(self, source: Path, key: str) -> Optional[str]:
        """Best-effort upload; a failure comes back as a warning string."""
        try:
            await async_retry(
                self._archive.store,
                source,
                key,
                retries=self._archive_retries,
                backoff=self._archive_backoff,
                exceptions=(StorageError,),
            )
        except Exception as exc:
            # Any archive adapter failure, typed or not, ends as a warning
            error_code = exc.error_code if isinstance(exc, StorageError) else type(exc).__name__
            message = exc.message if isinstance(exc, StorageError) else str(exc)
            metrics.inc_archive_failure()
            logger.warning("archive_failed", extra={"key": key, "error_code": error_code}, exc_info=True)
            return f"archival upload failed: {message}"
        return None


def _build_request(
    file_path: str | Path,
    variant: str | ProcessingVariant | None,
    params: Optional[Mapping[str, str]],
) -> ProcessingRequest:
    try:
        return ProcessingRequest(file_path=Path(file_path), variant=variant, params=dict(params or {}))
    except ValidationError as exc:
        reason = "; ".join(error["msg"] for error in exc.errors())
        raise InputError(str(file_path), reason=f"cannot be processed: {reason}") from exc


def _check_input(path: Path) -> Path:
    if not path.exists() or not path.is_file():
        raise InputError(str(path))
    return path


async def _wait(delay: float, cancel_event: Optional[asyncio.Event], task_id: str) -> None:
    if cancel_event is None:
        await asyncio.sleep(delay)
        return
    try:
        await asyncio.wait_for(cancel_event.wait(), timeout=delay)
    except asyncio.TimeoutError:
        return
    raise TaskCancelledError(task_id)
