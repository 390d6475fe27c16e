from __future__ import annotations

import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import pytest

from ocrsdk.application.orchestrator import TaskOrchestrator
from ocrsdk.core.config import ProcessingSettings
from ocrsdk.domain.errors import StorageError
from ocrsdk.domain.ports.archive_port import ArchivePort
from ocrsdk.domain.ports.transport_port import RawResponse, TransportPort
from ocrsdk.infrastructure.xml_decoder import XmlResponseDecoder

TASK_ID = "1f0b2a7c-5d4e-4b8a-9c3d-2e6f7a8b9c0d"
NULL_TASK_ID = "00000000-0000-0000-0000-000000000000"
RESULT_URL = "https://results.example.net/blob/result.xml?sig=abc"
POLL_INTERVAL = 0.02


def task_xml(status: str = "Queued", task_id: str = TASK_ID, **attrs: str) -> bytes:
    extra = " ".join(f'{name}="{value}"' for name, value in attrs.items())
    return (
        '<?xml version="1.0" encoding="utf-8"?>'
        f'<response><task id="{task_id}" status="{status}" {extra}/></response>'
    ).encode("utf-8")


def error_xml(message: str) -> bytes:
    return f'<error><message language="english">{message}</message></error>'.encode("utf-8")


@dataclass
class Call:
    method: str
    path: str
    body: Optional[bytes]
    at: float


@dataclass
class ScriptedTransport(TransportPort):
    """Answers POST with ``submit_body``, status polls from ``statuses`` in order."""

    submit_body: bytes = field(default_factory=task_xml)
    statuses: list[bytes] = field(default_factory=list)
    artifact: bytes = b"<document>recognized text</document>"
    repeat_last_status: bool = True
    calls: list[Call] = field(default_factory=list)

    async def request(self, method: str, path: str, body: Optional[bytes] = None) -> RawResponse:
        self.calls.append(Call(method, path, body, time.monotonic()))
        if method == "POST":
            return RawResponse(200, self.submit_body, url=path)
        if path.startswith("/getTaskStatus"):
            if len(self.statuses) > 1 or not self.repeat_last_status:
                payload = self.statuses.pop(0)
            else:
                payload = self.statuses[0]
            return RawResponse(200, payload, url=path)
        return RawResponse(200, self.artifact, url=path, headers={"content-type": "application/xml"})

    @property
    def posts(self) -> list[Call]:
        return [c for c in self.calls if c.method == "POST"]

    @property
    def polls(self) -> list[Call]:
        return [c for c in self.calls if c.path.startswith("/getTaskStatus")]

    @property
    def downloads(self) -> list[Call]:
        return [c for c in self.calls if c.method == "GET" and not c.path.startswith("/getTaskStatus")]


class FakeArchive(ArchivePort):
    def __init__(self, fail_times: int = 0) -> None:
        self.fail_times = fail_times
        self.stored: list[tuple[Path, str]] = []
        self.attempts = 0

    async def store(self, local_path: Path, destination_key: str) -> None:
        self.attempts += 1
        if self.attempts <= self.fail_times:
            raise StorageError("bucket unavailable", bucket="docs", key=destination_key)
        self.stored.append((local_path, destination_key))


@pytest.fixture
def document(tmp_path: Path) -> Path:
    path = tmp_path / "scan.png"
    path.write_bytes(b"\x89PNG\r\n\x1a\nfake image")
    return path


@pytest.fixture
def make_orchestrator():
    def _make(
        transport: TransportPort,
        *,
        settings: Optional[ProcessingSettings] = None,
        archive: Optional[ArchivePort] = None,
        poll_interval: float = POLL_INTERVAL,
        poll_timeout: Optional[float] = None,
    ) -> TaskOrchestrator:
        return TaskOrchestrator(
            transport,
            XmlResponseDecoder(),
            settings=settings,
            archive=archive,
            poll_interval=poll_interval,
            poll_timeout=poll_timeout,
            archive_retries=1,
            archive_backoff=0.01,
        )

    return _make
