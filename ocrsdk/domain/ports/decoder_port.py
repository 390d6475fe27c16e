"""DecoderPort protocol for interpreting service response bodies."""

from __future__ import annotations

from typing import Optional, Protocol

from ocrsdk.domain.models import TaskRecord


class DecoderPort(Protocol):
    """Turns a response body into a ``TaskRecord``.

    Raises ``ServiceError`` for an error response and ``DecodeError`` for
    anything else that is not exactly one complete task.
    """

    def decode(self, raw: bytes, *, status_code: Optional[int] = None) -> TaskRecord: ...
