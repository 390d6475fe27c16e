"""TransportPort protocol for HTTP access to the recognition service."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Protocol


@dataclass(frozen=True)
class RawResponse:
    status_code: int
    content: bytes
    url: str
    headers: dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300

    @property
    def content_type(self) -> Optional[str]:
        return self.headers.get("content-type")


class TransportPort(Protocol):
    """Authenticated request/response exchange with the service.

    ``path`` is either relative to the service base URL or an absolute URL.
    Implementations raise ``TransportError`` and never retry.
    """

    async def request(self, method: str, path: str, body: Optional[bytes] = None) -> RawResponse: ...
