"""HTTP transport for the recognition service (async httpx).

Endpoints used by the orchestrator:
- POST /process{Variant}?<params>   raw file bytes as body
- GET  /getTaskStatus?taskId=<id>
- GET  <resultUrl>                  absolute URL supplied by the service
"""

from __future__ import annotations

import logging
from typing import Optional

import httpx

from ocrsdk.domain.errors import TransportError
from ocrsdk.domain.ports.transport_port import RawResponse, TransportPort

logger = logging.getLogger(__name__)

_UTF8_BOM = b"\xef\xbb\xbf"


class OcrSdkHttpClient(TransportPort):
    """Implements TransportPort with httpx.

    Basic auth and the User-Agent header go with every request to the service
    host. Absolute URLs on another host (the signed ``resultUrl``) are fetched
    without credentials.
    """

    def __init__(
        self,
        base_url: str,
        application_id: str,
        password: str,
        *,
        user_agent: str,
        timeout_seconds: float = 60.0,
        verify_ssl: bool = True,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = httpx.URL(base_url.rstrip("/"))
        self._auth = httpx.BasicAuth(application_id, password)
        self._user_agent = user_agent
        self._timeout_seconds = timeout_seconds
        self._verify_ssl = verify_ssl
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self._base_url,
            timeout=self._timeout_seconds,
            verify=self._verify_ssl,
            transport=self._transport,
            headers={"User-Agent": self._user_agent},
        )

    def _is_service_url(self, path: str) -> bool:
        url = httpx.URL(path)
        return url.is_relative_url or url.host == self._base_url.host

    async def request(self, method: str, path: str, body: Optional[bytes] = None) -> RawResponse:
        auth = self._auth if self._is_service_url(path) else None
        headers = {"Content-Type": "application/octet-stream"} if body is not None else None
        async with self._client() as client:
            try:
                resp = await client.request(method, path, content=body, auth=auth, headers=headers)
            except httpx.RequestError as exc:
                raise TransportError(f"{method} {path} failed: {exc}", url=path) from exc

            raw = RawResponse(
                status_code=resp.status_code,
                content=resp.content,
                url=str(resp.request.url),
                headers={k.lower(): v for k, v in resp.headers.items()},
            )
            logger.debug(
                "http_exchange",
                extra={"http_status": resp.status_code, "size": len(resp.content)},
            )
            if raw.ok or raw.content.removeprefix(_UTF8_BOM).lstrip().startswith(b"<"):
                # Non-2xx with an XML body is left to the decoder (service error message)
                return raw
            try:
                resp.raise_for_status()
            except httpx.HTTPStatusError as exc:
                raise TransportError(
                    f"{method} {path} returned HTTP {resp.status_code}",
                    status_code=resp.status_code,
                    url=raw.url,
                ) from exc
            return raw
