# Copyright 2026 Firefly Software Solutions Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
"""httpx-based transport adapter."""

from __future__ import annotations

import os
from collections.abc import AsyncIterator
from datetime import timedelta
from pathlib import Path

import httpx
import structlog

from parsely.client.ports.outbound import (
    HttpRequest,
    HttpResponse,
    ProgressCallback,
    RetryHook,
    TransferCancelledError,
    TransferTask,
    TransportError,
)
from parsely.client.retry import RetryPolicy
from parsely.core.configuration import ParseConfiguration

logger = structlog.get_logger(__name__)

_CHUNK_SIZE = 64 * 1024

_NO_CACHE_POLICIES = frozenset(
    {"reload_ignoring_local_cache_data", "reload_ignoring_local_and_remote_cache_data"}
)


class HttpxTransport:
    """Transport adapter backed by httpx.AsyncClient."""

    def __init__(
        self,
        timeout: timedelta = timedelta(seconds=60),
        retry_policy: RetryPolicy | None = None,
        headers: dict[str, str] | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        chunk_size: int = _CHUNK_SIZE,
    ) -> None:
        self._client = httpx.AsyncClient(
            timeout=timeout.total_seconds(),
            headers=headers or {},
            transport=transport,
        )
        self._retry = retry_policy or RetryPolicy()
        self._chunk_size = chunk_size

    @classmethod
    def from_configuration(
        cls,
        configuration: ParseConfiguration,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> HttpxTransport:
        return cls(
            timeout=timedelta(seconds=configuration.timeout_seconds),
            retry_policy=RetryPolicy(
                max_attempts=configuration.max_connection_attempts,
                base_delay=timedelta(seconds=configuration.retry_base_delay_seconds),
            ),
            transport=transport,
        )

    async def send(self, request: HttpRequest, on_retry: RetryHook | None = None) -> HttpResponse:
        async def attempt() -> HttpResponse:
            try:
                response = await self._client.request(
                    request.method,
                    request.url,
                    params=dict(request.params) if request.params else None,
                    headers=_headers(request),
                    content=request.content,
                )
            except httpx.HTTPError as exc:
                raise TransportError(str(exc)) from exc
            return HttpResponse(response.status_code, response.content, dict(response.headers))

        return await self._retry.execute(attempt, on_retry)

    async def upload(
        self,
        request: HttpRequest,
        *,
        data: bytes | None = None,
        file: Path | None = None,
        progress: ProgressCallback | None = None,
        task: TransferTask | None = None,
    ) -> HttpResponse:
        if data is None and file is None:
            raise TransportError("An upload needs either data or a file")
        task = task or TransferTask(request.url)
        total = len(data) if data is not None else os.path.getsize(file)  # type: ignore[arg-type]
        headers = dict(request.headers)
        headers.setdefault("Content-Length", str(total))

        async def body() -> AsyncIterator[bytes]:
            sent = 0
            for chunk in self._chunks(data, file):
                if task.cancelled:
                    raise TransferCancelledError(f"Upload to {request.url} was cancelled")
                sent += len(chunk)
                yield chunk
                if progress is not None:
                    progress(task, len(chunk), sent, total)

        try:
            response = await self._client.request(
                request.method,
                request.url,
                params=dict(request.params) if request.params else None,
                headers=headers,
                content=body(),
            )
        except TransferCancelledError:
            raise
        except httpx.HTTPError as exc:
            if isinstance(exc.__cause__, TransferCancelledError):
                raise exc.__cause__ from None
            raise TransportError(str(exc)) from exc
        if task.cancelled:
            raise TransferCancelledError(f"Upload to {request.url} was cancelled")
        return HttpResponse(response.status_code, response.content, dict(response.headers))

    async def download(
        self,
        request: HttpRequest,
        *,
        destination: Path,
        progress: ProgressCallback | None = None,
        task: TransferTask | None = None,
    ) -> HttpResponse:
        task = task or TransferTask(request.url)
        destination.parent.mkdir(parents=True, exist_ok=True)
        try:
            async with self._client.stream(
                request.method,
                request.url,
                params=dict(request.params) if request.params else None,
                headers=dict(request.headers),
            ) as response:
                if not response.is_success:
                    content = await response.aread()
                    return HttpResponse(response.status_code, content, dict(response.headers))
                total = int(response.headers.get("content-length", 0) or 0)
                received = 0
                with open(destination, "wb") as out:
                    async for chunk in response.aiter_bytes(self._chunk_size):
                        if task.cancelled:
                            break
                        out.write(chunk)
                        received += len(chunk)
                        if progress is not None:
                            progress(task, len(chunk), received, max(total, received))
                headers = dict(response.headers)
                status = response.status_code
        except httpx.HTTPError as exc:
            raise TransportError(str(exc)) from exc
        if task.cancelled:
            destination.unlink(missing_ok=True)
            raise TransferCancelledError(f"Download from {request.url} was cancelled")
        logger.debug("download_finished", url=request.url, bytes=received)
        return HttpResponse(status, b"", headers, location=destination)

    def _chunks(self, data: bytes | None, file: Path | None):
        if data is not None:
            for start in range(0, len(data), self._chunk_size):
                yield data[start : start + self._chunk_size]
            return
        with open(file, "rb") as handle:  # type: ignore[arg-type]
            while chunk := handle.read(self._chunk_size):
                yield chunk

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()


def _headers(request: HttpRequest) -> dict[str, str]:
    headers = dict(request.headers)
    if request.cache_policy in _NO_CACHE_POLICIES:
        headers.setdefault("Cache-Control", "no-cache")
    return headers
