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
"""Outbound port: the HTTP transport every command is dispatched through."""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol, runtime_checkable


@dataclass(frozen=True)
class HttpRequest:
    """A fully resolved request: absolute URL, flat params, final headers."""

    method: str
    url: str
    headers: Mapping[str, str] = field(default_factory=dict)
    params: Mapping[str, str] | None = None
    content: bytes | None = None
    cache_policy: str | None = None


@dataclass(frozen=True)
class HttpResponse:
    status_code: int
    content: bytes = b""
    headers: Mapping[str, str] = field(default_factory=dict)
    location: Path | None = None

    @property
    def is_success(self) -> bool:
        return 200 <= self.status_code < 300


class TransportError(Exception):
    """The request never produced an HTTP response (connection, timeout, I/O)."""


class TransferCancelledError(TransportError):
    """Raised by a transport when a :class:`TransferTask` is cancelled mid-stream."""


class TransferTask:
    """Cancellation handle for one streaming upload or download."""

    def __init__(self, description: str = "") -> None:
        self.description = description
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def __repr__(self) -> str:
        return f"TransferTask({self.description!r}, cancelled={self._cancelled})"


ProgressCallback = Callable[[TransferTask, int, int, int], None]
"""``(task, bytes_this_chunk, total_bytes_so_far, total_bytes_expected)``"""

RetryHook = Callable[[HttpResponse], Awaitable[None] | None]


@runtime_checkable
class TransportPort(Protocol):
    """Abstract HTTP transport. Retries and backoff live behind this port."""

    async def send(self, request: HttpRequest, on_retry: RetryHook | None = None) -> HttpResponse: ...

    async def upload(
        self,
        request: HttpRequest,
        *,
        data: bytes | None = None,
        file: Path | None = None,
        progress: ProgressCallback | None = None,
        task: TransferTask | None = None,
    ) -> HttpResponse: ...

    async def download(
        self,
        request: HttpRequest,
        *,
        destination: Path,
        progress: ProgressCallback | None = None,
        task: TransferTask | None = None,
    ) -> HttpResponse: ...

    async def close(self) -> None: ...
