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
"""Shared fixtures: a recording transport and an initialized client."""

from __future__ import annotations

import json
from collections import deque
from pathlib import Path

import pytest

from parsely.client.ports.outbound import HttpRequest, HttpResponse
from parsely.core.configuration import ParseConfiguration
from parsely.core.runtime import initialize, reset


class RecordingTransport:
    """In-memory transport: records every request and answers from a queue.

    A queued list of responses is delivered as retries: every response but
    the last goes to ``on_retry`` first, the last one is returned.
    """

    def __init__(self) -> None:
        self.requests: list[HttpRequest] = []
        self.uploads: list[dict] = []
        self._responses: deque = deque()

    def reply(self, body=None, status=200, headers=None) -> None:
        self._responses.append(_response(body, status, headers))

    def reply_sequence(self, *bodies, status=200) -> None:
        self._responses.append([_response(body, status, None) for body in bodies])

    @property
    def last(self) -> HttpRequest:
        return self.requests[-1]

    def last_json(self):
        return json.loads(self.last.content)

    def _next(self):
        if not self._responses:
            raise AssertionError("No response queued for this request")
        return self._responses.popleft()

    async def send(self, request, on_retry=None):
        self.requests.append(request)
        queued = self._next()
        if isinstance(queued, list):
            for response in queued[:-1]:
                if on_retry is not None:
                    on_retry(response)
            return queued[-1]
        return queued

    async def upload(self, request, *, data=None, file=None, progress=None, task=None):
        self.requests.append(request)
        payload = data if data is not None else Path(file).read_bytes()
        self.uploads.append({"data": payload, "file": file})
        if progress is not None and task is not None:
            progress(task, len(payload), len(payload), len(payload))
        return self._next()

    async def download(self, request, *, destination, progress=None, task=None):
        self.requests.append(request)
        response = self._next()
        if not response.is_success:
            return response
        destination.parent.mkdir(parents=True, exist_ok=True)
        destination.write_bytes(response.content)
        return HttpResponse(response.status_code, b"", response.headers, location=destination)

    async def close(self) -> None:
        pass


def _response(body, status, headers) -> HttpResponse:
    if isinstance(body, bytes):
        content = body
    elif body is None:
        content = b""
    else:
        content = json.dumps(body).encode("utf-8")
    return HttpResponse(status, content, headers or {})


@pytest.fixture
def transport():
    return RecordingTransport()


@pytest.fixture
def configuration(tmp_path):
    return ParseConfiguration(
        application_id="test-app",
        client_key="client-key",
        primary_key="primary-key",
        server_url="http://localhost:1337/parse",
        downloads_directory=str(tmp_path / "downloads"),
    )


@pytest.fixture
def client(configuration, transport):
    installed = initialize(configuration, transport=transport)
    yield installed
    reset()
