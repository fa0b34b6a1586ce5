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
"""Tests for HttpxTransport against httpx.MockTransport."""

from datetime import timedelta

import httpx
import pytest

from parsely.client.adapters.httpx_adapter import HttpxTransport
from parsely.client.ports.outbound import (
    HttpRequest,
    TransferCancelledError,
    TransferTask,
    TransportError,
    TransportPort,
)
from parsely.client.retry import RetryPolicy


def make_transport(handler, attempts=3):
    return HttpxTransport(
        retry_policy=RetryPolicy(max_attempts=attempts, base_delay=timedelta(0)),
        transport=httpx.MockTransport(handler),
        chunk_size=4,
    )


class TestConformance:
    def test_implements_transport_port(self):
        assert isinstance(make_transport(lambda request: httpx.Response(200)), TransportPort)


class TestSend:
    @pytest.mark.asyncio
    async def test_sends_method_url_params_and_body(self):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, content=b'{"results":[]}')

        transport = make_transport(handler)
        response = await transport.send(
            HttpRequest(
                method="POST",
                url="http://parse.test/parse/classes/Note",
                headers={"X-Parse-Application-Id": "app"},
                params={"limit": "1"},
                content=b'{"a":1}',
            )
        )
        await transport.close()

        assert response.status_code == 200
        assert response.content == b'{"results":[]}'
        assert seen[0].method == "POST"
        assert seen[0].url.params["limit"] == "1"
        assert seen[0].headers["X-Parse-Application-Id"] == "app"
        assert seen[0].content == b'{"a":1}'

    @pytest.mark.asyncio
    async def test_reload_policies_disable_caching(self):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json={})

        transport = make_transport(handler)
        await transport.send(
            HttpRequest(method="GET", url="http://parse.test/x", cache_policy="reload_ignoring_local_cache_data")
        )
        assert seen[0].headers["Cache-Control"] == "no-cache"

    @pytest.mark.asyncio
    async def test_retries_transient_statuses_and_reports_them(self):
        statuses = iter([503, 503, 200])

        def handler(request):
            status = next(statuses)
            return httpx.Response(status, json={"status": "starting" if status == 503 else "ok"})

        retried = []
        transport = make_transport(handler, attempts=5)
        response = await transport.send(HttpRequest(method="POST", url="http://parse.test/health"), retried.append)

        assert response.status_code == 200
        assert [item.status_code for item in retried] == [503, 503]

    @pytest.mark.asyncio
    async def test_stops_after_max_attempts(self):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(500, json={"code": 1, "error": "boom"})

        transport = make_transport(handler, attempts=2)
        response = await transport.send(HttpRequest(method="GET", url="http://parse.test/x"))
        assert response.status_code == 500
        assert len(calls) == 2

    @pytest.mark.asyncio
    async def test_connection_errors_become_transport_errors(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        transport = make_transport(handler)
        with pytest.raises(TransportError):
            await transport.send(HttpRequest(method="GET", url="http://parse.test/x"))


class TestStreaming:
    @pytest.mark.asyncio
    async def test_upload_reports_progress(self):
        received = []

        def handler(request):
            received.append(request.read())
            return httpx.Response(201, json={"name": "f.txt", "url": "http://files/f.txt"})

        progress = []
        transport = make_transport(handler)
        response = await transport.upload(
            HttpRequest(method="POST", url="http://parse.test/files/f.txt"),
            data=b"0123456789",
            progress=lambda task, sent, total, expected: progress.append((sent, total, expected)),
        )

        assert response.status_code == 201
        assert received == [b"0123456789"]
        assert progress == [(4, 4, 10), (4, 8, 10), (2, 10, 10)]

    @pytest.mark.asyncio
    async def test_upload_from_file(self, tmp_path):
        source = tmp_path / "photo.bin"
        source.write_bytes(b"abcdef")
        received = []

        def handler(request):
            received.append(request.read())
            return httpx.Response(201, json={})

        transport = make_transport(handler)
        await transport.upload(HttpRequest(method="POST", url="http://parse.test/files/p"), file=source)
        assert received == [b"abcdef"]

    @pytest.mark.asyncio
    async def test_cancelled_upload(self):
        transport = make_transport(lambda request: httpx.Response(201, content=request.read()))
        task = TransferTask("upload")
        task.cancel()
        with pytest.raises(TransferCancelledError):
            await transport.upload(
                HttpRequest(method="POST", url="http://parse.test/files/f"),
                data=b"0123456789",
                task=task,
            )

    @pytest.mark.asyncio
    async def test_download_writes_destination(self, tmp_path):
        transport = make_transport(lambda request: httpx.Response(200, content=b"file-bytes"))
        destination = tmp_path / "nested" / "f.txt"

        response = await transport.download(HttpRequest(method="GET", url="http://files/f.txt"), destination=destination)

        assert response.location == destination
        assert destination.read_bytes() == b"file-bytes"

    @pytest.mark.asyncio
    async def test_failed_download_returns_body(self, tmp_path):
        transport = make_transport(lambda request: httpx.Response(404, json={"code": 101, "error": "missing"}))
        destination = tmp_path / "f.txt"

        response = await transport.download(HttpRequest(method="GET", url="http://files/f.txt"), destination=destination)

        assert response.location is None
        assert response.status_code == 404
        assert not destination.exists()

    @pytest.mark.asyncio
    async def test_cancelled_download_removes_partial_file(self, tmp_path):
        transport = make_transport(lambda request: httpx.Response(200, content=b"0123456789"))
        destination = tmp_path / "f.txt"
        task = TransferTask("download")

        with pytest.raises(TransferCancelledError):
            await transport.download(
                HttpRequest(method="GET", url="http://files/f.txt"),
                destination=destination,
                progress=lambda current, *_: current.cancel(),
                task=task,
            )
        assert not destination.exists()
