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
"""Tests for command dispatch and response decoding."""

import json

import pytest

from parsely.api.command import Command, NonParseBodyCommand, _BaseCommand, model_mapper
from parsely.api.endpoint import Endpoint, Method
from parsely.api.options import Options, ServerURL
from parsely.api.responses import AnyResultResponse
from parsely.client.ports.outbound import HttpResponse, TransportError
from parsely.core.runtime import ParseClient
from parsely.kernel.exceptions import ParseError, ParseErrorCode
from parsely.objects.parse_object import ParseObject
from parsely.storage.memory import InMemoryPrimitiveStore


class Note(ParseObject):
    text: str | None = None


class FailingTransport:
    async def send(self, request, on_retry=None):
        raise TransportError("connection refused")


def result_command(body=None):
    return NonParseBodyCommand(
        method=Method.POST,
        path=Endpoint.function("hello"),
        body=body,
        mapper=lambda data: AnyResultResponse.model_validate_json(data).result,
    )


class TestDecode:
    def test_error_envelope_wins_over_mapper(self):
        command = result_command()
        with pytest.raises(ParseError) as info:
            command.decode(HttpResponse(400, b'{"code": 141, "error": "Script failed"}'))
        assert int(info.value.code) == 141
        assert info.value.message == "Script failed"

    def test_unknown_codes_are_kept(self):
        with pytest.raises(ParseError) as info:
            result_command().decode(HttpResponse(400, b'{"code": 9999, "error": "custom"}'))
        assert info.value.code == 9999

    def test_non_success_status_without_envelope_fails(self):
        delete = Command(method=Method.DELETE, path=Endpoint.for_class("Note", "n1"), mapper=lambda data: None)
        with pytest.raises(ParseError) as info:
            delete.decode(HttpResponse(500, b"Internal Server Error"))
        assert info.value.code == ParseErrorCode.OTHER_CAUSE
        assert info.value.context["status"] == 500

    def test_non_success_status_may_be_decoded_as_intermediate(self):
        assert result_command().decode(HttpResponse(503, b'{"result": 1}'), require_success=False) == 1

    def test_mapper_failure_becomes_other_cause(self):
        with pytest.raises(ParseError) as info:
            result_command().decode(HttpResponse(200, b"[1, 2]"))
        assert info.value.code == ParseErrorCode.OTHER_CAUSE
        assert info.value.underlying is not None

    def test_successful_decode(self):
        assert result_command().decode(HttpResponse(200, b'{"result": {"ok": true}}')) == {"ok": True}

    def test_download_location_is_passed_as_path_text(self, tmp_path):
        command = NonParseBodyCommand(method=Method.GET, path=Endpoint.file("a.txt"), mapper=json.loads)
        target = tmp_path / "a.txt"
        assert command.decode(HttpResponse(200, b"", location=target)) == str(target)

    def test_model_mapper(self):
        command = Command(method=Method.GET, path=Endpoint.for_class("Note", "n1"), mapper=model_mapper(Note))
        note = command.decode(HttpResponse(200, b'{"objectId": "n1", "text": "hi"}'))
        assert note.text == "hi"


class TestBodies:
    def test_record_body_skips_server_keys(self):
        note = Note(object_id="n1", text="hi")
        command = Command(method=Method.PUT, path=note.endpoint(Method.PUT), body=note, mapper=lambda data: None)
        assert json.loads(command.encode_body()) == {"text": "hi"}

    def test_no_body_for_get(self):
        command = Command(method=Method.GET, path=Endpoint.for_class("Note"), body=Note(text="x"), mapper=bytes)
        assert command.encode_body() is None

    def test_non_parse_body_encodes_any_value(self):
        assert json.loads(result_command({"n": 1}).encode_body()) == {"n": 1}

    def test_base_command_cannot_be_built_without_a_body_encoding(self):
        with pytest.raises(TypeError):
            _BaseCommand(method=Method.GET, path=Endpoint.health(), mapper=bytes)


class TestExecute:
    @pytest.mark.asyncio
    async def test_request_shape(self, client, transport):
        transport.reply({"result": "hi"})
        assert await result_command({"name": "Ana"}).execute() == "hi"
        request = transport.last
        assert request.method == "POST"
        assert request.url == "http://localhost:1337/parse/functions/hello"
        assert json.loads(request.content) == {"name": "Ana"}
        assert request.cache_policy == "use_protocol_cache_policy"

    @pytest.mark.asyncio
    async def test_server_url_option(self, client, transport):
        transport.reply({"result": None})
        await result_command().execute(client, Options([ServerURL("http://replica:1337/parse")]))
        assert transport.last.url == "http://replica:1337/parse/functions/hello"

    @pytest.mark.asyncio
    async def test_transport_failure_becomes_other_cause(self, client):
        broken = ParseClient(client.configuration, FailingTransport(), InMemoryPrimitiveStore())
        with pytest.raises(ParseError) as info:
            await result_command().execute(broken)
        assert info.value.code == ParseErrorCode.OTHER_CAUSE
        assert info.value.message == "Unable to connect with parse-server"
        assert isinstance(info.value.underlying, TransportError)

    @pytest.mark.asyncio
    async def test_not_initialized(self):
        with pytest.raises(ParseError) as info:
            await result_command().execute()
        assert info.value.code == ParseErrorCode.OTHER_CAUSE
