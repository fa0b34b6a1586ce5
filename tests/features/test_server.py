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
"""Tests for server health and information."""

import pytest

from parsely.api.options import UseCachePolicy
from parsely.core.configuration import CachePolicy
from parsely.features.server import ParseServer, ServerInformation, ServerStatus
from parsely.kernel.exceptions import ParseError
from parsely.version import ParseVersion


class TestHealth:
    @pytest.mark.asyncio
    async def test_ok(self, client, transport):
        transport.reply({"status": "ok"})

        status = await ParseServer.health()

        assert status is ServerStatus.OK
        assert transport.last.method == "POST"
        assert transport.last.url == "http://localhost:1337/parse/health"

    @pytest.mark.asyncio
    async def test_intermediate_statuses_are_delivered(self, client, transport):
        transport.reply_sequence({"status": "initialized"}, {"status": "starting"}, {"status": "ok"})
        seen = []

        status = await ParseServer.health(on_intermediate=seen.append)

        assert seen == [ServerStatus.INITIALIZED, ServerStatus.STARTING]
        assert status is ServerStatus.OK

    @pytest.mark.asyncio
    async def test_intermediates_not_allowed(self, client, transport):
        transport.reply({"status": "starting"})
        with pytest.raises(ParseError):
            await ParseServer.health(allow_intermediate_responses=False)

    @pytest.mark.asyncio
    async def test_caller_cache_policy_is_not_used(self, client, transport):
        transport.reply({"status": "ok"})
        await ParseServer.health([UseCachePolicy(CachePolicy.RETURN_CACHE_DATA_ELSE_LOAD)])
        assert transport.last.cache_policy == "reload_ignoring_local_cache_data"

    @pytest.mark.asyncio
    async def test_error_envelope(self, client, transport):
        transport.reply({"code": 1, "error": "internal"}, status=500)
        with pytest.raises(ParseError) as info:
            await ParseServer.health()
        assert info.value.message == "internal"


class TestInformation:
    @pytest.mark.asyncio
    async def test_uses_primary_key(self, client, transport):
        transport.reply({"parseServerVersion": "6.4.0", "features": {"globalConfig": {"create": True}}})

        info = await ParseServer.information()

        assert transport.last.method == "GET"
        assert transport.last.url.endswith("/serverInfo")
        assert transport.last.headers["X-Parse-Master-Key"] == "primary-key"
        assert info.version == ParseVersion.parse("6.4.0")
        assert info.get_features() == {"globalConfig": {"create": True}}

    def test_missing_features(self):
        with pytest.raises(ParseError):
            ServerInformation().get_features()

    def test_unparseable_version(self):
        assert ServerInformation(parseServerVersion="not-a-version").version is None
