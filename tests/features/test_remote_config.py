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
"""Tests for remote config and its stored copy."""

import pytest

from parsely.features.remote_config import ParseConfig
from parsely.kernel.exceptions import ParseError


class TestParseConfig:
    @pytest.mark.asyncio
    async def test_fetch_stores_params(self, client, transport):
        transport.reply({"params": {"welcome": "hello", "limit": 3}})

        params = await ParseConfig.fetch()

        assert transport.last.method == "GET"
        assert transport.last.url == "http://localhost:1337/parse/config"
        assert params == {"welcome": "hello", "limit": 3}
        assert await ParseConfig.current() == params

    @pytest.mark.asyncio
    async def test_save_merges_into_current(self, client, transport):
        transport.reply({"params": {"welcome": "hello", "limit": 3}})
        transport.reply({"result": True})
        await ParseConfig.fetch()

        assert await ParseConfig.save({"limit": 5})

        assert transport.last.method == "PUT"
        assert transport.last.headers["X-Parse-Master-Key"] == "primary-key"
        assert transport.last_json() == {"params": {"limit": 5}}
        assert await ParseConfig.current() == {"welcome": "hello", "limit": 5}

    @pytest.mark.asyncio
    async def test_failed_save_keeps_current(self, client, transport):
        transport.reply({"result": False})
        assert not await ParseConfig.save({"limit": 5})
        with pytest.raises(ParseError):
            await ParseConfig.current()

    @pytest.mark.asyncio
    async def test_delete_current(self, client, transport):
        transport.reply({"params": {"a": 1}})
        await ParseConfig.fetch()
        await ParseConfig.delete_current()
        with pytest.raises(ParseError):
            await ParseConfig.current()
