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
"""Tests for Cloud Code functions and jobs."""

import pytest

from parsely.features.cloud import ParseCloud
from parsely.kernel.exceptions import ParseError, ParseErrorCode


class TestParseCloud:
    @pytest.mark.asyncio
    async def test_run_function(self, client, transport):
        transport.reply({"result": {"average": 4.5}})

        result = await ParseCloud.run_function("averageStars", {"movie": "The Matrix"})

        assert result == {"average": 4.5}
        assert transport.last.url == "http://localhost:1337/parse/functions/averageStars"
        assert transport.last_json() == {"movie": "The Matrix"}
        assert "X-Parse-Master-Key" not in transport.last.headers

    @pytest.mark.asyncio
    async def test_function_without_params_sends_empty_object(self, client, transport):
        transport.reply({"result": None})
        assert await ParseCloud.run_function("ping") is None
        assert transport.last_json() == {}

    @pytest.mark.asyncio
    async def test_function_error(self, client, transport):
        transport.reply({"code": 141, "error": "movie not found"}, status=400)
        with pytest.raises(ParseError) as info:
            await ParseCloud.run_function("averageStars")
        assert info.value.code == ParseErrorCode.SCRIPT_FAILED

    @pytest.mark.asyncio
    async def test_start_job_uses_primary_key(self, client, transport):
        transport.reply({"result": "job-status-1"})

        status_id = await ParseCloud.start_job("rebuildIndexes")

        assert status_id == "job-status-1"
        assert transport.last.url.endswith("/jobs/rebuildIndexes")
        assert transport.last.headers["X-Parse-Master-Key"] == "primary-key"
