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
"""Tests for analytics events."""

from datetime import UTC, datetime

import pytest

from parsely.api.options import UseCachePolicy
from parsely.core.configuration import CachePolicy
from parsely.features.analytics import ParseAnalytics


class TestParseAnalytics:
    def test_wire_form(self):
        event = ParseAnalytics.event("Purchase", {"item": "sword", "count": 2}, at=datetime(2026, 2, 1, tzinfo=UTC))
        assert event.to_wire() == {
            "name": "Purchase",
            "at": {"__type": "Date", "iso": "2026-02-01T00:00:00.000Z"},
            "dimensions": {"item": "sword", "count": 2},
        }

    @pytest.mark.asyncio
    async def test_track(self, client, transport):
        transport.reply({})

        await ParseAnalytics.event("Purchase", {"item": "sword"}).track(
            [UseCachePolicy(CachePolicy.RETURN_CACHE_DATA_ELSE_LOAD)]
        )

        assert transport.last.method == "POST"
        assert transport.last.url == "http://localhost:1337/parse/events/Purchase"
        assert transport.last_json() == {"name": "Purchase", "dimensions": {"item": "sword"}}
        assert transport.last.cache_policy == "reload_ignoring_local_cache_data"

    @pytest.mark.asyncio
    async def test_track_app_opened(self, client, transport):
        transport.reply({})
        await ParseAnalytics.track_app_opened()
        assert transport.last.url.endswith("/events/AppOpened")
        assert transport.last_json() == {"name": "AppOpened"}
