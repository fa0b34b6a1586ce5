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
"""Tests for the process-wide client lifecycle."""

import pytest

from parsely.core.config import Config
from parsely.core.runtime import current, initialize, reset, resolve, shutdown
from parsely.kernel.exceptions import ParseError, ParseErrorCode


class TestLifecycle:
    def test_current_before_initialize(self):
        reset()
        with pytest.raises(ParseError) as info:
            current()
        assert info.value.code == ParseErrorCode.OTHER_CAUSE

    def test_initialize_installs_client(self, configuration, transport):
        installed = initialize(configuration, transport=transport)
        try:
            assert current() is installed
            assert resolve(None) is installed
            assert installed.configuration.application_id == "test-app"
        finally:
            reset()

    def test_initialize_from_config(self, transport):
        config = Config({"parsely": {"client": {"application_id": "cfg", "server_url": "http://h/parse"}}})
        installed = initialize(config, transport=transport)
        try:
            assert installed.configuration.application_id == "cfg"
        finally:
            reset()

    def test_resolve_prefers_explicit_client(self, client, configuration, transport):
        other = initialize(configuration, transport=transport)
        assert resolve(client) is client
        assert resolve(None) is other

    @pytest.mark.asyncio
    async def test_shutdown_forgets_client(self, configuration, transport):
        initialize(configuration, transport=transport)
        await shutdown()
        with pytest.raises(ParseError):
            current()
