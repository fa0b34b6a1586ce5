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
"""Tests for RetryPolicy delays."""

import time
from datetime import timedelta

import pytest

from parsely.client.ports.outbound import HttpResponse
from parsely.client.retry import RetryPolicy


class TestDelays:
    def test_exponential_without_hints(self):
        policy = RetryPolicy(base_delay=timedelta(seconds=1))
        response = HttpResponse(500)
        assert [policy.delay_for(response, attempt) for attempt in range(3)] == [1.0, 2.0, 4.0]

    def test_retry_after_seconds_on_503(self):
        policy = RetryPolicy(base_delay=timedelta(seconds=1))
        assert policy.delay_for(HttpResponse(503, headers={"Retry-After": "7"}), 0) == 7.0

    def test_rate_limit_reset_epoch_on_429(self):
        policy = RetryPolicy(base_delay=timedelta(seconds=1))
        reset_at = time.time() + 30
        delay = policy.delay_for(HttpResponse(429, headers={"x-rate-limit-reset": str(reset_at)}), 0)
        assert 25 <= delay <= 30

    def test_hint_never_below_base_delay(self):
        policy = RetryPolicy(base_delay=timedelta(seconds=2))
        assert policy.delay_for(HttpResponse(503, headers={"retry-after": "0"}), 0) == 2.0

    def test_at_least_one_attempt(self):
        assert RetryPolicy(max_attempts=0).max_attempts == 1


class TestExecute:
    @pytest.mark.asyncio
    async def test_non_retryable_status_returns_immediately(self):
        calls = []

        async def attempt():
            calls.append(1)
            return HttpResponse(404)

        response = await RetryPolicy(base_delay=timedelta(0)).execute(attempt)
        assert response.status_code == 404
        assert len(calls) == 1

    @pytest.mark.asyncio
    async def test_awaitable_retry_hook(self):
        responses = iter([HttpResponse(429), HttpResponse(200)])
        seen = []

        async def attempt():
            return next(responses)

        async def hook(response):
            seen.append(response.status_code)

        response = await RetryPolicy(base_delay=timedelta(0)).execute(attempt, hook)
        assert response.status_code == 200
        assert seen == [429]
