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
"""Retry with backoff for transient server statuses."""

from __future__ import annotations

import asyncio
import inspect
import time
from collections.abc import Awaitable, Callable
from datetime import timedelta
from email.utils import parsedate_to_datetime

import structlog

from parsely.client.ports.outbound import HttpResponse, RetryHook

logger = structlog.get_logger(__name__)

RETRYABLE_STATUSES = frozenset({408, 425, 429, 500, 503, 504})


class RetryPolicy:
    """Status-driven retry policy.

    Args:
        max_attempts: Maximum number of attempts (including the first).
        base_delay: Smallest delay between attempts; doubled each attempt when
            the server does not say how long to wait.
        retry_on: HTTP statuses that trigger another attempt.
    """

    def __init__(
        self,
        max_attempts: int = 5,
        base_delay: timedelta = timedelta(seconds=1),
        retry_on: frozenset[int] = RETRYABLE_STATUSES,
    ) -> None:
        self._max_attempts = max(1, max_attempts)
        self._base_delay = base_delay.total_seconds()
        self._retry_on = retry_on

    @property
    def max_attempts(self) -> int:
        return self._max_attempts

    def delay_for(self, response: HttpResponse, attempt: int) -> float:
        """Seconds to wait before the attempt following *attempt* (0-based)."""
        headers = {k.lower(): v for k, v in response.headers.items()}
        hinted: float | None = None
        if response.status_code == 429:
            hinted = _seconds_until(headers.get("x-rate-limit-reset"))
        elif response.status_code == 503:
            hinted = _seconds_until(headers.get("retry-after"))
        if hinted is not None:
            return max(hinted, self._base_delay)
        return self._base_delay * (2**attempt)

    async def execute(
        self,
        func: Callable[[], Awaitable[HttpResponse]],
        on_retry: RetryHook | None = None,
    ) -> HttpResponse:
        """Call *func* until it returns a non-retryable status or attempts run out.

        Every response that is about to be retried is handed to *on_retry* first.
        """
        response = await func()
        for attempt in range(self._max_attempts - 1):
            if response.status_code not in self._retry_on:
                return response
            delay = self.delay_for(response, attempt)
            logger.warning(
                "request_retry",
                status=response.status_code,
                attempt=attempt + 1,
                delay=delay,
            )
            if on_retry is not None:
                result = on_retry(response)
                if inspect.isawaitable(result):
                    await result
            await asyncio.sleep(delay)
            response = await func()
        return response


def _seconds_until(value: str | None) -> float | None:
    """Interpret a delay header as seconds, an epoch timestamp, or an HTTP date."""
    if not value:
        return None
    try:
        number = float(value)
    except ValueError:
        try:
            moment = parsedate_to_datetime(value)
        except (TypeError, ValueError):
            return None
        return max(0.0, moment.timestamp() - time.time())
    # A value larger than a day is an epoch timestamp.
    if number > 86_400:
        return max(0.0, number - time.time())
    return max(0.0, number)
