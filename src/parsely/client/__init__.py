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
"""Parsely client: the transport port, its httpx adapter, and retry policy."""

from parsely.client.adapters.httpx_adapter import HttpxTransport
from parsely.client.ports.outbound import (
    HttpRequest,
    HttpResponse,
    ProgressCallback,
    TransferCancelledError,
    TransferTask,
    TransportError,
    TransportPort,
)
from parsely.client.retry import RetryPolicy

__all__ = [
    "HttpRequest",
    "HttpResponse",
    "HttpxTransport",
    "ProgressCallback",
    "RetryPolicy",
    "TransferCancelledError",
    "TransferTask",
    "TransportError",
    "TransportPort",
]
