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
"""Parsely features: server status, remote config, schemas, analytics, files and Cloud Code."""

from parsely.features.analytics import ParseAnalytics
from parsely.features.cloud import ParseCloud
from parsely.features.file import ParseFile
from parsely.features.remote_config import ParseConfig
from parsely.features.schema import ParseSchema, SchemaFieldType
from parsely.features.server import HealthResponse, ParseServer, ServerInformation, ServerStatus

__all__ = [
    "HealthResponse",
    "ParseAnalytics",
    "ParseCloud",
    "ParseConfig",
    "ParseFile",
    "ParseSchema",
    "ParseServer",
    "SchemaFieldType",
    "ServerInformation",
    "ServerStatus",
]
