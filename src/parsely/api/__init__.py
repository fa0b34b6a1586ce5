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
"""Parsely API: endpoints, header options, commands, and call shapes."""

from parsely.api.command import Command, NonParseBodyCommand, model_mapper
from parsely.api.endpoint import Endpoint, Method
from parsely.api.options import (
    Context,
    FileSize,
    InstallationId,
    Metadata,
    MimeType,
    Option,
    Options,
    RemoveMimeType,
    ServerURL,
    SessionToken,
    Tags,
    UseCachePolicy,
    UseMaintenanceKey,
    UsePrimaryKey,
)
from parsely.api.surface import Result, class_surface, surface

__all__ = [
    "Command",
    "Context",
    "Endpoint",
    "FileSize",
    "InstallationId",
    "Metadata",
    "Method",
    "MimeType",
    "NonParseBodyCommand",
    "Option",
    "Options",
    "RemoveMimeType",
    "Result",
    "ServerURL",
    "SessionToken",
    "Tags",
    "UseCachePolicy",
    "UseMaintenanceKey",
    "UsePrimaryKey",
    "class_surface",
    "model_mapper",
    "surface",
]
