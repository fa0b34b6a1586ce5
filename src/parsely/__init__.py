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
"""Parsely: an asyncio client SDK for Parse Server.

Typical use::

    import parsely

    parsely.initialize(
        parsely.ParseConfiguration(
            application_id="my-app",
            client_key="client-key",
            server_url="https://parse.example.com/parse",
        )
    )

    class GameScore(parsely.ParseObject):
        points: int | None = None

    score = await GameScore(points=10).save()
    best = await GameScore.query(parsely.Constraint.gt("points", 5)).order(parsely.Order.desc("points")).first()
"""

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
from parsely.api.surface import Result
from parsely.core.config import Config
from parsely.core.configuration import CachePolicy, ParseConfiguration
from parsely.core.runtime import ParseClient, current, initialize, reset, shutdown
from parsely.features import (
    ParseAnalytics,
    ParseCloud,
    ParseConfig,
    ParseFile,
    ParseSchema,
    ParseServer,
)
from parsely.kernel.exceptions import ParseError, ParseErrorCode, ParselyException
from parsely.objects import (
    FieldKey,
    ParseACL,
    ParseInstallation,
    ParseObject,
    ParseRole,
    ParseSession,
    ParseUser,
    Pointer,
)
from parsely.operations import ParseOperation
from parsely.query import Constraint, Order, Query, QueryConstraint, QueryWhere
from parsely.version import SDK_VERSION, ParseVersion

__version__ = SDK_VERSION

__all__ = [
    "CachePolicy",
    "Config",
    "Constraint",
    "Context",
    "FieldKey",
    "FileSize",
    "InstallationId",
    "Metadata",
    "MimeType",
    "Option",
    "Options",
    "Order",
    "ParseACL",
    "ParseAnalytics",
    "ParseClient",
    "ParseCloud",
    "ParseConfig",
    "ParseConfiguration",
    "ParseError",
    "ParseErrorCode",
    "ParseFile",
    "ParseInstallation",
    "ParseObject",
    "ParseOperation",
    "ParseRole",
    "ParseSchema",
    "ParseServer",
    "ParseSession",
    "ParseUser",
    "ParseVersion",
    "ParselyException",
    "Pointer",
    "Query",
    "QueryConstraint",
    "QueryWhere",
    "RemoveMimeType",
    "Result",
    "SDK_VERSION",
    "ServerURL",
    "SessionToken",
    "Tags",
    "UseCachePolicy",
    "UseMaintenanceKey",
    "UsePrimaryKey",
    "__version__",
    "current",
    "initialize",
    "reset",
    "shutdown",
]
